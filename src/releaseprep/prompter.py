# Copyright 2026 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
#
# SPDX-License-Identifier: Apache-2.0

"""Interactive questions asked during a release.

The pipeline never reads stdin itself. Whatever needs an answer (a
release version, a tag name) goes through a :class:`Prompter`, so tests
and non-console frontends can supply their own.
"""

from __future__ import annotations

import asyncio
from typing import Protocol, runtime_checkable


class PromptError(Exception):
    """The prompter could not obtain an answer (EOF, closed terminal)."""


@runtime_checkable
class Prompter(Protocol):
    """Asks the user one question at a time."""

    async def ask(self, message: str, default: str = '') -> str:
        """Ask ``message`` and return the answer.

        An empty answer returns ``default``.

        Raises:
            PromptError: If no answer can be read.
        """
        ...


class ConsolePrompter:
    """Prompts on the terminal, reading stdin off the event loop."""

    async def ask(self, message: str, default: str = '') -> str:
        """Ask on stdin; the default is shown in brackets."""
        question = f'{message} [{default}]: ' if default else f'{message}: '
        try:
            answer = await asyncio.to_thread(input, question)
        except (EOFError, OSError) as exc:
            raise PromptError(f'Unable to read an answer for: {message}') from exc
        return answer.strip() or default


__all__ = [
    'ConsolePrompter',
    'PromptError',
    'Prompter',
]
