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

"""Fake prompter that answers from a script."""

from __future__ import annotations

from releaseprep.prompter import PromptError


class FakePrompter:
    """Answers questions in order; an exhausted script accepts defaults.

    Args:
        answers: Replies, consumed one per question.
        fail: Raise :class:`PromptError` on every question.
    """

    def __init__(self, answers: list[str] | None = None, *, fail: bool = False) -> None:
        """Initialize with the scripted answers."""
        self._answers = list(answers or [])
        self._fail = fail
        self.questions: list[tuple[str, str]] = []

    async def ask(self, message: str, default: str = '') -> str:
        """Record the question and return the next answer."""
        self.questions.append((message, default))
        if self._fail:
            raise PromptError('stdin closed')
        if self._answers:
            return self._answers.pop(0)
        return default
