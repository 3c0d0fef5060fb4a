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


"""Tests for releaseprep.prompter."""

from __future__ import annotations

from unittest.mock import patch

import pytest
from releaseprep.prompter import ConsolePrompter, Prompter, PromptError

from tests._fakes import FakePrompter


class TestConsolePrompter:
    """Tests for ConsolePrompter."""

    def test_satisfies_protocol(self) -> None:
        """Both the console and fake prompters are Prompters."""
        assert isinstance(ConsolePrompter(), Prompter)
        assert isinstance(FakePrompter(), Prompter)

    @pytest.mark.asyncio()
    async def test_answer(self) -> None:
        """The answer is stripped and the default is shown."""
        with patch('builtins.input', return_value='  2.0 ') as mock_input:
            answer = await ConsolePrompter().ask('Release version?', '1.0')

        assert answer == '2.0'
        mock_input.assert_called_once_with('Release version? [1.0]: ')

    @pytest.mark.asyncio()
    async def test_empty_answer_takes_default(self) -> None:
        """Pressing enter accepts the default."""
        with patch('builtins.input', return_value=''):
            assert await ConsolePrompter().ask('Release version?', '1.0') == '1.0'

    @pytest.mark.asyncio()
    async def test_no_default(self) -> None:
        """Without a default no brackets are shown."""
        with patch('builtins.input', return_value='x') as mock_input:
            await ConsolePrompter().ask('Tag?')
        mock_input.assert_called_once_with('Tag?: ')

    @pytest.mark.asyncio()
    async def test_eof(self) -> None:
        """A closed stdin becomes a PromptError."""
        with patch('builtins.input', side_effect=EOFError), pytest.raises(PromptError, match='Tag'):
            await ConsolePrompter().ask('Tag?')
