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


"""Tests for releaseprep.backends.goals.maven module."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest
from releaseprep.backends._run import CommandResult
from releaseprep.backends.goals import GoalRunner, MavenGoalRunner
from releaseprep.logging import configure_logging

configure_logging(quiet=True)


def _ok() -> CommandResult:
    return CommandResult(command=['mvn'], return_code=0)


class TestMavenGoalRunner:
    """Tests for MavenGoalRunner."""

    def test_implements_protocol(self) -> None:
        """Test implements protocol."""
        assert isinstance(MavenGoalRunner(), GoalRunner)

    @pytest.mark.asyncio()
    async def test_command_shape(self, tmp_path: Path) -> None:
        """Goals and extra arguments are split shell-style around the batch flags."""
        with patch('releaseprep.backends.goals.maven.run_command', return_value=_ok()) as m:
            await MavenGoalRunner(timeout=60).run_goals(
                tmp_path,
                'clean verify',
                additional_arguments='-P release -Dmsg="two words"',
            )

        m.assert_called_once_with(
            ['mvn', 'clean', 'verify', '--no-plugin-updates', '--batch-mode', '-P', 'release', '-Dmsg=two words'],
            cwd=tmp_path,
            timeout=60,
            dry_run=False,
            check=True,
        )

    @pytest.mark.asyncio()
    async def test_prefers_wrapper(self, tmp_path: Path) -> None:
        """A checked-in ./mvnw is used instead of mvn."""
        (tmp_path / 'mvnw').write_text('#!/bin/sh\nexec mvn "$@"\n')
        with patch('releaseprep.backends.goals.maven.run_command', return_value=_ok()) as m:
            await MavenGoalRunner().run_goals(tmp_path, 'verify')

        assert m.call_args.args[0][0] == str(tmp_path / 'mvnw')

    @pytest.mark.asyncio()
    async def test_dry_run_and_no_fail(self, tmp_path: Path) -> None:
        """dry_run and fail_on_error are passed through."""
        with patch('releaseprep.backends.goals.maven.run_command', return_value=_ok()) as m:
            await MavenGoalRunner().run_goals(tmp_path, 'verify', fail_on_error=False, dry_run=True)

        assert m.call_args.kwargs['dry_run'] is True
        assert m.call_args.kwargs['check'] is False
