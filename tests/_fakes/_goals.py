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

"""Fake goal runner for tests."""

from __future__ import annotations

from pathlib import Path

from releaseprep.backends._run import CommandResult


class FakeGoalRunner:
    """Records goal runs instead of starting Maven.

    Args:
        raises: Raised from ``run_goals()`` when set.
    """

    def __init__(self, *, raises: Exception | None = None) -> None:
        """Initialize with an optional failure."""
        self._raises = raises
        self.runs: list[dict[str, object]] = []

    async def run_goals(
        self,
        working_directory: Path,
        goals: str,
        *,
        additional_arguments: str = '',
        fail_on_error: bool = True,
        dry_run: bool = False,
    ) -> CommandResult:
        """Record the call and return success."""
        self.runs.append({
            'working_directory': working_directory,
            'goals': goals,
            'additional_arguments': additional_arguments,
            'dry_run': dry_run,
        })
        if self._raises is not None:
            raise self._raises
        return CommandResult(command=['mvn', *goals.split()], return_code=0, dry_run=dry_run)
