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

"""Goal runner protocol for releaseprep.

The :class:`GoalRunner` protocol runs the build tool over the rewritten
release descriptors (``clean verify`` by default) so a broken release
never gets committed. Implementations:

- :class:`~releaseprep.backends.goals.maven.MavenGoalRunner`: ``mvn`` CLI
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol, runtime_checkable

from releaseprep.backends._run import CommandResult
from releaseprep.backends.goals.maven import MavenGoalRunner as MavenGoalRunner

__all__ = [
    'GoalRunner',
    'MavenGoalRunner',
]


@runtime_checkable
class GoalRunner(Protocol):
    """Protocol for running build goals in the working directory."""

    async def run_goals(
        self,
        working_directory: Path,
        goals: str,
        *,
        additional_arguments: str = '',
        fail_on_error: bool = True,
        dry_run: bool = False,
    ) -> CommandResult:
        """Run ``goals`` (space separated) in ``working_directory``.

        Args:
            working_directory: Directory holding the root descriptor.
            goals: Goals to run, e.g. ``"clean verify"``.
            additional_arguments: Extra command-line arguments.
            fail_on_error: Raise on a non-zero exit code.
            dry_run: Log the command without executing.

        Raises:
            subprocess.CalledProcessError: If the goals fail and
                ``fail_on_error`` is set.
            OSError: If the build tool cannot be started.
        """
        ...
