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

"""The prepare phases and the registry that names them.

Each phase implements :class:`ReleasePhase`. :data:`PHASES` maps the
phase name used in ``releaseprep.toml`` and ``release.properties`` to
its class.
"""

from __future__ import annotations

from releaseprep.phases._base import (
    Phase as Phase,
    ReleasePhase as ReleasePhase,
    ReleaseSettings as ReleaseSettings,
)
from releaseprep.phases.checks import (
    CheckDependencySnapshotsPhase as CheckDependencySnapshotsPhase,
    CheckDescriptorsPhase as CheckDescriptorsPhase,
)
from releaseprep.phases.goals import RunPreparationGoalsPhase as RunPreparationGoalsPhase
from releaseprep.phases.rewrite import (
    RewriteDescriptorsForDevelopmentPhase as RewriteDescriptorsForDevelopmentPhase,
    RewriteDescriptorsForReleasePhase as RewriteDescriptorsForReleasePhase,
)
from releaseprep.phases.scm import (
    ScmCheckModificationsPhase as ScmCheckModificationsPhase,
    ScmCommitDevelopmentPhase as ScmCommitDevelopmentPhase,
    ScmCommitReleasePhase as ScmCommitReleasePhase,
    ScmTagPhase as ScmTagPhase,
)
from releaseprep.phases.versions import (
    InputVariablesPhase as InputVariablesPhase,
    MapDevelopmentVersionsPhase as MapDevelopmentVersionsPhase,
    MapReleaseVersionsPhase as MapReleaseVersionsPhase,
)

PHASES: dict[str, type[Phase]] = {
    cls.name: cls
    for cls in (
        CheckDescriptorsPhase,
        ScmCheckModificationsPhase,
        MapReleaseVersionsPhase,
        MapDevelopmentVersionsPhase,
        CheckDependencySnapshotsPhase,
        InputVariablesPhase,
        RewriteDescriptorsForReleasePhase,
        RunPreparationGoalsPhase,
        ScmCommitReleasePhase,
        ScmTagPhase,
        RewriteDescriptorsForDevelopmentPhase,
        ScmCommitDevelopmentPhase,
    )
}

__all__ = [
    'PHASES',
    'CheckDependencySnapshotsPhase',
    'CheckDescriptorsPhase',
    'InputVariablesPhase',
    'MapDevelopmentVersionsPhase',
    'MapReleaseVersionsPhase',
    'Phase',
    'ReleasePhase',
    'ReleaseSettings',
    'RewriteDescriptorsForDevelopmentPhase',
    'RewriteDescriptorsForReleasePhase',
    'RunPreparationGoalsPhase',
    'ScmCheckModificationsPhase',
    'ScmCommitDevelopmentPhase',
    'ScmCommitReleasePhase',
    'ScmTagPhase',
]
