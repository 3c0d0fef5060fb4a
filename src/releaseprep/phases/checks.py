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

"""Read-only checks that run before anything is changed."""

from __future__ import annotations

from releaseprep.errors import E, ValidationFailure
from releaseprep.logging import get_logger
from releaseprep.phases._base import Phase, ReleaseSettings, resolve_provider
from releaseprep.reactor import Reactor
from releaseprep.snapshots import check_no_unmapped_unstable_references
from releaseprep.state import ReleaseState
from releaseprep.versioning import is_snapshot

log = get_logger(__name__)


class CheckDescriptorsPhase(Phase):
    """The reactor has something to release and a usable SCM URL.

    When the state has no SCM URL the root module's
    ``developerConnection`` (or ``connection``) is used.
    """

    name = 'check-descriptors'

    async def run(self, state: ReleaseState, settings: ReleaseSettings, reactor: Reactor, *, dry_run: bool) -> None:
        """Validate the reactor and settle ``state.scm_url``."""
        root = reactor.root
        if not state.scm_url and root.scm is not None:
            state.scm_url = root.scm.developer_connection or root.scm.connection
            if state.scm_url:
                log.info('scm_url_from_descriptor', url=state.scm_url, module=str(root.key))

        resolve_provider(state, settings)

        if not any(is_snapshot(m.version) for m in reactor):
            raise ValidationFailure(
                E.SNAPSHOT_NONE_IN_REACTOR,
                "You don't have a SNAPSHOT project in the reactor projects list.",
                hint='Only snapshot versions can be released; bump to X-SNAPSHOT first.',
            )
        log.info('descriptors_checked', modules=len(reactor))


class CheckDependencySnapshotsPhase(Phase):
    """No reference may point at an unreleased snapshot."""

    name = 'check-dependency-snapshots'

    async def run(self, state: ReleaseState, settings: ReleaseSettings, reactor: Reactor, *, dry_run: bool) -> None:
        """Fail on external or unmapped internal snapshot references."""
        check_no_unmapped_unstable_references(reactor, state)


__all__ = [
    'CheckDependencySnapshotsPhase',
    'CheckDescriptorsPhase',
]
