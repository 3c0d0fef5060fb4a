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

"""Checks that a release will not point at unreleased builds.

A released module must only reference released artifacts. Two things
can go wrong::

    ┌────────────────────────┬──────────────────────────────────────────────┐
    │ Violation              │ Meaning                                      │
    ├────────────────────────┼──────────────────────────────────────────────┤
    │ external               │ A snapshot outside the reactor. Nothing this │
    │                        │ release does can turn it into a release.     │
    ├────────────────────────┼──────────────────────────────────────────────┤
    │ unmapped-internal      │ A snapshot of a reactor module that has no   │
    │                        │ release version yet.                         │
    └────────────────────────┴──────────────────────────────────────────────┘

Internal snapshots with a mapped release version are fine: the rewriter
replaces them. Non-snapshot references never fail.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from releaseprep.errors import SnapshotReferenceError
from releaseprep.logging import get_logger
from releaseprep.reactor import Reactor, ReactorModule, Reference
from releaseprep.state import ReleaseState
from releaseprep.versioning import is_snapshot

log = get_logger(__name__)


class ViolationKind(str, Enum):
    """Why a reference blocks the release."""

    EXTERNAL = 'external'
    UNMAPPED_INTERNAL = 'unmapped-internal'


@dataclass(frozen=True)
class SnapshotViolation:
    """One reference that still points at a snapshot.

    Attributes:
        module: The module whose descriptor holds the reference.
        reference: The offending reference.
        kind: Whether it is external or an unmapped reactor module.
    """

    module: ReactorModule
    reference: Reference
    kind: ViolationKind

    def describe(self) -> str:
        """One-line description for error messages."""
        where = f'{self.reference.kind.value} of {self.module.key}'
        if self.kind is ViolationKind.EXTERNAL:
            return f'{self.reference} ({where})'
        return f'{self.reference} ({where}; no release version mapped)'


def _references(module: ReactorModule) -> list[Reference]:
    return ([module.parent] if module.parent else []) + module.references


def find_unstable_references(reactor: Reactor, state: ReleaseState) -> list[SnapshotViolation]:
    """Return every snapshot reference that would block the release.

    Walks each module's parent and its dependency, managed dependency,
    plugin, managed plugin, report plugin, and extension references in
    reactor order.
    """
    violations: list[SnapshotViolation] = []
    for module in reactor:
        for ref in _references(module):
            if not is_snapshot(ref.version):
                continue
            if not reactor.is_internal(ref.key):
                violations.append(SnapshotViolation(module, ref, ViolationKind.EXTERNAL))
            elif ref.key not in state.release_versions:
                violations.append(SnapshotViolation(module, ref, ViolationKind.UNMAPPED_INTERNAL))
    return violations


def check_no_unmapped_unstable_references(reactor: Reactor, state: ReleaseState) -> None:
    """Fail if any reference is an external or unmapped internal snapshot.

    Raises:
        SnapshotReferenceError: Listing every violation; its ``kind`` and
            ``reference`` describe the first one.
    """
    violations = find_unstable_references(reactor, state)
    if violations:
        for v in violations:
            log.warning(
                'snapshot_reference',
                module=str(v.module.key),
                reference=str(v.reference),
                kind=v.kind.value,
            )
        raise SnapshotReferenceError(violations)
    log.info('snapshot_check_passed', modules=len(reactor))


__all__ = [
    'SnapshotViolation',
    'ViolationKind',
    'check_no_unmapped_unstable_references',
    'find_unstable_references',
]
