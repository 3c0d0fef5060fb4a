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

"""Maven-style version parsing, ordering, and next-version computation.

A version string is split into up to five parts::

    log4j-1.2.9-beta-9-SNAPSHOT
    └─┬─┘ └─┬─┘ └┬─┘ │ └──┬───┘
      │     │    │   │    └── build specifier (SNAPSHOT or a timestamp)
      │     │    │   └─────── annotation revision
      │     │    └─────────── annotation (alpha, beta, RC, ...)
      │     └──────────────── digits
      └────────────────────── component

A bare number (``1``) is a version, and a qualifier may follow the
digits after a dot (``1.0.0.Final``). The build specifier is only
``SNAPSHOT`` or a deployment timestamp; anything else fails to parse
rather than being dropped.

Separators (``-`` or ``_``) are remembered so that the computed release
and snapshot strings keep the author's style. Incrementing keeps zero
padding: ``1.09`` becomes ``1.10`` and ``1.009`` becomes ``1.010``.

Ordering: digits numerically, then annotation (alpha < beta < RC < none),
then annotation revision, then build specifier (any build < release).
"""

from __future__ import annotations

import functools
import re
from dataclasses import dataclass, replace

SNAPSHOT = 'SNAPSHOT'

_TIMESTAMP_BUILD = r'\d{8}\.\d{6}-\d+'

_STANDARD_RE = re.compile(
    r'^(?:(.+?)([-_]))??'  # component and digit separator
    r'(\d+(?:\.\d+)*)'  # digits
    r'(?:([-_.])?(?!(?i:snapshot)$)([a-zA-Z]+))?'  # annotation separator and annotation
    r'(?:([-_])?(\d+))?'  # annotation revision separator and revision
    rf'(?:([-_])?((?i:snapshot)|{_TIMESTAMP_BUILD}))?'  # build separator and build specifier
    r'$'
)

# Deployed snapshots carry a timestamp instead of the SNAPSHOT marker.
_TIMESTAMP_RE = re.compile(rf'^(.*)-({_TIMESTAMP_BUILD})$')

_ANNOTATION_ORDER = ('ALPHA', 'BETA', 'RC')


class VersionParseError(ValueError):
    """The string does not follow the dotted-digits version scheme."""


def is_snapshot(version: str) -> bool:
    """Return True if ``version`` denotes an unreleased build."""
    if not version:
        return False
    return version.upper().endswith(SNAPSHOT) or _TIMESTAMP_RE.match(version) is not None


def strip_snapshot(version: str) -> str:
    """Remove a trailing snapshot marker without parsing the version.

    Used as a best-effort release version for strings that
    :func:`parse_version` rejects.
    """
    match = _TIMESTAMP_RE.match(version)
    if match:
        return match.group(1)
    if version.upper().endswith(SNAPSHOT):
        return version[: -len(SNAPSHOT)].rstrip('-_')
    return version


def _increment(value: str) -> str:
    """Increment a digit string, keeping its zero padding."""
    return str(int(value) + 1).zfill(len(value))


def _as_int(value: str | None) -> int:
    return int(value) if value else -1


@functools.total_ordering
@dataclass(frozen=True, eq=False)
class VersionInfo:
    """A parsed version.

    Attributes:
        component: Leading artifact-like prefix (``log4j``), or ``None``.
        digits: The dotted numeric parts, as strings to keep padding.
        annotation: Qualifier such as ``beta`` or ``RC``, or ``None``.
        annotation_revision: Digits after the annotation, or ``None``.
        build_specifier: ``SNAPSHOT``, a timestamp, or ``None``.
    """

    component: str | None
    digits: tuple[str, ...]
    annotation: str | None = None
    annotation_revision: str | None = None
    build_specifier: str | None = None
    digit_separator: str | None = None
    annotation_separator: str | None = None
    annotation_revision_separator: str | None = None
    build_separator: str | None = None

    @property
    def is_snapshot(self) -> bool:
        """Whether the build specifier marks an unreleased build."""
        build = self.build_specifier or ''
        return build.upper() == SNAPSHOT or re.fullmatch(_TIMESTAMP_BUILD, build) is not None

    def next_version(self) -> VersionInfo:
        """Return the next version.

        The annotation revision is incremented when there is one,
        otherwise the last digit.
        """
        if self.annotation_revision and self.annotation_revision.isdigit():
            return replace(self, annotation_revision=_increment(self.annotation_revision))
        return replace(self, digits=(*self.digits[:-1], _increment(self.digits[-1])))

    def render(self, build_specifier: str | None, build_separator: str | None) -> str:
        """Assemble the version string with the given build part."""
        parts: list[str] = []
        if self.component:
            parts.append(self.component)
        parts.append(self.digit_separator or '')
        parts.append('.'.join(self.digits))
        if self.annotation:
            parts.append(self.annotation_separator or '')
            parts.append(self.annotation)
        if self.annotation_revision:
            parts.append(self.annotation_revision_separator or '')
            parts.append(self.annotation_revision)
        if build_specifier:
            parts.append(build_separator or '')
            parts.append(build_specifier)
        return ''.join(parts)

    def __str__(self) -> str:
        """The version as it was written."""
        return self.render(self.build_specifier, self.build_separator)

    @property
    def release_version(self) -> str:
        """The version with its build specifier removed."""
        return self.render(None, None)

    @property
    def snapshot_version(self) -> str:
        """The version with ``SNAPSHOT`` as its build specifier."""
        return self.render(SNAPSHOT, self.build_separator or '-')

    def compare(self, other: VersionInfo) -> int:
        """Three-way comparison; negative when ``self`` sorts first.

        Raises:
            ValueError: For different components or unknown annotations.
        """
        if self.component != other.component:
            raise ValueError(
                f'Cannot compare versions of different components: {self.component!r} and {other.component!r}'
            )

        mine = [int(d) for d in self.digits]
        theirs = [int(d) for d in other.digits]
        if mine != theirs:
            return -1 if mine < theirs else 1

        a, b = (self.annotation or '').upper(), (other.annotation or '').upper()
        if a != b:
            if not b:
                return -1
            if not a:
                return 1
            if a not in _ANNOTATION_ORDER or b not in _ANNOTATION_ORDER:
                raise ValueError(f'Cannot compare unknown annotations: {self.annotation!r} and {other.annotation!r}')
            return _ANNOTATION_ORDER.index(a) - _ANNOTATION_ORDER.index(b)

        rev_a, rev_b = _as_int(self.annotation_revision), _as_int(other.annotation_revision)
        if rev_a != rev_b:
            return rev_a - rev_b

        if self.build_specifier != other.build_specifier:
            if self.build_specifier is None:
                return 1
            if other.build_specifier is None:
                return -1
            return -1 if self.build_specifier < other.build_specifier else 1
        return 0

    def __eq__(self, other: object) -> bool:
        """Versions are equal when :meth:`compare` returns zero."""
        if not isinstance(other, VersionInfo):
            return NotImplemented
        return self.compare(other) == 0

    def __lt__(self, other: VersionInfo) -> bool:
        """Order by :meth:`compare`."""
        return self.compare(other) < 0

    __hash__ = None  # type: ignore[assignment]


def parse_version(version: str) -> VersionInfo:
    """Parse a version string.

    Raises:
        VersionParseError: If there are no digits to anchor on, or text
            after them that is neither a qualifier nor a build marker.
    """
    match = _STANDARD_RE.match(version)
    if not match:
        raise VersionParseError(f'Unable to parse the version string: "{version}"')

    (component, digit_sep, digits, ann_sep, annotation, rev_sep, revision, build_sep, build) = match.groups()
    return VersionInfo(
        component=component or None,
        digits=tuple(digits.split('.')),
        annotation=annotation or None,
        annotation_revision=revision or None,
        build_specifier=build or None,
        digit_separator=digit_sep,
        annotation_separator=ann_sep,
        annotation_revision_separator=rev_sep,
        build_separator=build_sep,
    )


def next_development_version(version: str) -> str:
    """Return the snapshot of the version after ``version``.

    ``1.0`` and ``1.0-SNAPSHOT`` both give ``1.1-SNAPSHOT``.

    Raises:
        VersionParseError: If ``version`` cannot be parsed.
    """
    return parse_version(version).next_version().snapshot_version


def release_version_of(version: str) -> str:
    """Return ``version`` without its snapshot marker.

    Raises:
        VersionParseError: If ``version`` cannot be parsed.
    """
    match = _TIMESTAMP_RE.match(version)
    if match:
        version = match.group(1)
    return parse_version(version).release_version


__all__ = [
    'SNAPSHOT',
    'VersionInfo',
    'VersionParseError',
    'is_snapshot',
    'next_development_version',
    'parse_version',
    'release_version_of',
    'strip_snapshot',
]
