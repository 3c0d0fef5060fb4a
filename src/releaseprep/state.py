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

"""Release state with resume support.

The state collects everything the phases decide (version mappings, the
release label, the original ``<scm>`` coordinates) and is written to
``release.properties`` after every successful phase, so an interrupted
prepare can pick up where it stopped.

Key Concepts (ELI5)::

    ┌─────────────────────┬────────────────────────────────────────────────┐
    │ Concept             │ ELI5 Explanation                               │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ ReleaseState        │ The notebook the phases write in: which        │
    │                     │ version each module gets, which tag to cut.    │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ completed_phase     │ A bookmark. Resume skips everything up to and  │
    │                     │ including this phase.                          │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ Atomic save         │ Write to a temp file first, then rename.       │
    │                     │ If we crash mid-write, the old file is fine.   │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ Merge               │ Options the caller passes win over the saved   │
    │                     │ ones; the saved bookmark and mappings stay.    │
    └─────────────────────┴────────────────────────────────────────────────┘

File layout (Java properties syntax)::

    #release configuration
    completedPhase=scm-tag
    scm.url=scm\\:git\\:https\\://example.com/repo.git
    scm.tag=demo-1.0
    project.dependencies.com.example\\:a.release-version=1.0
    project.dependencies.com.example\\:a.dev-version=1.1-SNAPSHOT
    project.scm.com.example\\:a.developerConnection=scm\\:git\\:...
    project.scm.com.example\\:b.empty=true

Boolean options are never written: the caller's value always applies.

Usage::

    store = ReleaseStateStore()
    state = store.read(ReleaseState(working_directory=Path('.')))
    state.completed_phase = 'scm-tag'
    store.write(state)
"""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path

from releaseprep.errors import E, ExecutionFault
from releaseprep.logging import get_logger
from releaseprep.reactor import ModuleKey, ScmCoordinates

logger = get_logger(__name__)

STATE_FILENAME = 'release.properties'

_HEADER = '#release configuration\n'

_SCALAR_KEYS = {
    'completedPhase': 'completed_phase',
    'scm.url': 'scm_url',
    'scm.tag': 'scm_release_label',
    'scm.tagBase': 'scm_tag_base',
    'scm.username': 'scm_username',
    'scm.privateKey': 'scm_private_key',
    'exec.preparationGoals': 'preparation_goals',
    'exec.additionalArguments': 'additional_arguments',
}

# Never written to disk; the caller passes them again on resume.
_SECRET_ATTRS = ('scm_password', 'scm_passphrase')

_VERSION_PREFIX = 'project.dependencies.'
_RELEASE_SUFFIX = '.release-version'
_DEV_SUFFIX = '.dev-version'
_SCM_PREFIX = 'project.scm.'
_SCM_FIELDS = {
    'connection': 'connection',
    'developerConnection': 'developer_connection',
    'url': 'url',
    'tag': 'tag',
}


@dataclass
class ReleaseState:
    """Everything the prepare phases have decided so far.

    Attributes:
        release_versions: Release version per reactor module.
        development_versions: Next development version per module.
        original_scm_info: ``<scm>`` coordinates captured before the
            release rewrite; ``None`` marks a module without ``<scm>``.
        scm_release_label: Tag name for this release.
        scm_url: Connection string (``scm:<provider>:...``).
        working_directory: Root of the checkout; holds the state file.
        completed_phase: Name of the last phase that finished.
    """

    working_directory: Path = field(default_factory=Path.cwd)
    release_versions: dict[ModuleKey, str] = field(default_factory=dict)
    development_versions: dict[ModuleKey, str] = field(default_factory=dict)
    original_scm_info: dict[ModuleKey, ScmCoordinates | None] = field(default_factory=dict)
    scm_release_label: str = ''
    scm_url: str = ''
    scm_username: str = ''
    scm_password: str = ''
    scm_private_key: str = ''
    scm_passphrase: str = ''
    scm_tag_base: str = ''
    preparation_goals: str = ''
    additional_arguments: str = ''
    completed_phase: str = ''
    interactive: bool = True
    add_schema: bool = False
    use_edit_mode: bool = False

    def map_release_version(self, key: ModuleKey, version: str) -> None:
        """Record the release version for ``key``."""
        self.release_versions[key] = version

    def map_development_version(self, key: ModuleKey, version: str) -> None:
        """Record the next development version for ``key``."""
        self.development_versions[key] = version

    def merge(self, caller: ReleaseState) -> None:
        """Fold the caller's options into this (persisted) state in place.

        SCM settings and execution options given by the caller override
        the saved ones; booleans and the working directory always come
        from the caller. ``completed_phase`` and the version mappings are
        kept from the saved state, with caller mappings only filling gaps.
        """
        for attr in (*_SCALAR_KEYS.values(), *_SECRET_ATTRS):
            if attr == 'completed_phase':
                continue
            value = getattr(caller, attr)
            if value:
                setattr(self, attr, value)
        self.completed_phase = self.completed_phase or caller.completed_phase
        self.working_directory = caller.working_directory
        self.interactive = caller.interactive
        self.add_schema = caller.add_schema
        self.use_edit_mode = caller.use_edit_mode
        for mine, theirs in (
            (self.release_versions, caller.release_versions),
            (self.development_versions, caller.development_versions),
            (self.original_scm_info, caller.original_scm_info),
        ):
            for key, value in theirs.items():
                mine.setdefault(key, value)


def _escape(text: str, *, is_key: bool) -> str:
    out: list[str] = []
    for i, ch in enumerate(text):
        if ch == '\\':
            out.append('\\\\')
        elif ch == '\n':
            out.append('\\n')
        elif ch == '\r':
            out.append('\\r')
        elif ch == '\t':
            out.append('\\t')
        elif ch == '\f':
            out.append('\\f')
        elif ch == ' ' and (is_key or i == 0):
            out.append('\\ ')
        elif ch in '=:#!':
            out.append('\\' + ch)
        elif ord(ch) < 0x20 or ord(ch) > 0x7E:
            out.append(f'\\u{ord(ch):04x}')
        else:
            out.append(ch)
    return ''.join(out)


_UNESCAPES = {'n': '\n', 'r': '\r', 't': '\t', 'f': '\f'}


def _unescape(text: str) -> str:
    out: list[str] = []
    i = 0
    while i < len(text):
        ch = text[i]
        if ch != '\\' or i + 1 >= len(text):
            out.append(ch)
            i += 1
            continue
        nxt = text[i + 1]
        if nxt == 'u' and i + 6 <= len(text):
            out.append(chr(int(text[i + 2 : i + 6], 16)))
            i += 6
            continue
        out.append(_UNESCAPES.get(nxt, nxt))
        i += 2
    return ''.join(out)


def _logical_lines(content: str) -> list[str]:
    """Join backslash-continued lines and drop comments and blanks."""
    lines: list[str] = []
    pending = ''
    for raw in content.splitlines():
        line = raw.lstrip() if pending else raw.lstrip(' \t\f')
        if not pending and (not line or line[0] in '#!'):
            continue
        trailing = len(line) - len(line.rstrip('\\'))
        if trailing % 2 == 1:
            pending += line[:-1]
            continue
        lines.append(pending + line)
        pending = ''
    if pending:
        lines.append(pending)
    return lines


def parse_properties(content: str) -> dict[str, str]:
    """Parse Java properties text into a dict.

    Raises:
        ValueError: On a malformed ``\\uXXXX`` escape.
    """
    result: dict[str, str] = {}
    for line in _logical_lines(content):
        i = 0
        while i < len(line):
            ch = line[i]
            if ch == '\\':
                i += 2
                continue
            if ch in '=: \t\f':
                break
            i += 1
        key = line[:i]
        if line[i : i + 1] in ('=', ':'):
            rest = line[i + 1 :].lstrip(' \t\f')
        else:
            rest = line[i:].lstrip(' \t\f')
            if rest[:1] in ('=', ':'):
                rest = rest[1:].lstrip(' \t\f')
        result[_unescape(key)] = _unescape(rest)
    return result


def format_properties(values: dict[str, str]) -> str:
    """Render ``values`` as properties text, keys sorted."""
    lines = [_HEADER]
    for key in sorted(values):
        lines.append(f'{_escape(key, is_key=True)}={_escape(values[key], is_key=False)}\n')
    return ''.join(lines)


def state_to_properties(state: ReleaseState) -> dict[str, str]:
    """Flatten ``state`` into properties; empty values are omitted."""
    props: dict[str, str] = {}
    for prop, attr in _SCALAR_KEYS.items():
        value = getattr(state, attr)
        if value:
            props[prop] = value
    for key, version in state.release_versions.items():
        props[f'{_VERSION_PREFIX}{key}{_RELEASE_SUFFIX}'] = version
    for key, version in state.development_versions.items():
        props[f'{_VERSION_PREFIX}{key}{_DEV_SUFFIX}'] = version
    for key, scm in state.original_scm_info.items():
        prefix = f'{_SCM_PREFIX}{key}'
        if scm is None:
            props[f'{prefix}.empty'] = 'true'
            continue
        for prop, attr in _SCM_FIELDS.items():
            value = getattr(scm, attr)
            if value:
                props[f'{prefix}.{prop}'] = value
    return props


def state_from_properties(props: dict[str, str], working_directory: Path) -> ReleaseState:
    """Rebuild a :class:`ReleaseState` from parsed properties.

    Raises:
        ValueError: If a module key inside a property name is malformed.
    """
    state = ReleaseState(working_directory=working_directory)
    for prop, attr in _SCALAR_KEYS.items():
        if prop in props:
            setattr(state, attr, props[prop])

    scm_fields: dict[ModuleKey, dict[str, str]] = {}
    for prop, value in props.items():
        if prop.startswith(_VERSION_PREFIX) and prop.endswith(_RELEASE_SUFFIX):
            key = ModuleKey.parse(prop[len(_VERSION_PREFIX) : -len(_RELEASE_SUFFIX)])
            state.release_versions[key] = value
        elif prop.startswith(_VERSION_PREFIX) and prop.endswith(_DEV_SUFFIX):
            key = ModuleKey.parse(prop[len(_VERSION_PREFIX) : -len(_DEV_SUFFIX)])
            state.development_versions[key] = value
        elif prop.startswith(_SCM_PREFIX):
            name, _, leaf = prop[len(_SCM_PREFIX) :].rpartition('.')
            if not name:
                continue
            fields = scm_fields.setdefault(ModuleKey.parse(name), {})
            if leaf == 'empty':
                fields['empty'] = value
            elif leaf in _SCM_FIELDS:
                fields[_SCM_FIELDS[leaf]] = value

    for key, fields in scm_fields.items():
        if fields.pop('empty', None) is not None:
            state.original_scm_info[key] = None
        else:
            state.original_scm_info[key] = ScmCoordinates(**fields)
    return state


class ReleaseStateStore:
    """Reads and writes ``release.properties`` in the working directory.

    Args:
        filename: State file name, relative to the state's working
            directory.
    """

    def __init__(self, filename: str = STATE_FILENAME) -> None:
        """Initialize with the state file name."""
        self.filename = filename

    def path_for(self, state: ReleaseState) -> Path:
        """Return the state file location for ``state``."""
        return state.working_directory / self.filename

    def read(self, merge: ReleaseState) -> ReleaseState:
        """Load the saved state and merge the caller's options over it.

        A missing file yields ``merge``'s values over an empty state.

        Raises:
            ExecutionFault: If the file exists but cannot be read or parsed.
        """
        path = self.path_for(merge)
        try:
            content = path.read_text(encoding='latin-1')
        except FileNotFoundError:
            logger.debug('state_not_found', path=str(path))
            content = ''
        except OSError as exc:
            raise ExecutionFault(
                E.STATE_READ_ERROR,
                f"Error reading properties file '{path.name}': {exc}",
                hint='Check the file permissions, or delete it to start over.',
            ) from exc

        try:
            loaded = state_from_properties(parse_properties(content), merge.working_directory)
        except ValueError as exc:
            raise ExecutionFault(
                E.STATE_READ_ERROR,
                f"Error reading properties file '{path.name}': {exc}",
                hint='Delete the state file and restart the release.',
            ) from exc

        loaded.merge(merge)
        if content:
            logger.info('state_loaded', path=str(path), completed_phase=loaded.completed_phase)
        return loaded

    def write(self, state: ReleaseState) -> None:
        """Atomically save ``state``.

        Uses ``tempfile`` + ``os.replace`` for crash safety: if the
        process dies mid-write, the previous state file is untouched.

        Raises:
            ExecutionFault: If the file cannot be written.
        """
        path = self.path_for(state)
        content = format_properties(state_to_properties(state))
        try:
            fd, tmp_path = tempfile.mkstemp(dir=path.parent, prefix='.release-', suffix='.tmp')
        except OSError as exc:
            raise ExecutionFault(
                E.STATE_WRITE_ERROR,
                f"Error writing properties file '{path.name}': {exc}",
            ) from exc
        closed = False
        try:
            os.write(fd, content.encode('latin-1'))
            os.close(fd)
            closed = True
            os.replace(tmp_path, path)
        except OSError as exc:
            if not closed:
                os.close(fd)
            Path(tmp_path).unlink(missing_ok=True)
            raise ExecutionFault(
                E.STATE_WRITE_ERROR,
                f"Error writing properties file '{path.name}': {exc}",
            ) from exc

        logger.debug('state_saved', path=str(path), completed_phase=state.completed_phase)

    def delete(self, state: ReleaseState) -> bool:
        """Remove the state file; return whether one existed."""
        path = self.path_for(state)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as exc:
            raise ExecutionFault(
                E.STATE_WRITE_ERROR,
                f'Failed to delete {path}: {exc}',
            ) from exc
        logger.info('state_deleted', path=str(path))
        return True


__all__ = [
    'STATE_FILENAME',
    'ReleaseState',
    'ReleaseStateStore',
    'ScmCoordinates',
    'format_properties',
    'parse_properties',
    'state_from_properties',
    'state_to_properties',
]
