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

"""Format-preserving rewriting of ``pom.xml`` descriptors.

The document is parsed only to find *where* things are: expat reports
the byte offset of every tag, and the rewriter replaces the text between
a ``<version>`` start and end tag (or inserts an element or attribute)
without ever serializing the tree. Comments, attribute order, quoting,
blank lines, and line endings survive untouched.

Key Concepts (ELI5)::

    ┌─────────────────────┬────────────────────────────────────────────────┐
    │ Concept             │ ELI5 Explanation                               │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ Span                │ "Bytes 120 to 132 hold the version text."     │
    │                     │ We only ever cut and paste inside spans.      │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ RewriteMode         │ RELEASE writes release versions and points    │
    │                     │ <scm> at the tag; DEVELOPMENT writes the next │
    │                     │ snapshot and points <scm> back.               │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ Shadow files        │ pom.xml.tag / pom.xml.next hold simulated     │
    │                     │ output; pom.xml.backup holds the original.    │
    └─────────────────────┴────────────────────────────────────────────────┘

What gets rewritten::

    <project>
      <parent><version>        internal parent: mapped version
      <version>                the module's own mapped version
      <dependencies>, <dependencyManagement>, <build><plugins>,
      <build><pluginManagement>, <build><extensions>, <reporting><plugins>
          <version>            internal references still pointing at
                               the old version or at a snapshot
      <properties>             a property such a <version> expands from
      <scm>                    connection, developerConnection, url, tag

Every edit for a document is computed before anything is written, so a
missing mapping never leaves a half-rewritten file behind.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from xml.parsers import expat  # noqa: S410 - descriptors come from the local checkout
from xml.sax.saxutils import escape, quoteattr, unescape  # noqa: S406

from releaseprep._io import exists, read_bytes, remove_if_exists, write_bytes
from releaseprep.backends.vcs import VCS
from releaseprep.errors import E, ExecutionFault, UnmappedVersionError, ValidationFailure
from releaseprep.logging import get_logger
from releaseprep.reactor import DEFAULT_PLUGIN_GROUP, ModuleKey, Reactor, ReactorModule, RefKind, ScmCoordinates
from releaseprep.state import ReleaseState
from releaseprep.versioning import is_snapshot

log = get_logger(__name__)

POM_NAMESPACE = 'http://maven.apache.org/POM/4.0.0'
XSI_NAMESPACE = 'http://www.w3.org/2001/XMLSchema-instance'
POM_SCHEMA_LOCATION = 'http://maven.apache.org/POM/4.0.0 http://maven.apache.org/maven-v4_0_0.xsd'

BACKUP_SUFFIX = '.backup'
TAG_SUFFIX = '.tag'
NEXT_SUFFIX = '.next'
RELEASE_SUFFIX = '.release'

_ENCODING_RE = re.compile(rb'^<\?xml[^>]*?encoding\s*=\s*["\']([A-Za-z0-9._-]+)["\']')
_UTF8_BOM = b'\xef\xbb\xbf'
_EXPRESSION_RE = re.compile(r'\$\{([^}]+)\}')
_PROJECT_VERSION_NAMES = frozenset({'project.version', 'pom.version', 'version'})

# (container path under <project>, item element, reference kind, default groupId)
_REFERENCE_SECTIONS: tuple[tuple[tuple[str, ...], str, RefKind, str], ...] = (
    (('dependencies',), 'dependency', RefKind.DEPENDENCY, ''),
    (('dependencyManagement', 'dependencies'), 'dependency', RefKind.MANAGED_DEPENDENCY, ''),
    (('build', 'plugins'), 'plugin', RefKind.PLUGIN, DEFAULT_PLUGIN_GROUP),
    (('build', 'pluginManagement', 'plugins'), 'plugin', RefKind.MANAGED_PLUGIN, DEFAULT_PLUGIN_GROUP),
    (('build', 'extensions'), 'extension', RefKind.EXTENSION, ''),
    (('reporting', 'plugins'), 'plugin', RefKind.REPORT_PLUGIN, DEFAULT_PLUGIN_GROUP),
)


class RewriteMode(str, Enum):
    """Which version map a rewrite applies."""

    RELEASE = 'release'
    DEVELOPMENT = 'development'

    @property
    def shadow_suffix(self) -> str:
        """Suffix of the file a simulated rewrite is written to."""
        return TAG_SUFFIX if self is RewriteMode.RELEASE else NEXT_SUFFIX


def shadow_path(path: Path, suffix: str) -> Path:
    """Return ``path`` with ``suffix`` appended to its file name."""
    return path.with_name(path.name + suffix)


@dataclass
class _Element:
    """Byte offsets of one element in the document."""

    qname: str
    attrs: dict[str, str]
    start: int
    start_tag_end: int
    end_tag_start: int = -1
    end: int = -1
    children: list[_Element] = field(default_factory=list)

    @property
    def name(self) -> str:
        return self.qname.rsplit(':', 1)[-1]

    @property
    def self_closing(self) -> bool:
        return self.end_tag_start == self.start_tag_end and self.end == self.start_tag_end

    def child(self, name: str) -> _Element | None:
        for child in self.children:
            if child.name == name:
                return child
        return None

    def children_named(self, name: str) -> list[_Element]:
        return [c for c in self.children if c.name == name]

    def path(self, *names: str) -> _Element | None:
        elem: _Element | None = self
        for name in names:
            if elem is None:
                return None
            elem = elem.child(name)
        return elem


def _scan_tag_end(data: bytes, start: int) -> int:
    """Return the offset just past the ``>`` closing the tag at ``start``."""
    quote = 0
    i = start + 1
    while i < len(data):
        c = data[i]
        if quote:
            if c == quote:
                quote = 0
        elif c in (0x22, 0x27):
            quote = c
        elif c == 0x3E:
            return i + 1
        i += 1
    return len(data)


def _locate(data: bytes, path: Path) -> _Element:
    """Parse ``data`` (UTF-8) into an element span tree."""
    parser = expat.ParserCreate(encoding='UTF-8')
    stack: list[_Element] = []
    roots: list[_Element] = []

    def on_start(name: str, attrs: dict[str, str]) -> None:
        offset = parser.CurrentByteIndex
        elem = _Element(name, attrs, offset, _scan_tag_end(data, offset))
        (stack[-1].children if stack else roots).append(elem)
        stack.append(elem)

    def on_end(name: str) -> None:
        elem = stack.pop()
        if data[elem.start_tag_end - 2 : elem.start_tag_end] == b'/>':
            elem.end_tag_start = elem.end = elem.start_tag_end
            return
        offset = parser.CurrentByteIndex
        elem.end_tag_start = offset
        elem.end = _scan_tag_end(data, offset)

    parser.StartElementHandler = on_start
    parser.EndElementHandler = on_end
    try:
        parser.Parse(data, True)
    except expat.ExpatError as exc:
        raise ExecutionFault(
            E.DESCRIPTOR_PARSE_ERROR,
            f'Error parsing descriptor {path}: {exc}',
            hint='Fix the XML syntax of the descriptor.',
        ) from exc
    return roots[0]


class _Patch:
    """Collects non-overlapping byte edits and applies them in one pass."""

    def __init__(self, data: bytes) -> None:
        self.data = data
        self.edits: list[tuple[int, int, bytes]] = []

    def text(self, elem: _Element | None) -> str:
        """Trimmed, unescaped text content of ``elem``."""
        if elem is None or elem.self_closing:
            return ''
        return unescape(self.data[elem.start_tag_end : elem.end_tag_start].decode('utf-8').strip())

    def set_text(self, elem: _Element, value: str) -> None:
        """Replace the text of ``elem``, keeping surrounding whitespace."""
        encoded = escape(value).encode('utf-8')
        if elem.self_closing:
            qname = elem.qname.encode()
            self.edits.append((elem.start, elem.end, b'<%s>%s</%s>' % (qname, encoded, qname)))
            return
        inner = self.data[elem.start_tag_end : elem.end_tag_start]
        stripped = inner.strip()
        if stripped == encoded or self.text(elem) == value:
            return
        lead = len(inner) - len(inner.lstrip())
        begin = elem.start_tag_end + lead
        self.edits.append((begin, begin + len(stripped), encoded))

    def insert(self, offset: int, content: bytes) -> None:
        self.edits.append((offset, offset, content))

    def apply(self) -> bytes:
        result = self.data
        last = len(result) + 1
        for begin, end, content in sorted(self.edits, key=lambda e: (e[0], e[1]), reverse=True):
            if end > last:
                raise ValueError(f'Overlapping descriptor edits at byte {begin}')
            result = result[:begin] + content + result[end:]
            last = begin
        return result


def _newline(data: bytes) -> bytes:
    return b'\r\n' if b'\r\n' in data else b'\n'


def _indent_of(data: bytes, offset: int) -> bytes:
    """Whitespace between the start of the line and ``offset``."""
    line_start = data.rfind(b'\n', 0, offset) + 1
    prefix = data[line_start:offset]
    return prefix if not prefix.strip() else b'  '


def _versions_for(state: ReleaseState, mode: RewriteMode) -> dict[ModuleKey, str]:
    return state.release_versions if mode is RewriteMode.RELEASE else state.development_versions


def _rewrite_self(
    patch: _Patch,
    root: _Element,
    module: ReactorModule,
    mapped: dict[ModuleKey, str],
    parent_version: str,
) -> None:
    version = mapped.get(module.key)
    if version is None:
        raise UnmappedVersionError(module.key, f"Version for '{module.display_name}' was not mapped")

    version_elem = root.child('version')
    if version_elem is not None:
        patch.set_text(version_elem, version)
        return
    if version == parent_version:
        return

    # Inherited but now different from the parent: add it after <artifactId>.
    anchor = root.child('artifactId')
    if anchor is None:
        raise ValidationFailure(E.DESCRIPTOR_PARSE_ERROR, f'Descriptor of {module.key} has no <artifactId>')
    indent = _indent_of(patch.data, anchor.start)
    patch.insert(anchor.end, _newline(patch.data) + indent + b'<version>%s</version>' % escape(version).encode())


def _rewrite_parent(
    patch: _Patch,
    root: _Element,
    module: ReactorModule,
    mapped: dict[ModuleKey, str],
    reactor: Reactor,
) -> str:
    """Rewrite ``<parent><version>``; return the parent version after rewriting."""
    parent_elem = root.child('parent')
    if module.parent is None or parent_elem is None:
        return ''
    version_elem = parent_elem.child('version')
    current = patch.text(version_elem)
    if not reactor.is_internal(module.parent.key):
        return current
    version = mapped.get(module.parent.key)
    if version is None:
        raise UnmappedVersionError(module.parent.key, f"Version for parent '{module.parent.key}' was not mapped")
    if version_elem is not None:
        patch.set_text(version_elem, version)
    return version


def _expression_values(
    patch: _Patch,
    root: _Element,
    module: ReactorModule,
) -> tuple[dict[str, str], dict[str, _Element]]:
    """Values ``${...}`` expressions expand to, and the ``<properties>`` elements defining them."""
    properties = root.child('properties')
    elements = {prop.name: prop for prop in properties.children} if properties is not None else {}
    values = {name: patch.text(elem) for name, elem in elements.items()}
    for name in _PROJECT_VERSION_NAMES:
        values[name] = module.version
    for name in ('project.parent.version', 'parent.version'):
        values[name] = module.parent.version if module.parent else ''
    for name in ('project.groupId', 'pom.groupId', 'groupId'):
        values[name] = module.key.group_id
    return values, elements


def _expand(value: str, values: dict[str, str]) -> str:
    """Substitute known expressions; unknown ones stay verbatim."""
    for _ in range(10):
        expanded = _EXPRESSION_RE.sub(lambda m: values.get(m.group(1), m.group(0)), value)
        if expanded == value:
            break
        value = expanded
    return value


def _rewrite_references(
    patch: _Patch,
    root: _Element,
    module: ReactorModule,
    state: ReleaseState,
    mapped: dict[ModuleKey, str],
    reactor: Reactor,
    mode: RewriteMode,
) -> None:
    values, property_elems = _expression_values(patch, root, module)
    own_version = mapped.get(module.key)
    rewritten_properties: dict[str, str] = {}
    for container_path, item_name, kind, default_group in _REFERENCE_SECTIONS:
        container = root.path(*container_path)
        if container is None:
            continue
        for item in container.children_named(item_name):
            version_elem = item.child('version')
            raw = patch.text(version_elem)
            if version_elem is None or not raw:
                continue
            group_id = _expand(patch.text(item.child('groupId')), values) or default_group
            key = ModuleKey(group_id, patch.text(item.child('artifactId')))
            target = reactor.get(key)
            if target is None:
                continue
            current = _expand(raw, values)
            stale = (
                is_snapshot(current)
                or current == target.version
                or (mode is RewriteMode.DEVELOPMENT and current == state.release_versions.get(key))
            )
            if not stale:
                continue
            version = mapped.get(key)
            if version is None:
                raise UnmappedVersionError(key, f"Version '{raw}' for {kind.value} '{key}' was not mapped")
            if '${' not in raw:
                patch.set_text(version_elem, version)
                continue

            match = _EXPRESSION_RE.fullmatch(raw)
            name = match.group(1) if match else ''
            if name in _PROJECT_VERSION_NAMES and version == own_version:
                continue
            prop = property_elems.get(name)
            if prop is not None and name not in rewritten_properties:
                rewritten_properties[name] = version
                patch.set_text(prop, version)
                continue
            if rewritten_properties.get(name) == version:
                continue
            # Shared by references needing different versions, or not local.
            patch.set_text(version_elem, version)


def _rewrite_scm(
    patch: _Patch,
    root: _Element,
    module: ReactorModule,
    state: ReleaseState,
    mode: RewriteMode,
    vcs: VCS | None,
) -> None:
    if module.key not in state.original_scm_info:
        state.original_scm_info[module.key] = module.scm

    scm_elem = root.child('scm')
    if scm_elem is None:
        return

    if mode is RewriteMode.DEVELOPMENT:
        original = state.original_scm_info.get(module.key)
        if original is None:
            return
        for name, value in (
            ('connection', original.connection),
            ('developerConnection', original.developer_connection),
            ('url', original.url),
            ('tag', original.tag),
        ):
            elem = scm_elem.child(name)
            if elem is not None and value:
                patch.set_text(elem, value)
        return

    label = state.scm_release_label
    if not label:
        raise ValidationFailure(
            E.SCM_LABEL_MISSING,
            f'No release label is set; cannot point the <scm> section of {module.key} at the tag',
            hint='Run the input-variables phase or set scm_release_label first.',
        )
    original = state.original_scm_info.get(module.key) or ScmCoordinates()
    for name, value, tag_base in (
        ('connection', original.connection, state.scm_tag_base),
        ('developerConnection', original.developer_connection, state.scm_tag_base),
        ('url', original.url, ''),
    ):
        elem = scm_elem.child(name)
        if elem is None or not value or '${' in value or vcs is None:
            continue
        patch.set_text(elem, vcs.translate_tag_url(value, label, tag_base))
    tag_elem = scm_elem.child('tag')
    if tag_elem is not None:
        patch.set_text(tag_elem, label)


def _add_schema(patch: _Patch, root: _Element) -> None:
    attrs = [
        ('xmlns', POM_NAMESPACE),
        ('xmlns:xsi', XSI_NAMESPACE),
        ('xsi:schemaLocation', POM_SCHEMA_LOCATION),
    ]
    missing = b''.join(
        b' %s=%s' % (name.encode(), quoteattr(value).encode()) for name, value in attrs if name not in root.attrs
    )
    if not missing:
        return
    close = root.start_tag_end - (2 if root.self_closing else 1)
    patch.insert(close, missing)


def rewrite(
    module: ReactorModule,
    text: str,
    state: ReleaseState,
    reactor: Reactor,
    mode: RewriteMode,
    *,
    vcs: VCS | None = None,
) -> str:
    """Return ``text`` with versions and SCM coordinates rewritten for ``mode``.

    Args:
        module: The module the descriptor belongs to.
        text: Current descriptor text.
        state: Version mappings, label, and captured SCM coordinates.
            Original ``<scm>`` coordinates are recorded here on first use.
        reactor: Decides which references are internal.
        mode: Release or development rewrite.
        vcs: Provider used to translate SCM URLs to the tag location;
            without one the URLs are kept.

    Returns:
        The rewritten text; unchanged regions are byte-identical.

    Raises:
        UnmappedVersionError: If the module, its internal parent, or a
            stale internal reference has no mapped version.
        ValidationFailure: If the ``<scm>`` section needs a label and
            none is set.
        ExecutionFault: If the XML is malformed.
    """
    data = text.encode('utf-8')
    root = _locate(data, module.descriptor_path)
    patch = _Patch(data)
    mapped = _versions_for(state, mode)

    parent_version = _rewrite_parent(patch, root, module, mapped, reactor)
    _rewrite_self(patch, root, module, mapped, parent_version)
    _rewrite_references(patch, root, module, state, mapped, reactor, mode)
    _rewrite_scm(patch, root, module, state, mode, vcs)
    if state.add_schema:
        _add_schema(patch, root)

    result = patch.apply().decode('utf-8')
    log.debug('descriptor_rewritten', module=str(module.key), mode=mode.value, edits=len(patch.edits))
    return result


def detect_encoding(data: bytes) -> str:
    """Return the codec a descriptor is written in (declaration or BOM)."""
    if data.startswith(_UTF8_BOM):
        return 'utf-8-sig'
    match = _ENCODING_RE.match(data)
    return match.group(1).decode('ascii').lower() if match else 'utf-8'


async def read_descriptor(path: Path) -> tuple[str, str]:
    """Read a descriptor; return its text and encoding.

    Raises:
        ExecutionFault: If the file cannot be read or decoded.
    """
    data = await read_bytes(path)
    encoding = detect_encoding(data)
    try:
        return data.decode(encoding), encoding
    except (UnicodeDecodeError, LookupError) as exc:
        raise ExecutionFault(
            E.DESCRIPTOR_READ_ERROR,
            f'Cannot decode {path} as {encoding}: {exc}',
            hint='Make the XML declaration match the file encoding.',
        ) from exc


async def write_descriptor(
    path: Path,
    text: str,
    mode: RewriteMode,
    *,
    dry_run: bool,
    encoding: str = 'utf-8',
) -> Path:
    """Write a rewritten descriptor; return the file written.

    Simulation writes ``<path>.tag`` (release) or ``<path>.next``
    (development) and leaves ``path`` alone. A real run first copies the
    original to ``<path>.backup`` unless a backup already exists, so the
    backup always holds the text from before the first rewrite.
    """
    try:
        content = text.encode(encoding)
    except (UnicodeEncodeError, LookupError) as exc:
        raise ExecutionFault(E.DESCRIPTOR_WRITE_ERROR, f'Cannot encode {path} as {encoding}: {exc}') from exc

    if dry_run:
        target = shadow_path(path, mode.shadow_suffix)
        await write_bytes(target, content)
        log.info('descriptor_simulated', path=str(target), mode=mode.value)
        return target

    backup = shadow_path(path, BACKUP_SUFFIX)
    if not await exists(backup):
        await write_bytes(backup, await read_bytes(path))
    await write_bytes(path, content)
    log.info('descriptor_written', path=str(path), mode=mode.value)
    return path


async def clean_descriptor(path: Path) -> None:
    """Restore ``path`` from its backup and delete every shadow file.

    Missing files are ignored, so this is safe to call when nothing ran.
    """
    backup = shadow_path(path, BACKUP_SUFFIX)
    if await exists(backup):
        await write_bytes(path, await read_bytes(backup))
        log.info('descriptor_restored', path=str(path))
    for suffix in (BACKUP_SUFFIX, TAG_SUFFIX, NEXT_SUFFIX):
        await remove_if_exists(shadow_path(path, suffix))


async def discard_backup(path: Path) -> bool:
    """Delete ``<path>.backup`` after a successful release."""
    return await remove_if_exists(shadow_path(path, BACKUP_SUFFIX))


__all__ = [
    'BACKUP_SUFFIX',
    'NEXT_SUFFIX',
    'POM_NAMESPACE',
    'POM_SCHEMA_LOCATION',
    'RELEASE_SUFFIX',
    'RewriteMode',
    'TAG_SUFFIX',
    'XSI_NAMESPACE',
    'clean_descriptor',
    'detect_encoding',
    'discard_backup',
    'read_descriptor',
    'rewrite',
    'shadow_path',
    'write_descriptor',
]
