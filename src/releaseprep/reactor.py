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

"""Reactor graph: the modules taking part in one release.

Reads a Maven multi-module tree starting from the root ``pom.xml``,
follows ``<modules>`` recursively, and orders the result so that every
module comes after its parent and after every reactor module it
references.

Key Concepts (ELI5)::

    ┌─────────────────────┬────────────────────────────────────────────────┐
    │ Concept             │ ELI5 Explanation                               │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ ModuleKey           │ groupId + artifactId. The module's name tag,  │
    │                     │ which stays the same when the version moves.  │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ Reference           │ "I use X at version Y" found in a descriptor: │
    │                     │ a dependency, plugin, extension, or parent.   │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ Internal reference  │ A reference whose key is in the reactor. It   │
    │                     │ gets the version this release assigns.        │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ Reactor order       │ Parents first, then whoever depends on them.  │
    └─────────────────────┴────────────────────────────────────────────────┘

Edge direction::

    child ──parent──→ root          edges["child"] = ["root"]
    app ──dependency──→ core         edges["app"]   = ["core"]

    Kahn's algorithm over these edges yields: root, core, child, app

Usage::

    reactor = await load_reactor(Path('.'))
    for module in reactor:
        print(module.key, module.version)
"""

from __future__ import annotations

import re
import xml.etree.ElementTree as ET  # noqa: N817, S405
from collections import deque
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from releaseprep._io import read_bytes
from releaseprep.errors import E, ExecutionFault, ValidationFailure
from releaseprep.logging import get_logger

log = get_logger(__name__)

DEFAULT_DESCRIPTOR = 'pom.xml'

# Group used by Maven when a <plugin> omits <groupId>.
DEFAULT_PLUGIN_GROUP = 'org.apache.maven.plugins'

_EXPRESSION_RE = re.compile(r'\$\{([^}]+)\}')


class RefKind(str, Enum):
    """Where in a descriptor a reference was found."""

    PARENT = 'parent'
    DEPENDENCY = 'dependency'
    MANAGED_DEPENDENCY = 'managed-dependency'
    PLUGIN = 'plugin'
    MANAGED_PLUGIN = 'managed-plugin'
    REPORT_PLUGIN = 'report-plugin'
    EXTENSION = 'extension'


# Management sections only pin versions; a parent commonly manages its
# own children, so these never constrain reactor order.
_UNORDERED_KINDS = frozenset({RefKind.MANAGED_DEPENDENCY, RefKind.MANAGED_PLUGIN})


@dataclass(frozen=True, order=True)
class ModuleKey:
    """Version-independent identity of a module."""

    group_id: str
    artifact_id: str

    def __str__(self) -> str:
        """Render as ``groupId:artifactId``."""
        return f'{self.group_id}:{self.artifact_id}'

    @classmethod
    def parse(cls, text: str) -> ModuleKey:
        """Parse ``groupId:artifactId``.

        Raises:
            ValueError: If ``text`` has no colon separator.
        """
        group_id, sep, artifact_id = text.partition(':')
        if not sep or not group_id or not artifact_id:
            raise ValueError(f'Not a groupId:artifactId key: {text!r}')
        return cls(group_id, artifact_id)


@dataclass(frozen=True)
class ScmCoordinates:
    """Connection strings from a module's ``<scm>`` section.

    Attributes:
        connection: Read-only connection URL.
        developer_connection: Read-write connection URL.
        url: Browsable repository URL.
        tag: The ``<tag>`` value (``HEAD`` by convention).
    """

    connection: str = ''
    developer_connection: str = ''
    url: str = ''
    tag: str = ''


@dataclass(frozen=True)
class Reference:
    """A versioned pointer from one descriptor to another artifact.

    Attributes:
        key: The referenced module key.
        version: The version as resolved from the descriptor (empty when
            the element declares none).
        kind: Which descriptor section the reference came from.
    """

    key: ModuleKey
    version: str
    kind: RefKind

    def __str__(self) -> str:
        """Render as ``groupId:artifactId:version``."""
        return f'{self.key}:{self.version}' if self.version else str(self.key)


@dataclass
class ReactorModule:
    """One module of the reactor.

    Attributes:
        key: The module's identity.
        version: Current version (inherited from the parent when the
            descriptor omits ``<version>``).
        descriptor_path: Absolute path of the module's ``pom.xml``.
        parent: Reference to the parent, if the descriptor declares one.
        references: Dependencies, plugins, and extensions, in document order.
        scm: The module's ``<scm>`` section, if any.
        name: Display name (``<name>`` or the artifactId).
        version_inherited: True when ``<version>`` is absent.
    """

    key: ModuleKey
    version: str
    descriptor_path: Path
    parent: Reference | None = None
    references: list[Reference] = field(default_factory=list)
    scm: ScmCoordinates | None = None
    name: str = ''
    version_inherited: bool = False

    @property
    def display_name(self) -> str:
        """The module's name, falling back to its artifactId."""
        return self.name or self.key.artifact_id


class Reactor:
    """An ordered, immutable set of reactor modules.

    Iteration yields modules in reactor order: parents and referenced
    reactor modules always precede the modules that need them.
    """

    def __init__(self, modules: Iterable[ReactorModule]) -> None:
        """Order ``modules`` topologically; the first module is the root."""
        discovered = list(modules)
        by_key: dict[ModuleKey, ReactorModule] = {}
        for module in discovered:
            if module.key in by_key:
                raise ValidationFailure(
                    E.REACTOR_DUPLICATE_MODULE,
                    f'Module {module.key} appears twice in the reactor '
                    f'({by_key[module.key].descriptor_path} and {module.descriptor_path})',
                )
            by_key[module.key] = module
        self._by_key = by_key
        self._root = discovered[0] if discovered else None
        self._ordered = _topo_order(discovered, by_key)

    def __iter__(self) -> Iterator[ReactorModule]:
        """Iterate in reactor order."""
        return iter(self._ordered)

    def __len__(self) -> int:
        """Return the number of modules."""
        return len(self._ordered)

    def __contains__(self, key: object) -> bool:
        """Return True if ``key`` is a module of this reactor."""
        return key in self._by_key

    @property
    def root(self) -> ReactorModule:
        """The module whose descriptor the reactor was loaded from."""
        if self._root is None:
            raise ValidationFailure(E.REACTOR_DESCRIPTOR_NOT_FOUND, 'The reactor is empty')
        return self._root

    @property
    def modules(self) -> list[ReactorModule]:
        """Modules in reactor order."""
        return list(self._ordered)

    def get(self, key: ModuleKey) -> ReactorModule | None:
        """Return the module for ``key``, or None if it is external."""
        return self._by_key.get(key)

    def is_internal(self, key: ModuleKey) -> bool:
        """Return True if ``key`` names a reactor module."""
        return key in self._by_key

    @property
    def descriptor_paths(self) -> list[Path]:
        """Descriptor files of every module, in reactor order."""
        return [m.descriptor_path for m in self._ordered]


def _dependencies_of(module: ReactorModule, by_key: dict[ModuleKey, ReactorModule]) -> list[ModuleKey]:
    """Return the internal keys ``module`` must come after."""
    deps: list[ModuleKey] = []
    refs = ([module.parent] if module.parent else []) + module.references
    for ref in refs:
        if ref.kind in _UNORDERED_KINDS:
            continue
        if ref.key in by_key and ref.key != module.key and ref.key not in deps:
            deps.append(ref.key)
    return deps


def _find_cycle(edges: dict[ModuleKey, list[ModuleKey]]) -> list[ModuleKey]:
    """Return one dependency cycle as a list of keys (DFS)."""
    white, gray, black = 0, 1, 2
    color = dict.fromkeys(edges, white)
    stack: list[ModuleKey] = []

    def _dfs(node: ModuleKey) -> list[ModuleKey]:
        color[node] = gray
        stack.append(node)
        for neighbor in edges[node]:
            if color[neighbor] == gray:
                return [*stack[stack.index(neighbor) :], neighbor]
            if color[neighbor] == white:
                found = _dfs(neighbor)
                if found:
                    return found
        stack.pop()
        color[node] = black
        return []

    for node in edges:
        if color[node] == white:
            cycle = _dfs(node)
            if cycle:
                return cycle
    return []


def _topo_order(modules: list[ReactorModule], by_key: dict[ModuleKey, ReactorModule]) -> list[ReactorModule]:
    """Kahn's algorithm; ties keep discovery order."""
    edges = {m.key: _dependencies_of(m, by_key) for m in modules}
    position = {m.key: i for i, m in enumerate(modules)}
    reverse: dict[ModuleKey, list[ModuleKey]] = {m.key: [] for m in modules}
    for key, deps in edges.items():
        for dep in deps:
            reverse[dep].append(key)

    in_degree = {key: len(deps) for key, deps in edges.items()}
    ready: deque[ModuleKey] = deque(m.key for m in modules if in_degree[m.key] == 0)
    ordered: list[ReactorModule] = []

    while ready:
        key = ready.popleft()
        ordered.append(by_key[key])
        released: list[ModuleKey] = []
        for dependent in reverse[key]:
            in_degree[dependent] -= 1
            if in_degree[dependent] == 0:
                released.append(dependent)
        ready.extend(sorted(released, key=position.__getitem__))

    if len(ordered) != len(modules):
        cycle = _find_cycle(edges)
        raise ValidationFailure(
            E.REACTOR_CYCLE_DETECTED,
            f'The reactor contains a cycle: {" -> ".join(str(k) for k in cycle)}',
            hint='Remove the circular parent or dependency reference.',
        )

    log.debug('reactor_ordered', modules=[str(m.key) for m in ordered])
    return ordered


def _local(tag: str) -> str:
    """Strip an ElementTree ``{namespace}`` prefix."""
    return tag.rsplit('}', 1)[-1]


def _child(elem: ET.Element | None, name: str) -> ET.Element | None:
    if elem is None:
        return None
    for child in elem:
        if isinstance(child.tag, str) and _local(child.tag) == name:
            return child
    return None


def _children(elem: ET.Element | None, name: str) -> list[ET.Element]:
    if elem is None:
        return []
    return [c for c in elem if isinstance(c.tag, str) and _local(c.tag) == name]


def _text(elem: ET.Element | None, name: str) -> str:
    found = _child(elem, name)
    return (found.text or '').strip() if found is not None else ''


def _path(elem: ET.Element | None, *names: str) -> ET.Element | None:
    for name in names:
        elem = _child(elem, name)
    return elem


class _Resolver:
    """Expands ``${...}`` expressions in versions and group ids."""

    def __init__(self, root: ET.Element, group_id: str, version: str, parent_version: str) -> None:
        self._values: dict[str, str] = {}
        properties = _child(root, 'properties')
        for prop in properties if properties is not None else []:
            if isinstance(prop.tag, str):
                self._values[_local(prop.tag)] = (prop.text or '').strip()
        for name in ('project.version', 'pom.version', 'version'):
            self._values[name] = version
        for name in ('project.parent.version', 'parent.version'):
            self._values[name] = parent_version
        for name in ('project.groupId', 'pom.groupId', 'groupId'):
            self._values[name] = group_id

    def resolve(self, value: str) -> str:
        """Substitute known expressions; unknown ones stay verbatim."""
        for _ in range(10):
            expanded = _EXPRESSION_RE.sub(lambda m: self._values.get(m.group(1), m.group(0)), value)
            if expanded == value:
                break
            value = expanded
        return value


def _artifact_refs(
    items: list[ET.Element],
    kind: RefKind,
    resolver: _Resolver,
    *,
    default_group: str = '',
) -> list[Reference]:
    refs = []
    for item in items:
        artifact_id = _text(item, 'artifactId')
        if not artifact_id:
            continue
        group_id = resolver.resolve(_text(item, 'groupId')) or default_group
        refs.append(Reference(ModuleKey(group_id, artifact_id), resolver.resolve(_text(item, 'version')), kind))
    return refs


def parse_descriptor(content: bytes, path: Path) -> tuple[ReactorModule, list[str]]:
    """Build a :class:`ReactorModule` from descriptor bytes.

    Args:
        content: Raw ``pom.xml`` bytes.
        path: Where the descriptor lives (recorded on the module).

    Returns:
        The module and the list of its ``<modules>`` entries.

    Raises:
        ExecutionFault: If the XML is malformed.
        ValidationFailure: If groupId or artifactId cannot be determined.
    """
    try:
        root = ET.fromstring(content)  # noqa: S314 - descriptors come from the local checkout
    except ET.ParseError as exc:
        raise ExecutionFault(
            E.REACTOR_PARSE_ERROR,
            f'Error reading descriptor {path}: {exc}',
            hint='Fix the XML syntax of the descriptor.',
        ) from exc

    parent_elem = _child(root, 'parent')
    parent_group = _text(parent_elem, 'groupId')
    parent_version = _text(parent_elem, 'version')

    group_id = _text(root, 'groupId') or parent_group
    artifact_id = _text(root, 'artifactId')
    own_version = _text(root, 'version')
    version = own_version or parent_version
    if not group_id or not artifact_id:
        raise ValidationFailure(
            E.REACTOR_PARSE_ERROR,
            f'Descriptor {path} does not declare groupId and artifactId',
        )

    resolver = _Resolver(root, group_id, version, parent_version)
    version = resolver.resolve(version)

    parent = None
    if parent_elem is not None:
        parent = Reference(
            ModuleKey(parent_group, _text(parent_elem, 'artifactId')),
            resolver.resolve(parent_version),
            RefKind.PARENT,
        )

    build = _child(root, 'build')
    references = [
        *_artifact_refs(_children(_child(root, 'dependencies'), 'dependency'), RefKind.DEPENDENCY, resolver),
        *_artifact_refs(
            _children(_path(root, 'dependencyManagement', 'dependencies'), 'dependency'),
            RefKind.MANAGED_DEPENDENCY,
            resolver,
        ),
        *_artifact_refs(
            _children(_child(build, 'plugins'), 'plugin'),
            RefKind.PLUGIN,
            resolver,
            default_group=DEFAULT_PLUGIN_GROUP,
        ),
        *_artifact_refs(
            _children(_path(build, 'pluginManagement', 'plugins'), 'plugin'),
            RefKind.MANAGED_PLUGIN,
            resolver,
            default_group=DEFAULT_PLUGIN_GROUP,
        ),
        *_artifact_refs(_children(_child(build, 'extensions'), 'extension'), RefKind.EXTENSION, resolver),
        *_artifact_refs(
            _children(_path(root, 'reporting', 'plugins'), 'plugin'),
            RefKind.REPORT_PLUGIN,
            resolver,
            default_group=DEFAULT_PLUGIN_GROUP,
        ),
    ]

    scm_elem = _child(root, 'scm')
    scm = None
    if scm_elem is not None:
        scm = ScmCoordinates(
            connection=_text(scm_elem, 'connection'),
            developer_connection=_text(scm_elem, 'developerConnection'),
            url=_text(scm_elem, 'url'),
            tag=_text(scm_elem, 'tag'),
        )

    module = ReactorModule(
        key=ModuleKey(group_id, artifact_id),
        version=version,
        descriptor_path=path,
        parent=parent,
        references=references,
        scm=scm,
        name=_text(root, 'name'),
        version_inherited=not own_version,
    )
    modules = [m.text.strip() for m in _children(_child(root, 'modules'), 'module') if m.text and m.text.strip()]
    return module, modules


async def load_reactor(root_dir: Path, *, descriptor_name: str = DEFAULT_DESCRIPTOR) -> Reactor:
    """Load every module reachable from ``root_dir/descriptor_name``.

    ``<module>`` entries may name a directory (its ``descriptor_name`` is
    read) or a descriptor file directly.

    Args:
        root_dir: Directory holding the root descriptor.
        descriptor_name: Descriptor file name.

    Returns:
        The ordered :class:`Reactor`.

    Raises:
        ExecutionFault: If a descriptor is missing or malformed.
        ValidationFailure: On duplicate modules or reference cycles.
    """
    root_descriptor = (root_dir / descriptor_name).resolve()
    pending: deque[Path] = deque([root_descriptor])
    seen: set[Path] = set()
    modules: list[ReactorModule] = []

    while pending:
        path = pending.popleft()
        if path in seen:
            continue
        seen.add(path)
        content = await read_bytes(path, code=E.REACTOR_DESCRIPTOR_NOT_FOUND)
        module, children = parse_descriptor(content, path)
        modules.append(module)
        for child in children:
            target = (path.parent / child).resolve()
            pending.append(target if target.suffix == '.xml' else target / descriptor_name)

    log.info('reactor_loaded', root=str(root_descriptor), modules=len(modules))
    return Reactor(modules)


__all__ = [
    'DEFAULT_DESCRIPTOR',
    'DEFAULT_PLUGIN_GROUP',
    'ModuleKey',
    'Reactor',
    'ReactorModule',
    'RefKind',
    'Reference',
    'ScmCoordinates',
    'load_reactor',
    'parse_descriptor',
]
