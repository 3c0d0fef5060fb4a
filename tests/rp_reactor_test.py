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

"""Tests for releaseprep.reactor."""

from __future__ import annotations

from pathlib import Path

import pytest
from releaseprep.errors import E, ExecutionFault, ValidationFailure
from releaseprep.reactor import (
    DEFAULT_PLUGIN_GROUP,
    ModuleKey,
    Reactor,
    ReactorModule,
    RefKind,
    Reference,
    load_reactor,
    parse_descriptor,
)

from tests._fakes import KEY_A, KEY_B, write_reactor


def _module(artifact_id: str, *deps: str, parent: str = '') -> ReactorModule:
    return ReactorModule(
        key=ModuleKey('g', artifact_id),
        version='1.0-SNAPSHOT',
        descriptor_path=Path(f'/repo/{artifact_id}/pom.xml'),
        parent=Reference(ModuleKey('g', parent), '1.0-SNAPSHOT', RefKind.PARENT) if parent else None,
        references=[Reference(ModuleKey('g', d), '1.0-SNAPSHOT', RefKind.DEPENDENCY) for d in deps],
    )


class TestModuleKey:
    """Tests for ModuleKey."""

    def test_str(self) -> None:
        """Keys render as group:artifact."""
        assert str(ModuleKey('com.example', 'a')) == 'com.example:a'

    def test_parse(self) -> None:
        """parse() inverts str()."""
        assert ModuleKey.parse('com.example:a') == ModuleKey('com.example', 'a')

    @pytest.mark.parametrize('text', ['no-colon', ':a', 'g:'])
    def test_parse_invalid(self, text: str) -> None:
        """Keys need both halves."""
        with pytest.raises(ValueError, match='groupId:artifactId'):
            ModuleKey.parse(text)


class TestParseDescriptor:
    """Tests for parse_descriptor."""

    def test_inherits_group_and_version(self) -> None:
        """groupId and version fall back to the parent."""
        content = b"""<project>
          <parent><groupId>g</groupId><artifactId>p</artifactId><version>2.0-SNAPSHOT</version></parent>
          <artifactId>child</artifactId>
        </project>"""
        module, modules = parse_descriptor(content, Path('/repo/child/pom.xml'))

        assert module.key == ModuleKey('g', 'child')
        assert module.version == '2.0-SNAPSHOT'
        assert module.version_inherited is True
        assert module.parent == Reference(ModuleKey('g', 'p'), '2.0-SNAPSHOT', RefKind.PARENT)
        assert modules == []

    def test_namespaced_descriptor(self) -> None:
        """Descriptors with the POM namespace parse the same way."""
        content = b"""<project xmlns="http://maven.apache.org/POM/4.0.0">
          <groupId>g</groupId><artifactId>a</artifactId><version>1.0</version>
          <modules><module>core</module><module> api </module></modules>
        </project>"""
        module, modules = parse_descriptor(content, Path('/repo/pom.xml'))

        assert module.key == ModuleKey('g', 'a')
        assert modules == ['core', 'api']

    def test_references_of_every_kind(self) -> None:
        """Dependencies, plugins, extensions and reports are collected."""
        content = b"""<project>
          <groupId>g</groupId><artifactId>a</artifactId><version>1.0-SNAPSHOT</version>
          <properties><lib.version>3.1</lib.version></properties>
          <dependencies>
            <dependency><groupId>x</groupId><artifactId>lib</artifactId><version>${lib.version}</version></dependency>
            <dependency><groupId>${project.groupId}</groupId><artifactId>b</artifactId>
              <version>${project.version}</version></dependency>
          </dependencies>
          <dependencyManagement><dependencies>
            <dependency><groupId>x</groupId><artifactId>managed</artifactId><version>1</version></dependency>
          </dependencies></dependencyManagement>
          <build>
            <plugins><plugin><artifactId>maven-jar-plugin</artifactId><version>3.3.0</version></plugin></plugins>
            <pluginManagement><plugins><plugin><artifactId>mp</artifactId></plugin></plugins></pluginManagement>
            <extensions><extension><groupId>e</groupId><artifactId>ext</artifactId><version>1</version></extension>
            </extensions>
          </build>
          <reporting><plugins><plugin><artifactId>rp</artifactId><version>2</version></plugin></plugins></reporting>
        </project>"""
        module, _ = parse_descriptor(content, Path('/repo/pom.xml'))

        assert [(str(r.key), r.version, r.kind) for r in module.references] == [
            ('x:lib', '3.1', RefKind.DEPENDENCY),
            ('g:b', '1.0-SNAPSHOT', RefKind.DEPENDENCY),
            ('x:managed', '1', RefKind.MANAGED_DEPENDENCY),
            (f'{DEFAULT_PLUGIN_GROUP}:maven-jar-plugin', '3.3.0', RefKind.PLUGIN),
            (f'{DEFAULT_PLUGIN_GROUP}:mp', '', RefKind.MANAGED_PLUGIN),
            ('e:ext', '1', RefKind.EXTENSION),
            (f'{DEFAULT_PLUGIN_GROUP}:rp', '2', RefKind.REPORT_PLUGIN),
        ]

    def test_scm_section(self) -> None:
        """The <scm> coordinates are captured."""
        content = b"""<project><groupId>g</groupId><artifactId>a</artifactId><version>1</version>
          <scm><connection>scm:git:https://h/r.git</connection><tag>HEAD</tag></scm></project>"""
        module, _ = parse_descriptor(content, Path('/repo/pom.xml'))

        assert module.scm is not None
        assert module.scm.connection == 'scm:git:https://h/r.git'
        assert module.scm.developer_connection == ''
        assert module.scm.tag == 'HEAD'

    def test_malformed(self) -> None:
        """Broken XML is an execution fault."""
        with pytest.raises(ExecutionFault) as exc_info:
            parse_descriptor(b'<project>', Path('/repo/pom.xml'))
        assert exc_info.value.code == E.REACTOR_PARSE_ERROR
        assert exc_info.value.cause is not None

    def test_missing_coordinates(self) -> None:
        """A descriptor without groupId cannot join the reactor."""
        with pytest.raises(ValidationFailure):
            parse_descriptor(b'<project><artifactId>a</artifactId></project>', Path('/repo/pom.xml'))


class TestReactorOrder:
    """Tests for Reactor ordering."""

    def test_parents_and_dependencies_first(self) -> None:
        """Modules come after everything they reference."""
        reactor = Reactor([
            _module('root'),
            _module('app', 'core', parent='root'),
            _module('core', parent='root'),
        ])

        assert [m.key.artifact_id for m in reactor] == ['root', 'core', 'app']
        assert reactor.root.key.artifact_id == 'root'

    def test_external_references_ignored(self) -> None:
        """References outside the reactor do not affect ordering."""
        reactor = Reactor([_module('a', 'outside'), _module('b')])

        assert [m.key.artifact_id for m in reactor] == ['a', 'b']
        assert not reactor.is_internal(ModuleKey('g', 'outside'))

    def test_cycle(self) -> None:
        """A dependency cycle is reported."""
        with pytest.raises(ValidationFailure, match='cycle') as exc_info:
            Reactor([_module('a', 'b'), _module('b', 'a')])
        assert exc_info.value.code == E.REACTOR_CYCLE_DETECTED

    def test_managed_dependencies_do_not_order(self) -> None:
        """A parent managing its children's versions is not a cycle."""
        parent = _module('parent')
        parent.references.append(Reference(ModuleKey('g', 'child'), '1.0-SNAPSHOT', RefKind.MANAGED_DEPENDENCY))
        reactor = Reactor([parent, _module('child', parent='parent')])

        assert [m.key.artifact_id for m in reactor] == ['parent', 'child']

    def test_duplicate(self) -> None:
        """The same key twice is rejected."""
        with pytest.raises(ValidationFailure) as exc_info:
            Reactor([_module('a'), _module('a')])
        assert exc_info.value.code == E.REACTOR_DUPLICATE_MODULE

    def test_empty_root(self) -> None:
        """An empty reactor has no root."""
        with pytest.raises(ValidationFailure):
            _ = Reactor([]).root


class TestLoadReactor:
    """Tests for load_reactor."""

    @pytest.mark.asyncio()
    async def test_loads_modules(self, tmp_path: Path) -> None:
        """The root and its <modules> are loaded in reactor order."""
        pom_a, pom_b = write_reactor(tmp_path)

        reactor = await load_reactor(tmp_path)

        assert [m.key for m in reactor] == [KEY_A, KEY_B]
        assert reactor.descriptor_paths == [pom_a.resolve(), pom_b.resolve()]
        assert reactor.root.display_name == 'Demo Parent'
        assert reactor.get(KEY_B).display_name == 'b'  # type: ignore[union-attr]

    @pytest.mark.asyncio()
    async def test_missing_module(self, tmp_path: Path) -> None:
        """A listed module without a descriptor is an execution fault."""
        (tmp_path / 'pom.xml').write_text(
            '<project><groupId>g</groupId><artifactId>a</artifactId><version>1</version>'
            '<modules><module>gone</module></modules></project>',
            encoding='utf-8',
        )

        with pytest.raises(ExecutionFault) as exc_info:
            await load_reactor(tmp_path)
        assert exc_info.value.code == E.REACTOR_DESCRIPTOR_NOT_FOUND
