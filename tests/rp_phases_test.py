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


"""Tests for the check, version, rewrite and goal phases."""

from __future__ import annotations

from pathlib import Path

import pytest
from releaseprep.backends._run import CalledProcessError
from releaseprep.backends.vcs import ScmFileSet
from releaseprep.config import ReleasePrepConfig
from releaseprep.errors import (
    E,
    ExecutionFault,
    NoSuchProviderError,
    SnapshotReferenceError,
    UnmappedVersionError,
    ValidationFailure,
)
from releaseprep.phases import (
    PHASES,
    CheckDependencySnapshotsPhase,
    CheckDescriptorsPhase,
    InputVariablesPhase,
    MapDevelopmentVersionsPhase,
    MapReleaseVersionsPhase,
    ReleasePhase,
    RewriteDescriptorsForDevelopmentPhase,
    RewriteDescriptorsForReleasePhase,
    RunPreparationGoalsPhase,
)
from releaseprep.prompter import PromptError
from releaseprep.reactor import Reactor, load_reactor
from releaseprep.state import ReleaseState

from tests._fakes import (
    EXTERNAL_SNAPSHOT_DEPENDENCY,
    KEY_A,
    KEY_B,
    FakeGoalRunner,
    FakePrompter,
    FakeVCS,
    settings_with,
    write_reactor,
)

GIT_URL = 'scm:git:ssh://git@example.com/repo.git'


def _mapped(state: ReleaseState) -> ReleaseState:
    for key in (KEY_A, KEY_B):
        state.map_release_version(key, '1.0')
        state.map_development_version(key, '1.1-SNAPSHOT')
    state.scm_release_label = 'a-1.0'
    return state


async def _reactor(tmp_path: Path, **kwargs: object) -> Reactor:
    write_reactor(tmp_path, **kwargs)  # type: ignore[arg-type]
    return await load_reactor(tmp_path)


class TestPhaseRegistry:
    """Tests for the PHASES mapping."""

    def test_every_phase_satisfies_protocol(self) -> None:
        """Each registered class builds a ReleasePhase with its own name."""
        for name, cls in PHASES.items():
            phase = cls()
            assert isinstance(phase, ReleasePhase)
            assert phase.name == name
            assert repr(phase) == f'<{cls.__name__} {name}>'


class TestCheckDescriptorsPhase:
    """Tests for check-descriptors."""

    @pytest.mark.asyncio()
    async def test_scm_url_from_root(self, tmp_path: Path) -> None:
        """The developer connection of the root module becomes the SCM URL."""
        reactor = await _reactor(tmp_path)
        state = ReleaseState(working_directory=tmp_path)

        await CheckDescriptorsPhase().execute(state, settings_with(), reactor)

        assert state.scm_url == GIT_URL

    @pytest.mark.asyncio()
    async def test_caller_url_wins(self, tmp_path: Path) -> None:
        """An SCM URL on the state is kept."""
        reactor = await _reactor(tmp_path)
        state = ReleaseState(working_directory=tmp_path, scm_url='scm:git:https://mirror/repo.git')

        await CheckDescriptorsPhase().execute(state, settings_with(), reactor)

        assert state.scm_url == 'scm:git:https://mirror/repo.git'

    @pytest.mark.asyncio()
    async def test_no_scm_url(self, tmp_path: Path) -> None:
        """Without any SCM URL the check fails."""
        reactor = await _reactor(tmp_path, scm=False)

        with pytest.raises(ValidationFailure) as exc_info:
            await CheckDescriptorsPhase().execute(ReleaseState(working_directory=tmp_path), settings_with(), reactor)
        assert exc_info.value.code == E.SCM_URL_MISSING

    @pytest.mark.asyncio()
    async def test_unknown_provider(self, tmp_path: Path) -> None:
        """An unregistered scheme is an execution fault caused by the registry."""
        reactor = await _reactor(tmp_path)
        state = ReleaseState(working_directory=tmp_path, scm_url='scm:cvs:pserver:h:/cvs')

        with pytest.raises(ExecutionFault) as exc_info:
            await CheckDescriptorsPhase().execute(state, settings_with(), reactor)
        assert exc_info.value.code == E.SCM_NO_SUCH_PROVIDER
        assert isinstance(exc_info.value.cause, NoSuchProviderError)

    @pytest.mark.asyncio()
    async def test_nothing_to_release(self, tmp_path: Path) -> None:
        """A reactor without snapshots cannot be released."""
        pom_a, pom_b = write_reactor(tmp_path)
        for pom in (pom_a, pom_b):
            pom.write_text(pom.read_text(encoding='utf-8').replace('1.0-SNAPSHOT', '1.0'), encoding='utf-8')
        reactor = await load_reactor(tmp_path)

        with pytest.raises(ValidationFailure) as exc_info:
            await CheckDescriptorsPhase().simulate(ReleaseState(working_directory=tmp_path), settings_with(), reactor)
        assert exc_info.value.code == E.SNAPSHOT_NONE_IN_REACTOR


class TestCheckDependencySnapshotsPhase:
    """Tests for check-dependency-snapshots."""

    @pytest.mark.asyncio()
    async def test_external_snapshot(self, tmp_path: Path) -> None:
        """An external snapshot stops the release."""
        reactor = await _reactor(tmp_path, extra_dependency=EXTERNAL_SNAPSHOT_DEPENDENCY)
        state = _mapped(ReleaseState(working_directory=tmp_path))

        with pytest.raises(SnapshotReferenceError):
            await CheckDependencySnapshotsPhase().execute(state, settings_with(), reactor)

    @pytest.mark.asyncio()
    async def test_mapped_reactor_passes(self, tmp_path: Path) -> None:
        """Internal snapshots with release versions pass."""
        reactor = await _reactor(tmp_path)
        state = _mapped(ReleaseState(working_directory=tmp_path))

        await CheckDependencySnapshotsPhase().execute(state, settings_with(), reactor)


class TestVersionPhases:
    """Tests for the version mapping phases."""

    @pytest.mark.asyncio()
    async def test_release_then_development(self, tmp_path: Path) -> None:
        """Each phase fills only its own map."""
        reactor = await _reactor(tmp_path)
        state = ReleaseState(working_directory=tmp_path, interactive=False)
        settings = settings_with()

        await MapReleaseVersionsPhase().execute(state, settings, reactor)
        assert state.release_versions == {KEY_A: '1.0', KEY_B: '1.0'}
        assert state.development_versions == {}

        await MapDevelopmentVersionsPhase().execute(state, settings, reactor)
        assert state.development_versions == {KEY_A: '1.1-SNAPSHOT', KEY_B: '1.1-SNAPSHOT'}


class TestInputVariablesPhase:
    """Tests for input-variables."""

    @pytest.mark.asyncio()
    async def test_default_label(self, tmp_path: Path) -> None:
        """tag_format is applied to the root module."""
        reactor = await _reactor(tmp_path)
        state = ReleaseState(working_directory=tmp_path, interactive=False)
        state.map_release_version(KEY_A, '1.0')

        await InputVariablesPhase().execute(state, settings_with(), reactor)

        assert state.scm_release_label == 'a-1.0'

    @pytest.mark.asyncio()
    async def test_custom_format(self, tmp_path: Path) -> None:
        """Every placeholder is available."""
        reactor = await _reactor(tmp_path)
        state = ReleaseState(working_directory=tmp_path, interactive=False)
        state.map_release_version(KEY_A, '1.0')
        settings = settings_with(config=ReleasePrepConfig(tag_format='{group_id}/{artifact_id}/v{version}'))

        await InputVariablesPhase().execute(state, settings, reactor)

        assert state.scm_release_label == 'com.example/a/v1.0'

    @pytest.mark.asyncio()
    async def test_interactive(self, tmp_path: Path) -> None:
        """The label is asked for with the default offered."""
        reactor = await _reactor(tmp_path)
        state = ReleaseState(working_directory=tmp_path, interactive=True)
        state.map_release_version(KEY_A, '1.0')
        prompter = FakePrompter(['release-1'])

        await InputVariablesPhase().execute(state, settings_with(prompter=prompter), reactor)

        assert prompter.questions == [
            ('What is the SCM release tag or label for "Demo Parent"? (com.example:a)', 'a-1.0'),
        ]
        assert state.scm_release_label == 'release-1'

    @pytest.mark.asyncio()
    async def test_existing_label_kept(self, tmp_path: Path) -> None:
        """A label already on the state is never asked for again."""
        reactor = await _reactor(tmp_path)
        state = ReleaseState(working_directory=tmp_path, interactive=True, scm_release_label='given')
        prompter = FakePrompter()

        await InputVariablesPhase().execute(state, settings_with(prompter=prompter), reactor)

        assert state.scm_release_label == 'given'
        assert prompter.questions == []

    @pytest.mark.asyncio()
    async def test_unmapped_root(self, tmp_path: Path) -> None:
        """The label needs the root's release version."""
        reactor = await _reactor(tmp_path)

        with pytest.raises(UnmappedVersionError) as exc_info:
            await InputVariablesPhase().execute(ReleaseState(working_directory=tmp_path), settings_with(), reactor)
        assert exc_info.value.key == KEY_A

    @pytest.mark.asyncio()
    async def test_prompt_failure(self, tmp_path: Path) -> None:
        """A failing prompter is an execution fault."""
        reactor = await _reactor(tmp_path)
        state = ReleaseState(working_directory=tmp_path, interactive=True)
        state.map_release_version(KEY_A, '1.0')

        with pytest.raises(ExecutionFault) as exc_info:
            await InputVariablesPhase().execute(state, settings_with(prompter=FakePrompter(fail=True)), reactor)
        assert exc_info.value.code == E.VERSION_PROMPT_FAILED
        assert isinstance(exc_info.value.cause, PromptError)


class TestRewritePhases:
    """Tests for the descriptor rewrite phases."""

    @pytest.mark.asyncio()
    async def test_release_execute(self, tmp_path: Path) -> None:
        """Descriptors get release versions and the tag; originals are backed up."""
        reactor = await _reactor(tmp_path)
        pom_a, pom_b = reactor.descriptor_paths
        original_a = pom_a.read_bytes()
        state = _mapped(ReleaseState(working_directory=tmp_path, scm_url=GIT_URL))

        await RewriteDescriptorsForReleasePhase().execute(state, settings_with(), reactor)

        text_a = pom_a.read_text(encoding='utf-8')
        text_b = pom_b.read_text(encoding='utf-8')
        assert '<version>1.0</version>' in text_a
        assert '<tag>a-1.0</tag>' in text_a
        assert '1.0-SNAPSHOT' not in text_b
        assert '<version>4.13.2</version>' in text_b
        assert (tmp_path / 'pom.xml.backup').read_bytes() == original_a
        assert not (tmp_path / 'pom.xml.tag').exists()

    @pytest.mark.asyncio()
    async def test_release_simulate(self, tmp_path: Path) -> None:
        """Simulation writes .tag shadows and leaves the descriptors alone."""
        reactor = await _reactor(tmp_path)
        pom_a, pom_b = reactor.descriptor_paths
        before = (pom_a.read_bytes(), pom_b.read_bytes())
        state = _mapped(ReleaseState(working_directory=tmp_path, scm_url=GIT_URL))

        await RewriteDescriptorsForReleasePhase().simulate(state, settings_with(), reactor)

        assert (pom_a.read_bytes(), pom_b.read_bytes()) == before
        assert '<tag>a-1.0</tag>' in (tmp_path / 'pom.xml.tag').read_text(encoding='utf-8')
        assert (tmp_path / 'b' / 'pom.xml.tag').exists()
        assert not (tmp_path / 'pom.xml.backup').exists()

    @pytest.mark.asyncio()
    async def test_unmapped_module_writes_nothing(self, tmp_path: Path) -> None:
        """A failure on the second module leaves the first untouched too."""
        reactor = await _reactor(tmp_path)
        pom_a, _ = reactor.descriptor_paths
        before = pom_a.read_bytes()
        state = ReleaseState(working_directory=tmp_path, scm_url=GIT_URL, scm_release_label='a-1.0')
        state.map_release_version(KEY_A, '1.0')

        with pytest.raises(UnmappedVersionError) as exc_info:
            await RewriteDescriptorsForReleasePhase().execute(state, settings_with(), reactor)

        assert exc_info.value.key == KEY_B
        assert pom_a.read_bytes() == before
        assert not list(tmp_path.rglob('*.backup'))

    @pytest.mark.asyncio()
    async def test_development_restores_scm(self, tmp_path: Path) -> None:
        """After release and development rewrites the <scm> tag is back to HEAD."""
        reactor = await _reactor(tmp_path)
        pom_a, pom_b = reactor.descriptor_paths
        state = _mapped(ReleaseState(working_directory=tmp_path, scm_url=GIT_URL))
        settings = settings_with()

        await RewriteDescriptorsForReleasePhase().execute(state, settings, reactor)
        await RewriteDescriptorsForDevelopmentPhase().execute(state, settings, reactor)

        text_a = pom_a.read_text(encoding='utf-8')
        assert '<version>1.1-SNAPSHOT</version>' in text_a
        assert '<tag>HEAD</tag>' in text_a
        assert pom_b.read_text(encoding='utf-8').count('1.1-SNAPSHOT') == 3

    @pytest.mark.asyncio()
    async def test_edit_mode(self, tmp_path: Path) -> None:
        """Edit mode asks the provider to open each descriptor before writing."""
        reactor = await _reactor(tmp_path)
        pom_a, pom_b = reactor.descriptor_paths
        vcs = FakeVCS()
        state = _mapped(ReleaseState(working_directory=tmp_path, scm_url=GIT_URL, use_edit_mode=True))

        await RewriteDescriptorsForReleasePhase().execute(state, settings_with(vcs), reactor)

        assert vcs.operations == ['edit', 'edit']
        assert vcs.calls[0][1][1] == ScmFileSet(pom_a.parent, ('pom.xml',))
        assert vcs.calls[1][1][1] == ScmFileSet(pom_b.parent, ('pom.xml',))

    @pytest.mark.asyncio()
    async def test_edit_mode_simulate(self, tmp_path: Path) -> None:
        """Simulation never asks the provider for anything."""
        reactor = await _reactor(tmp_path)
        vcs = FakeVCS()
        state = _mapped(ReleaseState(working_directory=tmp_path, scm_url=GIT_URL, use_edit_mode=True))

        await RewriteDescriptorsForReleasePhase().simulate(state, settings_with(vcs), reactor)

        assert vcs.calls == []

    @pytest.mark.asyncio()
    async def test_clean_restores(self, tmp_path: Path) -> None:
        """clean() puts the original bytes back and removes every shadow."""
        reactor = await _reactor(tmp_path)
        pom_a, pom_b = reactor.descriptor_paths
        before = (pom_a.read_bytes(), pom_b.read_bytes())
        state = _mapped(ReleaseState(working_directory=tmp_path, scm_url=GIT_URL))
        phase = RewriteDescriptorsForReleasePhase()
        await phase.execute(state, settings_with(), reactor)
        await RewriteDescriptorsForDevelopmentPhase().simulate(state, settings_with(), reactor)

        await phase.clean(reactor)

        assert (pom_a.read_bytes(), pom_b.read_bytes()) == before
        assert not list(tmp_path.rglob('pom.xml.*'))


class TestRunPreparationGoalsPhase:
    """Tests for run-preparation-goals."""

    @pytest.mark.asyncio()
    async def test_configured_goals(self, tmp_path: Path) -> None:
        """Without goals on the state the configured ones run."""
        reactor = await _reactor(tmp_path)
        runner = FakeGoalRunner()
        state = ReleaseState(working_directory=tmp_path, additional_arguments='-Pfast')

        await RunPreparationGoalsPhase().execute(state, settings_with(goal_runner=runner), reactor)

        assert runner.runs == [
            {
                'working_directory': tmp_path,
                'goals': 'clean verify',
                'additional_arguments': '-Pfast',
                'dry_run': False,
            }
        ]

    @pytest.mark.asyncio()
    async def test_simulate_passes_dry_run(self, tmp_path: Path) -> None:
        """State goals win and simulation is a dry run."""
        reactor = await _reactor(tmp_path)
        runner = FakeGoalRunner()
        state = ReleaseState(working_directory=tmp_path, preparation_goals='install')

        await RunPreparationGoalsPhase().simulate(state, settings_with(goal_runner=runner), reactor)

        assert runner.runs[0]['goals'] == 'install'
        assert runner.runs[0]['dry_run'] is True

    @pytest.mark.asyncio()
    async def test_blank_goals_skipped(self, tmp_path: Path) -> None:
        """Whitespace-only goals run nothing."""
        reactor = await _reactor(tmp_path)
        runner = FakeGoalRunner()

        await RunPreparationGoalsPhase().execute(
            ReleaseState(working_directory=tmp_path, preparation_goals='  '),
            settings_with(goal_runner=runner),
            reactor,
        )

        assert runner.runs == []

    @pytest.mark.asyncio()
    async def test_build_failure(self, tmp_path: Path) -> None:
        """A failing build is an execution fault chained to the process error."""
        reactor = await _reactor(tmp_path)
        runner = FakeGoalRunner(raises=CalledProcessError(1, ['mvn', 'verify']))

        with pytest.raises(ExecutionFault) as exc_info:
            await RunPreparationGoalsPhase().execute(
                ReleaseState(working_directory=tmp_path), settings_with(goal_runner=runner), reactor
            )
        assert exc_info.value.code == E.GOALS_FAILED
        assert isinstance(exc_info.value.cause, CalledProcessError)
