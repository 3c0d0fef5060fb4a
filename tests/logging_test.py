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

"""Tests for releaseprep.logging."""

from __future__ import annotations

import json
import logging

import pytest
import structlog
from releaseprep.logging import configure_logging, get_logger, phase_context


def _records(err: str) -> list[dict[str, object]]:
    return [json.loads(line) for line in err.splitlines() if line.startswith('{')]


class TestConfigureLogging:
    """Tests for configure_logging."""

    @pytest.mark.parametrize(
        ('kwargs', 'level'),
        [
            ({}, logging.INFO),
            ({'verbose': True}, logging.DEBUG),
            ({'quiet': True}, logging.WARNING),
            ({'quiet': True, 'verbose': True}, logging.WARNING),
        ],
    )
    def test_levels(self, kwargs: dict[str, bool], level: int) -> None:
        """Quiet wins over verbose; the default is INFO."""
        configure_logging(**kwargs)
        assert logging.root.level == level

    def test_json_records(self, capsys: pytest.CaptureFixture[str]) -> None:
        """JSON mode writes one object per event with its fields."""
        configure_logging(json_log=True)

        get_logger('releaseprep.descriptor').info('descriptor_rewritten', module='com.example:a', edits=3)

        (record,) = _records(capsys.readouterr().err)
        assert record['event'] == 'descriptor_rewritten'
        assert record['module'] == 'com.example:a'
        assert record['edits'] == 3
        assert record['level'] == 'info'
        assert record['logger'] == 'releaseprep.descriptor'

    def test_quiet_drops_progress(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Quiet mode keeps warnings and drops routine progress lines."""
        configure_logging(quiet=True, json_log=True)
        log = get_logger('releaseprep.pipeline')

        log.info('phase_completed', phase='map-release-versions')
        log.warning('snapshot_reference', reference='org.other:c:2.0-SNAPSHOT')

        assert [r['event'] for r in _records(capsys.readouterr().err)] == ['snapshot_reference']


class TestPhaseContext:
    """Tests for phase_context."""

    def test_binds_and_unbinds(self) -> None:
        """Phase and run mode are bound only inside the block."""
        with phase_context('scm-tag', dry_run=True):
            bound = structlog.contextvars.get_contextvars()
            assert (bound['phase'], bound['dry_run']) == ('scm-tag', True)
        assert 'phase' not in structlog.contextvars.get_contextvars()

    def test_events_carry_phase(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Events logged inside a phase name it; events after it do not."""
        configure_logging(json_log=True)
        log = get_logger('releaseprep.phases.scm')

        with phase_context('scm-commit-release', dry_run=False):
            log.info('commit', files=2)
        log.info('after')

        inside, after = _records(capsys.readouterr().err)
        assert (inside['phase'], inside['dry_run']) == ('scm-commit-release', False)
        assert 'phase' not in after
