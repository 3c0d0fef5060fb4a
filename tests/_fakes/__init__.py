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

"""Shared test fakes for releaseprep.

Provides reusable fake implementations of the VCS, Prompter and
GoalRunner protocols so that individual test modules don't need to
duplicate boilerplate classes.

Usage::

    from tests._fakes import OK, FakeVCS, FakePrompter, settings_with

    vcs = FakeVCS(changed=['src/Main.java'])
    settings = settings_with(vcs)
"""

from tests._fakes._goals import FakeGoalRunner as FakeGoalRunner
from tests._fakes._poms import (
    EXTERNAL_SNAPSHOT_DEPENDENCY as EXTERNAL_SNAPSHOT_DEPENDENCY,
    KEY_APP as KEY_APP,
    KEY_A as KEY_A,
    KEY_B as KEY_B,
    KEY_C as KEY_C,
    KEY_CORE as KEY_CORE,
    KEY_ROOT as KEY_ROOT,
    reference_section as reference_section,
    write_app_reactor as write_app_reactor,
    write_reactor as write_reactor,
)
from tests._fakes._prompter import FakePrompter as FakePrompter
from tests._fakes._vcs import OK as OK, FakeVCS as FakeVCS, settings_with as settings_with

__all__ = [
    'EXTERNAL_SNAPSHOT_DEPENDENCY',
    'KEY_APP',
    'KEY_A',
    'KEY_B',
    'KEY_C',
    'KEY_CORE',
    'KEY_ROOT',
    'OK',
    'FakeGoalRunner',
    'FakePrompter',
    'FakeVCS',
    'reference_section',
    'settings_with',
    'write_reactor',
    'write_app_reactor',
]
