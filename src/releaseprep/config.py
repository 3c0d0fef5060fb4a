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

"""Configuration reader for releaseprep.

Reads ``releaseprep.toml`` from the working directory and returns a
validated :class:`ReleasePrepConfig` dataclass. The file uses flat
top-level keys.

Key Concepts (ELI5)::

    ┌─────────────────────────┬────────────────────────────────────────────┐
    │ Concept                 │ ELI5 Explanation                           │
    ├─────────────────────────┼────────────────────────────────────────────┤
    │ ReleasePrepConfig       │ The knobs for a prepare run: tag format,  │
    │                         │ commit prefix, which goals to run.        │
    ├─────────────────────────┼────────────────────────────────────────────┤
    │ load_config()           │ Read releaseprep.toml + validate it.      │
    │                         │ No file means all defaults.               │
    ├─────────────────────────┼────────────────────────────────────────────┤
    │ Fuzzy key matching      │ If you typo a config key, we suggest the  │
    │                         │ closest valid key.                        │
    └─────────────────────────┴────────────────────────────────────────────┘

Supported keys in ``releaseprep.toml``::

    descriptor_name      = "pom.xml"
    scm_comment_prefix   = "[releaseprep] "
    tag_format           = "{artifact_id}-{version}"   # also {group_id}
    preparation_goals    = "clean verify"
    additional_arguments = "-Pfast"
    add_schema           = false
    use_edit_mode        = false
    interactive          = true
    push_changes         = false
    phases               = ["check-descriptors", "..."]

Usage::

    from releaseprep.config import initial_state, load_config

    cfg = load_config(Path('.'))
    state = initial_state(cfg, Path('.'))
"""

from __future__ import annotations

import difflib
import string
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import tomlkit
import tomlkit.exceptions

from releaseprep.errors import E, ReleasePrepError
from releaseprep.logging import get_logger
from releaseprep.reactor import DEFAULT_DESCRIPTOR
from releaseprep.state import ReleaseState

logger = get_logger(__name__)

CONFIG_FILENAME = 'releaseprep.toml'

DEFAULT_PREPARE_PHASES: tuple[str, ...] = (
    'check-descriptors',
    'scm-check-modifications',
    'map-release-versions',
    'map-development-versions',
    'check-dependency-snapshots',
    'input-variables',
    'rewrite-descriptors-for-release',
    'run-preparation-goals',
    'scm-commit-release',
    'scm-tag',
    'rewrite-descriptors-for-development',
    'scm-commit-development',
)

_TAG_FIELDS = frozenset({'artifact_id', 'group_id', 'version'})

_TYPE_MAP: dict[str, type | tuple[type, ...]] = {
    'descriptor_name': str,
    'scm_comment_prefix': str,
    'tag_format': str,
    'preparation_goals': str,
    'additional_arguments': str,
    'add_schema': bool,
    'use_edit_mode': bool,
    'interactive': bool,
    'push_changes': bool,
    'phases': list,
}

VALID_KEYS: frozenset[str] = frozenset(_TYPE_MAP)


@dataclass(frozen=True)
class ReleasePrepConfig:
    """Validated settings from ``releaseprep.toml``.

    Attributes:
        descriptor_name: File name of each module's descriptor.
        scm_comment_prefix: Prepended to every commit and tag message.
        tag_format: Default release label; ``{artifact_id}``,
            ``{group_id}`` and ``{version}`` refer to the root module.
        preparation_goals: Goals run against the release descriptors.
        additional_arguments: Extra arguments for the goal runner.
        add_schema: Add the POM namespace and schema to rewritten roots.
        use_edit_mode: Ask the VCS to make descriptors writable first.
        interactive: Prompt for versions and the label.
        push_changes: Push commits and tags (DVCS providers).
        phases: Phase names, in order.
        config_path: The file the settings came from, if any.
    """

    descriptor_name: str = DEFAULT_DESCRIPTOR
    scm_comment_prefix: str = '[releaseprep] '
    tag_format: str = '{artifact_id}-{version}'
    preparation_goals: str = 'clean verify'
    additional_arguments: str = ''
    add_schema: bool = False
    use_edit_mode: bool = False
    interactive: bool = True
    push_changes: bool = False
    phases: tuple[str, ...] = field(default=DEFAULT_PREPARE_PHASES)
    config_path: Path | None = None


def _suggest_key(unknown: str) -> str | None:
    """Return the closest valid key for a typo, or None."""
    matches = difflib.get_close_matches(unknown, VALID_KEYS, n=1, cutoff=0.6)
    return matches[0] if matches else None


def _validate_value_type(key: str, value: Any) -> None:  # noqa: ANN401 - dynamic config values
    """Raise if a config value has the wrong type."""
    expected = _TYPE_MAP[key]
    if not isinstance(value, expected):
        type_name = expected.__name__ if isinstance(expected, type) else str(expected)
        raise ReleasePrepError(
            code=E.CONFIG_INVALID_VALUE,
            message=f"'{key}' must be {type_name}, got {type(value).__name__}",
            hint=f'Check the value of {key} in {CONFIG_FILENAME}.',
        )


def _validate_tag_format(value: str) -> None:
    try:
        names = {name for _, name, _, _ in string.Formatter().parse(value) if name is not None}
    except ValueError as exc:
        raise ReleasePrepError(
            code=E.CONFIG_INVALID_VALUE,
            message=f"tag_format {value!r} is not a valid format string: {exc}",
        ) from exc
    unknown = sorted(names - _TAG_FIELDS)
    if unknown:
        raise ReleasePrepError(
            code=E.CONFIG_INVALID_VALUE,
            message=f'tag_format uses unknown placeholder(s): {", ".join(unknown)}',
            hint='Use {artifact_id}, {group_id} and {version}.',
        )


def _validate_phases(items: list[object]) -> tuple[str, ...]:
    for item in items:
        if not isinstance(item, str):
            raise ReleasePrepError(
                code=E.CONFIG_INVALID_VALUE,
                message=f"'phases' entries must be strings, got {type(item).__name__}",
            )
    if not items:
        raise ReleasePrepError(code=E.CONFIG_INVALID_VALUE, message="'phases' must not be empty")
    return tuple(str(item) for item in items)


def load_config(working_directory: Path) -> ReleasePrepConfig:
    """Load and validate ``releaseprep.toml``.

    Args:
        working_directory: Directory containing ``releaseprep.toml``.

    Returns:
        A validated :class:`ReleasePrepConfig`; defaults when the file
        does not exist.

    Raises:
        ReleasePrepError: If the file cannot be parsed or contains
            unknown keys or badly typed values.
    """
    config_path = working_directory / CONFIG_FILENAME

    if not config_path.is_file():
        logger.debug('no_releaseprep_config', path=str(config_path))
        return ReleasePrepConfig()

    try:
        text = config_path.read_text(encoding='utf-8')
    except OSError as exc:
        raise ReleasePrepError(
            code=E.CONFIG_PARSE_ERROR,
            message=f'Failed to read {config_path}: {exc}',
        ) from exc

    try:
        doc = tomlkit.parse(text)
    except tomlkit.exceptions.TOMLKitError as exc:
        raise ReleasePrepError(
            code=E.CONFIG_PARSE_ERROR,
            message=f'Failed to parse {config_path}: {exc}',
        ) from exc

    raw: dict[str, Any] = doc.unwrap()  # noqa: ANN401

    for key in raw:
        if key not in VALID_KEYS:
            suggestion = _suggest_key(key)
            raise ReleasePrepError(
                code=E.CONFIG_INVALID_KEY,
                message=f"Unknown key '{key}' in {CONFIG_FILENAME}",
                hint=f"Did you mean '{suggestion}'?" if suggestion else f'Valid keys: {", ".join(sorted(VALID_KEYS))}.',
            )

    for key, value in raw.items():
        _validate_value_type(key, value)

    if 'tag_format' in raw:
        _validate_tag_format(raw['tag_format'])
    if 'phases' in raw:
        raw['phases'] = _validate_phases(raw['phases'])

    logger.debug('config_loaded', path=str(config_path), keys=sorted(raw))
    return ReleasePrepConfig(**raw, config_path=config_path)


def initial_state(config: ReleasePrepConfig, working_directory: Path) -> ReleaseState:
    """Seed a :class:`ReleaseState` with the options from ``config``."""
    return ReleaseState(
        working_directory=working_directory,
        preparation_goals=config.preparation_goals,
        additional_arguments=config.additional_arguments,
        add_schema=config.add_schema,
        use_edit_mode=config.use_edit_mode,
        interactive=config.interactive,
    )


__all__ = [
    'CONFIG_FILENAME',
    'DEFAULT_PREPARE_PHASES',
    'VALID_KEYS',
    'ReleasePrepConfig',
    'initial_state',
    'load_config',
]
