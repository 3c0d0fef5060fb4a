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

"""Structured error system for releaseprep.

Every error has a unique ``RP-NAMED-KEY`` code, a human-readable message,
and an optional hint with a suggested fix.

Key Concepts (ELI5)::

    ┌─────────────────────┬────────────────────────────────────────────────┐
    │ Concept             │ ELI5 Explanation                               │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ ErrorCode           │ A unique named ID like "RP-VERSION-UNMAPPED"  │
    │                     │ for each error. Readable at a glance.         │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ ValidationFailure   │ Something the user can fix: a missing label,  │
    │                     │ a dirty tree, an unreleased dependency.       │
    │                     │ Never wraps a technical cause.                │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ ExecutionFault      │ The environment broke: git crashed, a file    │
    │                     │ could not be written. Always chained to the   │
    │                     │ exception that caused it.                     │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ ScmError family     │ What a VCS provider lookup or transport can   │
    │                     │ raise. Phases turn these into faults.         │
    └─────────────────────┴────────────────────────────────────────────────┘

Code categories::

    RP-CONFIG-*       Configuration errors
    RP-REACTOR-*      Reactor loading and ordering errors
    RP-VERSION-*      Version mapping errors
    RP-SNAPSHOT-*     Unreleased (snapshot) reference errors
    RP-SCM-*          Version control errors
    RP-DESCRIPTOR-*   Descriptor read/write errors
    RP-GOALS-*        Preparation goal errors
    RP-STATE-*        Persisted release state errors
    RP-PHASE-*        Pipeline configuration errors

Usage::

    from releaseprep.errors import E, ValidationFailure

    raise ValidationFailure(
        code=E.SCM_LABEL_MISSING,
        message='A release label is required to commit',
        hint='Set scm_release_label or run the input-variables phase first.',
    )
"""

from __future__ import annotations

import sys
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, TextIO

from rich.console import Console
from rich.markup import escape as rich_escape

if TYPE_CHECKING:
    from releaseprep.reactor import ModuleKey, Reference
    from releaseprep.snapshots import SnapshotViolation, ViolationKind


class ErrorCode(str, Enum):
    """Enumeration of all releaseprep diagnostic codes."""

    # Configuration
    CONFIG_INVALID_KEY = 'RP-CONFIG-INVALID-KEY'
    CONFIG_INVALID_VALUE = 'RP-CONFIG-INVALID-VALUE'
    CONFIG_PARSE_ERROR = 'RP-CONFIG-PARSE-ERROR'

    # Reactor
    REACTOR_DESCRIPTOR_NOT_FOUND = 'RP-REACTOR-DESCRIPTOR-NOT-FOUND'
    REACTOR_PARSE_ERROR = 'RP-REACTOR-PARSE-ERROR'
    REACTOR_DUPLICATE_MODULE = 'RP-REACTOR-DUPLICATE-MODULE'
    REACTOR_CYCLE_DETECTED = 'RP-REACTOR-CYCLE-DETECTED'

    # Versions
    VERSION_UNMAPPED = 'RP-VERSION-UNMAPPED'
    VERSION_UNPARSEABLE = 'RP-VERSION-UNPARSEABLE'
    VERSION_PROMPT_FAILED = 'RP-VERSION-PROMPT-FAILED'

    # Snapshots
    SNAPSHOT_EXTERNAL = 'RP-SNAPSHOT-EXTERNAL'
    SNAPSHOT_UNMAPPED_INTERNAL = 'RP-SNAPSHOT-UNMAPPED-INTERNAL'
    SNAPSHOT_NONE_IN_REACTOR = 'RP-SNAPSHOT-NONE-IN-REACTOR'

    # Version control
    SCM_URL_MISSING = 'RP-SCM-URL-MISSING'
    SCM_NO_SUCH_PROVIDER = 'RP-SCM-NO-SUCH-PROVIDER'
    SCM_REPOSITORY_INVALID = 'RP-SCM-REPOSITORY-INVALID'
    SCM_COMMAND_FAILED = 'RP-SCM-COMMAND-FAILED'
    SCM_TRANSPORT = 'RP-SCM-TRANSPORT'
    SCM_UNCOMMITTED_CHANGES = 'RP-SCM-UNCOMMITTED-CHANGES'
    SCM_LABEL_MISSING = 'RP-SCM-LABEL-MISSING'

    # Descriptors
    DESCRIPTOR_READ_ERROR = 'RP-DESCRIPTOR-READ-ERROR'
    DESCRIPTOR_WRITE_ERROR = 'RP-DESCRIPTOR-WRITE-ERROR'
    DESCRIPTOR_PARSE_ERROR = 'RP-DESCRIPTOR-PARSE-ERROR'

    # Preparation goals
    GOALS_FAILED = 'RP-GOALS-FAILED'

    # Persisted state
    STATE_READ_ERROR = 'RP-STATE-READ-ERROR'
    STATE_WRITE_ERROR = 'RP-STATE-WRITE-ERROR'

    # Pipeline
    PHASE_UNKNOWN = 'RP-PHASE-UNKNOWN'


# Convenience alias for shorter imports.
E = ErrorCode


@dataclass(frozen=True)
class ErrorInfo:
    """Metadata for a single error code.

    Attributes:
        code: The ``RP-NAMED-KEY`` error code.
        message: Human-readable description of what went wrong.
        hint: Optional suggestion for how to fix the error.
    """

    code: ErrorCode
    message: str
    hint: str = ''


class ReleasePrepError(Exception):
    """Base exception for all releaseprep errors.

    Carries structured diagnostic information (code, message, hint) that
    can be rendered as a rich terminal message.

    Args:
        code: The error code from :class:`ErrorCode`.
        message: Human-readable description of what went wrong.
        hint: Optional suggestion for how to fix the error.
    """

    def __init__(self, code: ErrorCode, message: str, hint: str = '') -> None:
        """Initialize with an error code, message, and optional hint."""
        self.info = ErrorInfo(code=code, message=message, hint=hint)
        super().__init__(f'[{code.value}] {message}')

    @property
    def code(self) -> ErrorCode:
        """The error code."""
        return self.info.code

    @property
    def message(self) -> str:
        """The human-readable message, without the code prefix."""
        return self.info.message

    @property
    def hint(self) -> str:
        """Suggestion for fixing this error, or empty string."""
        return self.info.hint


class ValidationFailure(ReleasePrepError):
    """A user-fixable precondition does not hold.

    Raised without a chained cause: the message alone must tell the user
    what to change.
    """


class ExecutionFault(ReleasePrepError):
    """An unexpected environment or tooling failure.

    Raised with ``raise ... from exc`` so the technical cause stays
    available for diagnostics via :attr:`cause`.
    """

    @property
    def cause(self) -> BaseException | None:
        """The underlying exception, if any."""
        return self.__cause__


class UnmappedVersionError(ValidationFailure):
    """A module or reference has no mapped version for the current mode.

    Args:
        key: The module key whose version is missing.
        message: Human-readable description.
        hint: Optional suggestion.
    """

    def __init__(self, key: ModuleKey, message: str, hint: str = '') -> None:
        """Initialize with the offending module key."""
        super().__init__(E.VERSION_UNMAPPED, message, hint)
        self.key = key


class UncommittedChangesError(ValidationFailure):
    """The working tree has local modifications outside the release files.

    Args:
        files: The offending changed files, relative to the working directory.
    """

    def __init__(self, files: Sequence[str]) -> None:
        """Initialize with the list of offending files."""
        self.files = list(files)
        listing = '\n'.join(f'  {name}' for name in self.files)
        super().__init__(
            E.SCM_UNCOMMITTED_CHANGES,
            f'Cannot prepare the release because you have local modifications:\n{listing}',
            hint='Commit or revert these files before preparing the release.',
        )


class SnapshotReferenceError(ValidationFailure):
    """One or more references still point at unreleased versions.

    Args:
        violations: Every offending reference found in the reactor.
    """

    def __init__(self, violations: Sequence[SnapshotViolation]) -> None:
        """Initialize with the violations; the first one sets the code."""
        self.violations = list(violations)
        first = self.violations[0]
        code = E.SNAPSHOT_EXTERNAL if first.kind.value == 'external' else E.SNAPSHOT_UNMAPPED_INTERNAL
        listing = '\n'.join(f'  {v.describe()}' for v in self.violations)
        super().__init__(
            code,
            f"Can't release project due to non released references:\n{listing}",
            hint='Release the referenced artifacts first, or map their versions in this reactor.',
        )

    @property
    def kind(self) -> ViolationKind:
        """Kind of the first violation."""
        return self.violations[0].kind

    @property
    def reference(self) -> Reference:
        """The first offending reference."""
        return self.violations[0].reference


class ScmError(ReleasePrepError):
    """Base class for errors raised at the VCS provider boundary."""


class NoSuchProviderError(ScmError):
    """No provider is registered for the connection string's scheme.

    Args:
        provider: The unrecognized provider scheme.
    """

    def __init__(self, provider: str) -> None:
        """Initialize with the unknown scheme."""
        self.provider = provider
        super().__init__(
            E.SCM_NO_SUCH_PROVIDER,
            f"No SCM provider is registered for '{provider}'",
            hint='Use one of the registered schemes, e.g. scm:git:<url>.',
        )


class RepositoryResolutionError(ScmError):
    """The connection string is malformed or incomplete."""

    def __init__(self, message: str) -> None:
        """Initialize with a description of what is wrong with the URL."""
        super().__init__(
            E.SCM_REPOSITORY_INVALID,
            message,
            hint='SCM URLs look like scm:<provider>:<provider-specific-url>.',
        )


class ScmTransportError(ScmError):
    """The VCS command could not run (missing binary, I/O error, timeout)."""

    def __init__(self, message: str) -> None:
        """Initialize with a description of the transport failure."""
        super().__init__(E.SCM_TRANSPORT, message)


class ScmCommandError(ExecutionFault):
    """The VCS ran the command but reported a failure.

    Carries the provider's raw message instead of a chained cause.

    Args:
        message: What the phase was trying to do.
        provider_message: The provider's own failure text.
        command_output: Raw output of the failed command.
    """

    def __init__(self, message: str, provider_message: str = '', command_output: str = '') -> None:
        """Initialize with the phase message and the provider's output."""
        self.provider_message = provider_message
        self.command_output = command_output
        detail = f'\nProvider message:\n{provider_message}' if provider_message else ''
        detail += f'\nCommand output:\n{command_output}' if command_output else ''
        super().__init__(E.SCM_COMMAND_FAILED, f'{message}{detail}')


class ReleasePrepWarning(UserWarning):
    """Base warning for all releaseprep warnings.

    Same structure as :class:`ReleasePrepError` but emitted via
    :func:`warnings.warn` instead of being raised.

    Args:
        code: The error code from :class:`ErrorCode`.
        message: Human-readable description of the warning.
        hint: Optional suggestion for how to address the warning.
    """

    def __init__(self, code: ErrorCode, message: str, hint: str = '') -> None:
        """Initialize with an error code, message, and optional hint."""
        self.info = ErrorInfo(code=code, message=message, hint=hint)
        super().__init__(f'[{code.value}] {message}')

    @property
    def code(self) -> ErrorCode:
        """The error code."""
        return self.info.code

    @property
    def hint(self) -> str:
        """Suggestion for addressing this warning, or empty string."""
        return self.info.hint


ERRORS: dict[ErrorCode, ErrorInfo] = {
    E.VERSION_UNMAPPED: ErrorInfo(
        code=E.VERSION_UNMAPPED,
        message='A reactor module has no release or development version mapped.',
        hint='Run the map-release-versions and map-development-versions phases first.',
    ),
    E.SNAPSHOT_EXTERNAL: ErrorInfo(
        code=E.SNAPSHOT_EXTERNAL,
        message='A reference outside the reactor still uses a snapshot version.',
        hint='Release that artifact first and depend on the released version.',
    ),
    E.SNAPSHOT_UNMAPPED_INTERNAL: ErrorInfo(
        code=E.SNAPSHOT_UNMAPPED_INTERNAL,
        message='A reference to a reactor module uses a snapshot with no release version mapped.',
        hint='Map release versions before checking references.',
    ),
    E.SCM_UNCOMMITTED_CHANGES: ErrorInfo(
        code=E.SCM_UNCOMMITTED_CHANGES,
        message='Working tree has uncommitted changes.',
        hint='Commit or revert your changes before preparing a release.',
    ),
    E.SCM_LABEL_MISSING: ErrorInfo(
        code=E.SCM_LABEL_MISSING,
        message='No release label (tag name) is set.',
        hint='Run the input-variables phase or set scm_release_label on the state.',
    ),
    E.SCM_NO_SUCH_PROVIDER: ErrorInfo(
        code=E.SCM_NO_SUCH_PROVIDER,
        message='The SCM URL names a provider that is not registered.',
        hint='Supported schemes: scm:git:, scm:hg:, scm:svn:.',
    ),
    E.SCM_URL_MISSING: ErrorInfo(
        code=E.SCM_URL_MISSING,
        message='No SCM URL was given and the root descriptor has no <scm> connection.',
        hint='Add <scm><developerConnection> to the root descriptor or set scm.url.',
    ),
}


def explain(code: str) -> str | None:
    """Return a detailed explanation for an error code.

    Args:
        code: The error code string, e.g. ``"RP-VERSION-UNMAPPED"``.

    Returns:
        A formatted explanation string, or ``None`` if the code is unknown.
    """
    try:
        error_code = ErrorCode(code)
    except ValueError:
        return None

    info = ERRORS.get(error_code)
    if info is None:
        return f'{code}: No detailed explanation available.'

    lines = [f'{code}: {info.message}']
    if info.hint:
        lines.append(f'  Hint: {info.hint}')
    return '\n'.join(lines)


def _render(kind: str, style: str, code: ErrorCode, message: str, hint: str, out: TextIO) -> None:
    """Print one diagnostic in Rust-compiler style."""
    console = Console(file=out, highlight=False, no_color=not out.isatty())
    console.print(f'[bold {style}]{kind}\\[{code.value}][/bold {style}][bold]: {rich_escape(message)}[/bold]')
    if hint:
        console.print('  [dim]|[/dim]')
        console.print(f'  [dim]=[/dim] [cyan]hint[/cyan]: {rich_escape(hint)}')
    console.print()


def render_error(exc: ReleasePrepError, *, file: TextIO | None = None) -> None:
    """Render an error in Rust-compiler style with color.

    Output format::

        error[RP-SCM-LABEL-MISSING]: No release label is set.
          |
          = hint: Run the input-variables phase first.

    Args:
        exc: The error to render.
        file: Output stream (defaults to ``sys.stderr``).
    """
    _render('error', 'red', exc.code, exc.message, exc.hint, file or sys.stderr)


def render_warning(exc: ReleasePrepWarning, *, file: TextIO | None = None) -> None:
    """Render a warning in the same style as :func:`render_error`."""
    _render('warning', 'yellow', exc.code, exc.info.message, exc.hint, file or sys.stderr)


__all__ = [
    'E',
    'ERRORS',
    'ErrorCode',
    'ErrorInfo',
    'ExecutionFault',
    'NoSuchProviderError',
    'ReleasePrepError',
    'ReleasePrepWarning',
    'RepositoryResolutionError',
    'ScmCommandError',
    'ScmError',
    'ScmTransportError',
    'SnapshotReferenceError',
    'UncommittedChangesError',
    'UnmappedVersionError',
    'ValidationFailure',
    'explain',
    'render_error',
    'render_warning',
]
