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

"""Subprocess runner behind the VCS providers and the goal runner.

``git``, ``hg``, ``svn`` and ``mvn`` are all started here, always with an
argument list (never a shell string), a working directory and a timeout.
Providers call :func:`run_command` from ``asyncio.to_thread`` and turn a
non-zero exit into an :class:`~releaseprep.backends.vcs.ScmResult`; the
goal runner passes ``check=True`` so a broken build raises.

Credentials can appear on the command line (``svn --password``), so the
command is masked before it reaches a log line.
"""

from __future__ import annotations

import subprocess  # noqa: S404 - starting VCS and build tools is this module's job
import time
from dataclasses import dataclass
from pathlib import Path
from subprocess import CalledProcessError, TimeoutExpired  # noqa: S404

from releaseprep.logging import get_logger

log = get_logger('releaseprep.backends.run')

# VCS calls are short; the goal runner passes its own, longer timeout.
DEFAULT_TIMEOUT_SECONDS = 300

_SECRET_FLAGS = frozenset({'--password', '--passphrase'})
_MASK = '****'


def masked(cmd: list[str]) -> str:
    """Render ``cmd`` for logs with the value after a secret flag hidden."""
    shown: list[str] = []
    hide_next = False
    for arg in cmd:
        if hide_next:
            shown.append(_MASK)
            hide_next = False
            continue
        flag, sep, _ = arg.partition('=')
        if flag in _SECRET_FLAGS:
            shown.append(f'{flag}={_MASK}' if sep else arg)
            hide_next = not sep
        else:
            shown.append(arg)
    return ' '.join(shown)


@dataclass(frozen=True)
class CommandResult:
    """What one tool invocation produced.

    Attributes:
        command: Program and arguments as run.
        return_code: Exit status; ``0`` for a skipped (dry-run) call.
        stdout: Captured standard output.
        stderr: Captured standard error.
        duration: Wall-clock milliseconds.
        dry_run: True when the call was logged instead of run.
    """

    command: list[str]
    return_code: int
    stdout: str = ''
    stderr: str = ''
    duration: float = 0.0
    dry_run: bool = False

    @property
    def ok(self) -> bool:
        """Whether the tool exited with status 0."""
        return self.return_code == 0

    @property
    def output(self) -> str:
        """Standard output followed by standard error, stripped."""
        return '\n'.join(part for part in (self.stdout.strip(), self.stderr.strip()) if part)


def run_command(
    cmd: list[str],
    *,
    cwd: Path | str | None = None,
    timeout: int = DEFAULT_TIMEOUT_SECONDS,
    dry_run: bool = False,
    check: bool = False,
) -> CommandResult:
    """Run ``cmd`` in ``cwd`` and capture its output.

    Args:
        cmd: Program and arguments.
        cwd: Working copy or project directory to run in.
        timeout: Seconds before the process is killed.
        dry_run: Log the command and return a successful result
            without starting anything.
        check: Raise :class:`CalledProcessError` on a non-zero exit
            instead of returning the result.

    Raises:
        CalledProcessError: ``check`` is set and the tool failed.
        TimeoutExpired: The tool ran longer than ``timeout``.
        OSError: The executable could not be started.
    """
    shown = masked(cmd)
    if dry_run:
        log.info('dry_run', cmd=shown, cwd=str(cwd or '.'))
        return CommandResult(command=cmd, return_code=0, dry_run=True)

    log.debug('run_command', cmd=shown, cwd=str(cwd or '.'))
    start = time.monotonic()
    try:
        completed = subprocess.run(  # noqa: S603 - argument lists are built by the backends
            cmd,
            cwd=cwd,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except TimeoutExpired:
        log.error('command_timeout', cmd=shown, timeout=timeout)
        raise
    result = CommandResult(
        command=cmd,
        return_code=completed.returncode,
        stdout=completed.stdout,
        stderr=completed.stderr,
        duration=(time.monotonic() - start) * 1000,
    )

    if result.ok:
        log.debug('command_ok', cmd=shown, duration=result.duration)
        return result
    log.warning('command_failed', cmd=shown, return_code=result.return_code, stderr=result.stderr[:500])
    if check:
        raise CalledProcessError(result.return_code, cmd, output=result.stdout, stderr=result.stderr)
    return result


__all__ = [
    'DEFAULT_TIMEOUT_SECONDS',
    'CalledProcessError',
    'CommandResult',
    'TimeoutExpired',
    'masked',
    'run_command',
]
