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

"""Async file helpers shared by the reactor loader, rewriter, and state store.

Phases are ``async def`` so they can await VCS calls; descriptor reads
and writes go through ``aiofiles`` so they don't block the event loop
either. Each helper raises :class:`~releaseprep.errors.ExecutionFault`
chained to the underlying :class:`OSError`.
"""

from __future__ import annotations

from pathlib import Path

import aiofiles
import aiofiles.os

from releaseprep.errors import E, ErrorCode, ExecutionFault


async def read_bytes(path: Path, *, code: ErrorCode = E.DESCRIPTOR_READ_ERROR) -> bytes:
    """Read a file's raw bytes."""
    try:
        async with aiofiles.open(path, mode='rb') as f:
            return await f.read()
    except OSError as exc:
        raise ExecutionFault(
            code,
            f'Failed to read {path}: {exc}',
            hint=f'Check that {path} exists and is readable.',
        ) from exc


async def write_bytes(path: Path, content: bytes, *, code: ErrorCode = E.DESCRIPTOR_WRITE_ERROR) -> None:
    """Write raw bytes to a file, replacing its contents."""
    try:
        async with aiofiles.open(path, mode='wb') as f:
            await f.write(content)
    except OSError as exc:
        raise ExecutionFault(
            code,
            f'Failed to write {path}: {exc}',
            hint=f'Check file permissions for {path}.',
        ) from exc


async def remove_if_exists(path: Path) -> bool:
    """Delete ``path`` if present; return whether anything was removed.

    A missing file is not an error. Any other :class:`OSError` is.
    """
    try:
        await aiofiles.os.remove(path)
    except FileNotFoundError:
        return False
    except OSError as exc:
        raise ExecutionFault(
            E.DESCRIPTOR_WRITE_ERROR,
            f'Failed to delete {path}: {exc}',
            hint=f'Check file permissions for {path.parent}.',
        ) from exc
    return True


async def exists(path: Path) -> bool:
    """Return ``True`` if ``path`` is an existing file."""
    return await aiofiles.os.path.isfile(path)
