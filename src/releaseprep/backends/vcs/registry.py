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

"""Maps SCM URL schemes to VCS providers.

Key Concepts (ELI5)::

    ┌─────────────────────┬────────────────────────────────────────────────┐
    │ Concept             │ ELI5 Explanation                               │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ SCM URL             │ "scm:git:https://host/repo.git". The middle    │
    │                     │ word picks the provider, the rest is its URL. │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ Delimiter           │ Usually ":". A URL starting "scm|" uses "|"    │
    │                     │ instead, for providers whose URLs contain ":". │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ Factory             │ A zero-argument callable that builds the       │
    │                     │ provider. Tests register fakes the same way.  │
    └─────────────────────┴────────────────────────────────────────────────┘

Usage::

    registry = default_registry()
    repository, vcs = registry.resolve(state)
    result = await vcs.status(repository, ScmFileSet(state.working_directory))
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING

from releaseprep.backends.vcs import VCS, GitCLIBackend, MercurialCLIBackend, ScmRepository, SubversionCLIBackend
from releaseprep.errors import E, NoSuchProviderError, RepositoryResolutionError, ValidationFailure
from releaseprep.logging import get_logger

if TYPE_CHECKING:
    from releaseprep.state import ReleaseState

log = get_logger(__name__)

ProviderFactory = Callable[[], VCS]


class ProviderRegistry:
    """Provider factories keyed by URL scheme.

    Args:
        factories: Initial scheme to factory mapping.
    """

    def __init__(self, factories: Mapping[str, ProviderFactory] | None = None) -> None:
        """Initialize with optional factories."""
        self._factories: dict[str, ProviderFactory] = dict(factories or {})

    def register(self, scheme: str, factory: ProviderFactory) -> None:
        """Register (or replace) the provider for ``scheme``."""
        self._factories[scheme] = factory

    @property
    def schemes(self) -> list[str]:
        """Registered schemes, sorted."""
        return sorted(self._factories)

    def get(self, scheme: str) -> VCS:
        """Build the provider for ``scheme``.

        Raises:
            NoSuchProviderError: If nothing is registered for ``scheme``.
        """
        factory = self._factories.get(scheme)
        if factory is None:
            raise NoSuchProviderError(scheme)
        return factory()

    @staticmethod
    def parse_url(url: str) -> tuple[str, str]:
        """Split ``scm:<provider>:<rest>`` into ``(provider, rest)``.

        Raises:
            RepositoryResolutionError: If the URL is malformed.
        """
        if not url:
            raise RepositoryResolutionError('The scm url cannot be empty.')
        if not url.startswith('scm') or len(url) < 4 or url[3] not in ':|':
            raise RepositoryResolutionError(f"The scm url must start with 'scm:' or 'scm|': {url}")
        delimiter = url[3]
        provider, sep, rest = url[4:].partition(delimiter)
        if not sep or not provider:
            raise RepositoryResolutionError(f'The scm url does not name a provider: {url}')
        if not rest:
            raise RepositoryResolutionError(f'The scm url has no provider-specific part: {url}')
        return provider, rest

    def resolve(self, state: ReleaseState, *, push_changes: bool = False) -> tuple[ScmRepository, VCS]:
        """Resolve ``state.scm_url`` into a repository and its provider.

        Raises:
            ValidationFailure: If the state has no SCM URL.
            RepositoryResolutionError: If the URL is malformed.
            NoSuchProviderError: If the scheme is not registered.
        """
        if not state.scm_url:
            raise ValidationFailure(
                E.SCM_URL_MISSING,
                'No SCM URL was provided to perform the release from',
                hint='Add <scm><developerConnection> to the root descriptor or set scm.url.',
            )
        provider, rest = self.parse_url(state.scm_url)
        vcs = self.get(provider)
        repository = ScmRepository(
            provider=provider,
            url=state.scm_url,
            provider_url=rest,
            username=state.scm_username,
            password=state.scm_password,
            private_key=state.scm_private_key,
            passphrase=state.scm_passphrase,
            tag_base=state.scm_tag_base,
            push_changes=push_changes,
        )
        log.debug('scm_repository_resolved', provider=provider, url=state.scm_url)
        return repository, vcs


def default_registry() -> ProviderRegistry:
    """Return a registry with the git, hg and svn CLI providers."""
    return ProviderRegistry({
        'git': GitCLIBackend,
        'hg': MercurialCLIBackend,
        'svn': SubversionCLIBackend,
    })


__all__ = [
    'ProviderFactory',
    'ProviderRegistry',
    'default_registry',
]
