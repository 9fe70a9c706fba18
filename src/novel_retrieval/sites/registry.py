"""Registry mapping entry URLs to site adapters."""

from collections.abc import Iterable
from types import MappingProxyType

from novel_retrieval.errors import RegistryConfigError, UnsupportedSiteError
from novel_retrieval.sites.base import SiteAdapter


class SiteRegistry:
    """Immutable lookup of site adapters.

    Recognition rules must not overlap: a host claimed by two adapters, or two
    adapters sharing a name, is rejected when the registry is built rather
    than resolved arbitrarily at lookup time.
    """

    def __init__(self, adapters: Iterable[SiteAdapter]):
        adapters = tuple(adapters)
        by_name: dict[str, SiteAdapter] = {}
        by_host: dict[str, SiteAdapter] = {}

        for adapter in adapters:
            if adapter.name in by_name:
                raise RegistryConfigError(f"Duplicate site adapter name: {adapter.name}")
            by_name[adapter.name] = adapter
            for host in adapter.hosts:
                if host in by_host:
                    raise RegistryConfigError(
                        f"Host {host} is claimed by both "
                        f"{by_host[host].name} and {adapter.name}"
                    )
                by_host[host] = adapter

        self._adapters = adapters
        self._by_name = MappingProxyType(by_name)

    def __len__(self) -> int:
        return len(self._adapters)

    def resolve(self, url: str) -> SiteAdapter:
        """Return the adapter recognizing ``url``.

        Raises:
            UnsupportedSiteError: No adapter recognizes the URL.
        """
        matches = [adapter for adapter in self._adapters if adapter.recognize(url)]
        if not matches:
            raise UnsupportedSiteError(url)
        if len(matches) > 1:
            names = ", ".join(adapter.name for adapter in matches)
            raise RegistryConfigError(f"{url} is recognized by several sites: {names}")
        return matches[0]

    def get(self, name: str) -> SiteAdapter | None:
        """Get an adapter by name."""
        return self._by_name.get(name)

    def list_sites(self) -> list[SiteAdapter]:
        """List all registered adapters."""
        return list(self._adapters)
