"""
Explicit backend composition.

There is no process-wide registry: callers build a mapping of kind to
Backend (``default_backends()`` or their own) and pass it where locations
are needed.
"""

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from urllib.parse import SplitResult

from .errors import UnknownBackendError
from .google_adapter import KIND as GOOGLE_KIND
from .google_adapter import GoogleLocation, is_google_url
from .storage_protocols import Location

Config = Mapping[str, str]


@dataclass(frozen=True)
class Backend:
    kind: str
    make: Callable[[Config], Location]
    matches: Callable[[str | SplitResult], bool]


def google_backend() -> Backend:
    return Backend(
        kind=GOOGLE_KIND,
        make=GoogleLocation.from_config,
        matches=is_google_url,
    )


def default_backends() -> dict[str, Backend]:
    """Assemble the backends shipped with this package."""
    backends = [google_backend()]
    return {backend.kind: backend for backend in backends}


def dial(backends: Mapping[str, Backend], kind: str, config: Config) -> Location:
    """Build a location of the given kind from a config bag."""
    try:
        backend = backends[kind]
    except KeyError:
        raise UnknownBackendError(f"No backend registered for kind '{kind}'") from None
    return backend.make(config)


def backend_for_url(backends: Mapping[str, Backend], url: str | SplitResult) -> Backend:
    """Return the first backend whose predicate accepts the URL."""
    for backend in backends.values():
        if backend.matches(url):
            return backend
    raise UnknownBackendError(f"No backend handles URL '{url}'")
