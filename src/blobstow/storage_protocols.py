from collections.abc import Iterator
from contextlib import AbstractContextManager
from datetime import datetime
from typing import Any, BinaryIO, Protocol
from urllib.parse import SplitResult


class Item(Protocol):
    """Represents a single stored object.

    Every accessor returns data fetched when the item was built; none of them
    touches the network.
    """

    @property
    def id(self) -> str: ...

    @property
    def name(self) -> str: ...

    @property
    def container(self) -> "Container": ...

    @property
    def size(self) -> int: ...

    @property
    def hash(self) -> str:
        """Hex-encoded content digest."""
        ...

    @property
    def last_modified(self) -> datetime: ...

    @property
    def url(self) -> str:
        """URL that resolves back to this item through its location."""
        ...

    @property
    def metadata(self) -> dict[str, Any]: ...

    def open(self, *, timeout: float | None = None) -> AbstractContextManager[BinaryIO]:
        """Open a read stream over the item's content."""
        ...

    def read(self, *, timeout: float | None = None) -> bytes:
        """Return the item's full content."""
        ...


class Container(Protocol):
    """Represents a container/bucket in storage."""

    @property
    def id(self) -> str: ...

    @property
    def name(self) -> str: ...

    def item(self, id: str, *, timeout: float | None = None) -> Item:
        """Return the item with the given id or raise NotFoundError."""
        ...

    def items(
        self,
        prefix: str = "",
        cursor: str = "",
        count: int = 100,
        *,
        timeout: float | None = None,
    ) -> tuple[list[Item], str]:
        """Return one page of items and the cursor for the next page."""
        ...

    def remove_item(self, id: str, *, timeout: float | None = None) -> None:
        """Delete an item."""
        ...

    def put(
        self,
        name: str,
        content: BinaryIO,
        size: int,
        metadata: dict[str, Any] | None = None,
        *,
        timeout: float | None = None,
    ) -> Item:
        """Write content to an item and return it as stored."""
        ...


class Location(Protocol):
    """Protocol for a configured storage account."""

    def create_container(self, name: str, *, timeout: float | None = None) -> Container:
        """Create a new container."""
        ...

    def containers(
        self,
        prefix: str = "",
        cursor: str = "",
        count: int = 100,
        *,
        timeout: float | None = None,
    ) -> tuple[list[Container], str]:
        """Return one page of containers and the cursor for the next page."""
        ...

    def container(self, id: str, *, timeout: float | None = None) -> Container:
        """Return the container with the given id or raise NotFoundError."""
        ...

    def remove_container(self, id: str, *, timeout: float | None = None) -> None:
        """Delete a container."""
        ...

    def item_by_url(self, url: str | SplitResult, *, timeout: float | None = None) -> Item:
        """Resolve a URL issued by this backend to an item."""
        ...

    def close(self) -> None:
        """Release any resources held by the location."""
        ...


def iter_items(container: Container, prefix: str = "", count: int = 100) -> Iterator[Item]:
    """Walk every page of a container listing."""
    cursor = ""
    while True:
        page, cursor = container.items(prefix, cursor, count)
        yield from page
        if not cursor:
            return


def iter_containers(location: Location, prefix: str = "", count: int = 100) -> Iterator[Container]:
    """Walk every page of a location's container listing."""
    cursor = ""
    while True:
        page, cursor = location.containers(prefix, cursor, count)
        yield from page
        if not cursor:
            return
