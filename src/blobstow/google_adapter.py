import base64
import json
import logging
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from datetime import datetime
from typing import Any, BinaryIO
from urllib.parse import SplitResult, unquote, urlsplit, urlunsplit

from google.cloud import storage

from .errors import MissingConfigError, NotFoundError, SchemeMismatchError
from .metadata import decode, encode
from .storage_protocols import Container, Item, Location

KIND = "google"

CONFIG_PROJECT_ID = "project_id"
CONFIG_JSON = "json"

# Same default the client library applies to every request.
DEFAULT_TIMEOUT = 60.0

logger = logging.getLogger(__name__)


def _split(url: str | SplitResult) -> SplitResult:
    return url if isinstance(url, SplitResult) else urlsplit(url)


def is_google_url(url: str | SplitResult) -> bool:
    """Return True if the URL carries this backend's scheme."""
    try:
        return _split(url).scheme == KIND
    except ValueError:
        return False


def media_url(media_link: str | None) -> str:
    """Turn a backend media link into a URL routed to this adapter."""
    if not media_link:
        return ""
    parts = urlsplit(media_link)
    return urlunsplit((KIND, parts.netloc, parts.path, "", ""))


def parse_media_path(path: str) -> tuple[str, str]:
    """
    Extract (container id, item id) from a media link path.

    Media links look like /download/storage/v1/b/<bucket>/o/<object>. The
    segment offsets are tied to that exact layout and will break if the
    backend ever changes it.
    """
    pieces = unquote(path).split("/", 7)
    if len(pieces) < 8 or not pieces[5] or not pieces[7]:
        raise NotFoundError(f"no container and item in URL path '{path}'")
    return pieces[5], pieces[7]


def _hex_digest(md5_hash: str | None) -> str:
    # The client reports MD5 base64-encoded; composite objects carry none.
    if not md5_hash:
        return ""
    return base64.b64decode(md5_hash).hex()


def _new_client(project_id: str, credentials_json: str | None) -> storage.Client:
    if credentials_json:
        info = json.loads(credentials_json)
        return storage.Client.from_service_account_info(info, project=project_id)
    return storage.Client(project=project_id)


class GoogleLocation(Location):
    """Google Cloud Storage account exposed as a Location."""

    def __init__(
        self,
        config: Mapping[str, str],
        client: storage.Client,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        """
        Wrap an already-built google.cloud.storage Client. Every container and
        item view shares it. ``timeout`` is the per-request default in seconds
        applied when a call does not pass its own.
        """
        if not config.get(CONFIG_PROJECT_ID):
            raise MissingConfigError(CONFIG_PROJECT_ID)
        self._config = config
        self._client = client
        self._timeout = timeout

    @classmethod
    def from_config(
        cls,
        config: Mapping[str, str],
        client: storage.Client | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> "GoogleLocation":
        """
        Convenience builder: create a location from a config bag.
        Builds a client from the optional service account JSON unless one is given.
        """
        project_id = config.get(CONFIG_PROJECT_ID)
        if not project_id:
            raise MissingConfigError(CONFIG_PROJECT_ID)
        if client is None:
            client = _new_client(project_id, config.get(CONFIG_JSON))
        logger.info("Opened google storage location for project %s", project_id)
        return cls(config, client, timeout=timeout)

    def __enter__(self) -> "GoogleLocation":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def project_id(self) -> str:
        return self._config[CONFIG_PROJECT_ID]

    def _timeout_for(self, timeout: float | None) -> float:
        return self._timeout if timeout is None else timeout

    def _container(self, name: str) -> "_GoogleContainer":
        return _GoogleContainer(name, self._client, self._timeout)

    def close(self) -> None:
        # The client holds no per-location session; views stay usable.
        pass

    def create_container(self, name: str, *, timeout: float | None = None) -> Container:
        self._client.create_bucket(
            name, project=self.project_id, timeout=self._timeout_for(timeout)
        )
        logger.debug("Created bucket %s in project %s", name, self.project_id)
        return self._container(name)

    def containers(
        self,
        prefix: str = "",
        cursor: str = "",
        count: int = 100,
        *,
        timeout: float | None = None,
    ) -> tuple[list[Container], str]:
        buckets = self._client.list_buckets(
            project=self.project_id,
            prefix=prefix or None,
            page_size=count,
            page_token=cursor or None,
            timeout=self._timeout_for(timeout),
        )
        page = next(buckets.pages, None)
        containers: list[Container] = [self._container(b.name) for b in page or ()]
        return containers, buckets.next_page_token or ""

    def container(self, id: str, *, timeout: float | None = None) -> Container:
        # Name validation, transport and API failures all mean "not there" here.
        try:
            self._client.get_bucket(id, timeout=self._timeout_for(timeout))
        except Exception as e:
            logger.debug("Bucket %s lookup failed: %s", id, e)
            raise NotFoundError(f"Container '{id}' not found") from e
        return self._container(id)

    def remove_container(self, id: str, *, timeout: float | None = None) -> None:
        self._client.bucket(id).delete(timeout=self._timeout_for(timeout))
        logger.debug("Removed bucket %s", id)

    def item_by_url(self, url: str | SplitResult, *, timeout: float | None = None) -> Item:
        try:
            parts = _split(url)
        except ValueError as e:
            raise NotFoundError(f"Cannot parse URL '{url}'") from e
        if parts.scheme != KIND:
            raise SchemeMismatchError(
                f"Not a valid google storage URL: '{urlunsplit(parts)}'"
            )
        container_id, item_id = parse_media_path(parts.path)
        container = self.container(container_id, timeout=timeout)
        return container.item(item_id, timeout=timeout)


class _GoogleContainer(Container):
    def __init__(self, name: str, client: storage.Client, timeout: float):
        self._name = name
        self._client = client
        self._timeout = timeout

    def __repr__(self) -> str:
        return f"<GoogleContainer {self._name}>"

    @property
    def id(self) -> str:
        return self._name

    @property
    def name(self) -> str:
        return self._name

    def _timeout_for(self, timeout: float | None) -> float:
        return self._timeout if timeout is None else timeout

    def _blob(self, name: str) -> storage.Blob:
        return self._client.bucket(self._name).blob(name)

    def _item(self, blob: storage.Blob) -> "_GoogleItem":
        return _GoogleItem(self, blob, self._timeout)

    def item(self, id: str, *, timeout: float | None = None) -> Item:
        try:
            blob = self._blob(id)
            blob.reload(timeout=self._timeout_for(timeout))
        except Exception as e:
            logger.debug("Object %s/%s lookup failed: %s", self._name, id, e)
            raise NotFoundError(f"Item '{id}' not found in container '{self._name}'") from e
        return self._item(blob)

    def items(
        self,
        prefix: str = "",
        cursor: str = "",
        count: int = 100,
        *,
        timeout: float | None = None,
    ) -> tuple[list[Item], str]:
        timeout = self._timeout_for(timeout)
        listing = self._client.list_blobs(
            self._name,
            prefix=prefix or None,
            page_size=count,
            page_token=cursor or None,
            timeout=timeout,
        )
        page = next(listing.pages, None)
        items: list[Item] = []
        for listed in page or ():
            # Listing entries may be partial; fetch each object's attributes.
            blob = self._blob(listed.name)
            blob.reload(timeout=timeout)
            items.append(self._item(blob))
        return items, listing.next_page_token or ""

    def remove_item(self, id: str, *, timeout: float | None = None) -> None:
        self._client.bucket(self._name).delete_blob(id, timeout=self._timeout_for(timeout))
        logger.debug("Removed object %s/%s", self._name, id)

    def put(
        self,
        name: str,
        content: BinaryIO,
        size: int,
        metadata: dict[str, Any] | None = None,
        *,
        timeout: float | None = None,
    ) -> Item:
        """
        Note: the returned item carries the size and hash the backend stored,
        which can differ from the declared size. A failed write may still leave
        a partial object behind.
        """
        native = encode(metadata)
        timeout = self._timeout_for(timeout)

        blob = self._blob(name)
        if native:
            blob.metadata = native
        blob.upload_from_file(content, timeout=timeout)
        blob.reload(timeout=timeout)

        if blob.size != size:
            logger.debug(
                "Object %s/%s stored %s bytes, caller declared %s",
                self._name,
                name,
                blob.size,
                size,
            )
        logger.debug("Put object %s/%s", self._name, name)
        return self._item(blob)


class _GoogleItem(Item):
    def __init__(self, container: _GoogleContainer, blob: storage.Blob, timeout: float):
        self._container = container
        self._blob = blob
        self._timeout = timeout
        self._name = blob.name
        self._size = blob.size or 0
        self._hash = _hex_digest(blob.md5_hash)
        self._last_modified = blob.updated
        self._url = media_url(blob.media_link)
        self._metadata = decode(blob.metadata)

    def __repr__(self) -> str:
        return f"<GoogleItem {self._container.name}/{self._name}>"

    @property
    def id(self) -> str:
        return self._name

    @property
    def name(self) -> str:
        return self._name

    @property
    def container(self) -> Container:
        return self._container

    @property
    def size(self) -> int:
        return self._size

    @property
    def hash(self) -> str:
        return self._hash

    @property
    def last_modified(self) -> datetime:
        return self._last_modified

    @property
    def url(self) -> str:
        return self._url

    @property
    def metadata(self) -> dict[str, Any]:
        return dict(self._metadata)

    @contextmanager
    def open(self, *, timeout: float | None = None) -> Iterator[BinaryIO]:
        reader = self._blob.open(
            "rb", timeout=self._timeout if timeout is None else timeout
        )
        try:
            yield reader
        finally:
            reader.close()

    def read(self, *, timeout: float | None = None) -> bytes:
        with self.open(timeout=timeout) as stream:
            return stream.read()
