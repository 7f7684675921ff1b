"""In-memory stand-in for the google.cloud.storage client surface used by the adapter."""

import base64
import hashlib
import io
from dataclasses import dataclass, field
from datetime import datetime, timezone
from urllib.parse import quote

import pytest
from google.api_core.exceptions import Conflict, NotFound


@dataclass
class StoredObject:
    data: bytes
    metadata: dict[str, str] | None
    updated: datetime
    generation: int


@dataclass
class FakeClient:
    buckets: dict[str, dict[str, StoredObject]] = field(default_factory=dict)
    # name -> size reported by reload(), to mimic a backend that rewrites content
    reported_sizes: dict[str, int] = field(default_factory=dict)
    reload_calls: list[str] = field(default_factory=list)
    readers: list[io.BytesIO] = field(default_factory=list)
    timeouts: list[float | None] = field(default_factory=list)
    _generation: int = 0

    def _objects(self, bucket_name: str) -> dict[str, StoredObject]:
        if bucket_name not in self.buckets:
            raise NotFound(f"bucket {bucket_name} not found")
        return self.buckets[bucket_name]

    def bucket(self, bucket_name: str) -> "FakeBucket":
        return FakeBucket(self, bucket_name)

    def create_bucket(self, bucket_name, project=None, timeout=None):
        self.timeouts.append(timeout)
        if bucket_name in self.buckets:
            raise Conflict(f"bucket {bucket_name} already exists")
        self.buckets[bucket_name] = {}
        return self.bucket(bucket_name)

    def get_bucket(self, bucket_name, timeout=None):
        self.timeouts.append(timeout)
        self._objects(bucket_name)
        return self.bucket(bucket_name)

    def list_buckets(self, project=None, prefix=None, page_size=None, page_token=None, timeout=None):
        self.timeouts.append(timeout)
        names = sorted(self.buckets)
        return FakeListing(names, [FakeBucket(self, n) for n in names], prefix, page_size, page_token)

    def list_blobs(self, bucket_name, prefix=None, page_size=None, page_token=None, timeout=None):
        self.timeouts.append(timeout)
        names = sorted(self._objects(bucket_name))
        # Listing entries carry only the name, like a fields-restricted listing.
        entries = [FakeBlob(self, bucket_name, n) for n in names]
        return FakeListing(names, entries, prefix, page_size, page_token)

    def store(self, bucket_name: str, name: str, data: bytes, metadata=None) -> None:
        self._generation += 1
        self._objects(bucket_name)[name] = StoredObject(
            data=data,
            metadata=dict(metadata) if metadata else None,
            updated=datetime(2024, 1, 1, tzinfo=timezone.utc),
            generation=self._generation,
        )


class FakeBucket:
    def __init__(self, client: FakeClient, name: str):
        self._client = client
        self.name = name

    def blob(self, blob_name: str) -> "FakeBlob":
        return FakeBlob(self._client, self.name, blob_name)

    def delete(self, timeout=None):
        objects = self._client._objects(self.name)
        if objects:
            raise Conflict(f"bucket {self.name} is not empty")
        del self._client.buckets[self.name]

    def delete_blob(self, blob_name, timeout=None):
        objects = self._client._objects(self.name)
        if blob_name not in objects:
            raise NotFound(f"object {blob_name} not found")
        del objects[blob_name]


class FakeBlob:
    def __init__(self, client: FakeClient, bucket_name: str, name: str):
        self._client = client
        self._bucket_name = bucket_name
        self.name = name
        self.metadata = None
        self.size = None
        self.md5_hash = None
        self.updated = None
        self.media_link = None

    def reload(self, timeout=None):
        self._client.reload_calls.append(self.name)
        self._client.timeouts.append(timeout)
        stored = self._client._objects(self._bucket_name).get(self.name)
        if stored is None:
            raise NotFound(f"object {self.name} not found")
        self.size = self._client.reported_sizes.get(self.name, len(stored.data))
        self.md5_hash = base64.b64encode(hashlib.md5(stored.data).digest()).decode()
        self.updated = stored.updated
        self.metadata = dict(stored.metadata) if stored.metadata else None
        self.media_link = (
            "https://storage.googleapis.com/download/storage/v1/b/"
            f"{self._bucket_name}/o/{quote(self.name, safe='')}"
            f"?generation={stored.generation}&alt=media"
        )

    def upload_from_file(self, file_obj, timeout=None):
        self._client.timeouts.append(timeout)
        self._client.store(self._bucket_name, self.name, file_obj.read(), self.metadata)

    def open(self, mode="r", timeout=None):
        stored = self._client._objects(self._bucket_name).get(self.name)
        if stored is None:
            raise NotFound(f"object {self.name} not found")
        reader = io.BytesIO(stored.data)
        self._client.readers.append(reader)
        return reader


class FakeListing:
    """Mimics an HTTPIterator: next_page_token is set once a page is fetched."""

    def __init__(self, names, entries, prefix, page_size, page_token):
        self._names = names
        self._entries = entries
        self._prefix = prefix or ""
        self._page_size = page_size
        self._page_token = page_token
        self.next_page_token = None

    @property
    def pages(self):
        start = 0
        if self._page_token:
            after = base64.urlsafe_b64decode(self._page_token.encode()).decode()
            start = sum(1 for n in self._names if n <= after)
        matching = [
            (n, e)
            for n, e in list(zip(self._names, self._entries))[start:]
            if n.startswith(self._prefix)
        ]
        size = self._page_size or len(matching)
        page = matching[:size]
        if len(matching) > size:
            last = page[-1][0]
            self.next_page_token = base64.urlsafe_b64encode(last.encode()).decode()
        yield [e for _, e in page]


@pytest.fixture
def fake_client() -> FakeClient:
    return FakeClient()
