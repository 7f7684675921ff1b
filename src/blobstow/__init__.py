"""
blobstow
========

Uniform Location / Container / Item access to object storage, backed by
Google Cloud Storage.

Main entry points:
- GoogleLocation: the Google Cloud Storage location
- Location, Container, Item: the protocols every backend implements
- default_backends, dial, backend_for_url: explicit backend composition
- encode_metadata, decode_metadata: metadata codec
- NotFoundError, SchemeMismatchError, ValidationError, MissingConfigError: exceptions

Example:
    from blobstow import default_backends, dial

    with dial(default_backends(), "google", {"project_id": "my-project"}) as location:
        container = location.container("my-bucket")
        items, cursor = container.items(prefix="reports/", count=50)
"""

from .errors import (
    StowError,
    NotFoundError,
    SchemeMismatchError,
    ValidationError,
    MissingConfigError,
    UnknownBackendError,
)

from .metadata import decode as decode_metadata, encode as encode_metadata

from .storage_protocols import (
    Location,
    Container,
    Item,
    iter_items,
    iter_containers,
)
from .google_adapter import (
    GoogleLocation,
    KIND as GOOGLE_KIND,
    CONFIG_PROJECT_ID,
    CONFIG_JSON,
    is_google_url,
)
from .registry import Backend, default_backends, dial, backend_for_url

import importlib.metadata

try:
    __version__ = importlib.metadata.version(__name__)
except importlib.metadata.PackageNotFoundError:
    __version__ = "0.0.0"

__all__ = [
    "StowError",
    "NotFoundError",
    "SchemeMismatchError",
    "ValidationError",
    "MissingConfigError",
    "UnknownBackendError",
    "decode_metadata",
    "encode_metadata",
    "Location",
    "Container",
    "Item",
    "iter_items",
    "iter_containers",
    "GoogleLocation",
    "GOOGLE_KIND",
    "CONFIG_PROJECT_ID",
    "CONFIG_JSON",
    "is_google_url",
    "Backend",
    "default_backends",
    "dial",
    "backend_for_url",
]
