from collections.abc import Mapping
from typing import Any

from .errors import ValidationError

# Values the backend's wire format can carry. Only strings for now; extend
# both this alias and encode() together.
MetadataValue = str
LooseMetadata = dict[str, Any]
NativeMetadata = dict[str, MetadataValue]


def decode(native: Mapping[str, str] | None) -> LooseMetadata:
    """Copy backend metadata into the loosely-typed form. Never fails."""
    if not native:
        return {}
    return {key: value for key, value in native.items()}


def encode(loose: Mapping[str, Any] | None) -> NativeMetadata:
    """
    Convert loosely-typed metadata into the backend's string map.
    Raises ValidationError naming the first key whose value is not a string.
    """
    native: NativeMetadata = {}
    if not loose:
        return native
    for key, value in loose.items():
        if not isinstance(value, MetadataValue):
            raise ValidationError(key)
        native[key] = value
    return native
