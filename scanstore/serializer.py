"""Negotiated serializer wrapper that refuses the Protobuf content type."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol

CONTENT_TYPE_JSON = "application/json"
CONTENT_TYPE_YAML = "application/yaml"
CONTENT_TYPE_PROTOBUF = "application/vnd.kubernetes.protobuf"


@dataclass(frozen=True)
class SerializerInfo:
    """A media type a serializer can handle."""

    media_type: str
    encodes_as_text: bool = False
    serializer: Any = field(default=None, compare=False)


class NegotiatedSerializer(Protocol):
    def supported_media_types(self) -> list[SerializerInfo]: ...


class NoProtobufSerializer:
    """Wraps a negotiated serializer and hides its Protobuf media type."""

    def __init__(self, original: NegotiatedSerializer) -> None:
        self._original = original

    def supported_media_types(self) -> list[SerializerInfo]:
        """Return the wrapped serializer's media types without Protobuf."""
        return [
            info
            for info in self._original.supported_media_types()
            if info.media_type != CONTENT_TYPE_PROTOBUF
        ]

    def __getattr__(self, name: str) -> Any:
        return getattr(self._original, name)