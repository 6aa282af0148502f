"""Outgoing payload variants.

The caller picks the variant; the gateway never inspects the value to
decide how to encode it.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, Union


@dataclass(frozen=True)
class FileAttachment:
    """A named blob sent as one multipart file part."""

    name: str
    data: bytes


@dataclass(frozen=True)
class NoBody:
    """Request without a body."""


@dataclass(frozen=True)
class JsonBody:
    """Body serialized as a compact JSON document."""

    value: Any


@dataclass(frozen=True)
class MultipartBody:
    """Body assembled as ``multipart/form-data``.

    ``fields`` and ``files`` accept either a mapping or a sequence of
    ``(key, value)`` pairs, so repeated keys can be detected and rejected
    by the gateway instead of being silently collapsed.
    """

    fields: Mapping[str, str] | Iterable[tuple[str, str]] = field(default_factory=dict)
    files: Mapping[str, FileAttachment] | Iterable[tuple[str, FileAttachment]] = field(
        default_factory=dict
    )

    def field_items(self) -> list[tuple[str, str]]:
        return _pairs(self.fields)

    def file_items(self) -> list[tuple[str, FileAttachment]]:
        return _pairs(self.files)


Payload = Union[NoBody, JsonBody, MultipartBody]


def _pairs(source: Any) -> list[tuple[str, Any]]:
    if isinstance(source, Mapping):
        return list(source.items())
    return list(source)
