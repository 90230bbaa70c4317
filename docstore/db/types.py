"""Value types shared by the data service: paths, queries, records and pending writes."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Generic, List, Mapping, Optional, Tuple, TypeVar, Union

from .errors import ConstructionError, InvalidPathError

# Structured value accepted in payloads and filters.
Value = Union[
    None, bool, int, float, str, bytes, datetime, List["Value"], Dict[str, "Value"]
]
Payload = Dict[str, Any]

T = TypeVar("T")


def split_path(path: str) -> Tuple[str, ...]:
    """Split a slash-separated path into segments, rejecting empty ones."""
    if not isinstance(path, str):
        raise InvalidPathError(f"Path must be a string, got {type(path).__name__}")
    stripped = path.strip("/")
    if not stripped:
        raise InvalidPathError("Path is empty")
    segments = tuple(stripped.split("/"))
    if any(not s for s in segments):
        raise InvalidPathError(f"Path contains an empty segment: {path!r}")
    return segments


def collection_path(path: Union[str, "DocumentRef"]) -> str:
    """Normalize a collection path. Collections have an odd number of segments."""
    if isinstance(path, DocumentRef):
        raise InvalidPathError(f"Expected a collection path, got document {path.path!r}")
    segments = split_path(path)
    if len(segments) % 2 != 1:
        raise InvalidPathError(f"Not a collection path: {path!r}")
    return "/".join(segments)


@dataclass(frozen=True)
class DocumentRef:
    """Handle back to a stored document; accepted anywhere a document path is."""

    collection_path: str
    # Keeps the stored _id type (e.g. ObjectId) so refs from fetched records round-trip.
    id: Any

    @property
    def path(self) -> str:
        return f"{self.collection_path}/{str(self.id)}"

    @classmethod
    def parse(cls, path: Union[str, "DocumentRef"]) -> "DocumentRef":
        if isinstance(path, DocumentRef):
            return path
        segments = split_path(path)
        if len(segments) % 2 != 0:
            raise InvalidPathError(f"Not a document path: {path!r}")
        return cls(collection_path="/".join(segments[:-1]), id=segments[-1])

    def __str__(self) -> str:
        return self.path


class UpdateType(Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"

    @classmethod
    def coerce(cls, kind: Union["UpdateType", str]) -> "UpdateType":
        if isinstance(kind, cls):
            return kind
        if isinstance(kind, str):
            try:
                return cls[kind.strip().upper()]
            except KeyError:
                pass
        raise ValueError(f"Unknown update kind: {kind!r}")


@dataclass(frozen=True)
class Update:
    """One pending write, consumed by ``DataService.batch_update``."""

    path: str
    kind: UpdateType
    payload: Optional[Payload] = None
    ref: DocumentRef = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        ref = DocumentRef.parse(self.path)
        object.__setattr__(self, "ref", ref)
        object.__setattr__(self, "path", ref.path)
        object.__setattr__(self, "kind", UpdateType.coerce(self.kind))
        if self.kind is UpdateType.DELETE:
            object.__setattr__(self, "payload", None)
        elif self.payload is None:
            raise ConstructionError(
                f"Update of kind {self.kind.name} for {self.path!r} requires a payload"
            )
        else:
            object.__setattr__(self, "payload", copy.deepcopy(self.payload))

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "Update":
        return cls(raw["path"], raw["kind"], raw.get("payload"))

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"path": self.path, "kind": self.kind.name}
        if self.payload is not None:
            out["payload"] = copy.deepcopy(self.payload)
        return out


@dataclass(frozen=True)
class Filter:
    """Equality predicate: documents whose ``field`` equals ``value``."""

    field: str
    value: Value


@dataclass(frozen=True)
class QueryOptions:
    limit: Optional[int] = None

    def __post_init__(self):
        if self.limit is None:
            return
        if isinstance(self.limit, bool) or not isinstance(self.limit, int) or self.limit <= 0:
            raise ValueError(f"limit must be a positive integer, got {self.limit!r}")


@dataclass(frozen=True)
class Record(Generic[T]):
    """A fetched document: its id, a ref for later writes, the payload and an untouched copy."""

    id: str
    ref: DocumentRef
    data: T
    raw_data: Payload


__all__ = [
    "Value",
    "Payload",
    "split_path",
    "collection_path",
    "DocumentRef",
    "UpdateType",
    "Update",
    "Filter",
    "QueryOptions",
    "Record",
]
