"""Asynchronous facade over the document database.

Reads return ``Record`` envelopes or plain payloads; writes go straight to the
driver. Driver failures propagate unchanged and nothing is retried or cached here.
"""

from __future__ import annotations

import copy
import hashlib
from threading import Lock
from typing import Any, Dict, Iterable, List, Mapping, Optional, Type, Union

from .errors import DocumentNotFoundError
from .field_values import array_remove, array_union, build_update, resolve_for_set
from .mongo import create_async_mongo_client, parse_credentials
from .types import (
    DocumentRef,
    Filter,
    Payload,
    QueryOptions,
    Record,
    Update,
    UpdateType,
    collection_path,
)
from ..util.logger import get_logger

logger = get_logger("data_service")

PathLike = Union[str, DocumentRef]


class DataService:
    """Adapter between application code and one MongoDB database.

    Construct directly with a Motor client for dependency injection, or use
    ``get_data_service`` for a lazily created process-wide instance.
    """

    array_union = staticmethod(array_union)
    array_remove = staticmethod(array_remove)

    def __init__(self, client: Any, database_name: str):
        self._client = client
        self._db = client[database_name]
        self.database_name = database_name

    @classmethod
    def from_credentials(cls, credentials_json: str) -> "DataService":
        creds = parse_credentials(credentials_json)
        return cls(create_async_mongo_client(creds), creds.database)

    @staticmethod
    def get_instance(credentials_json: str) -> "DataService":
        return get_data_service(credentials_json)

    @property
    def client(self) -> Any:
        return self._client

    def _collection(self, path: str):
        return self._db[path]

    @staticmethod
    def _convert(payload: Payload, model: Optional[Type[Any]]) -> Any:
        if model is None:
            return payload
        return model.model_validate(payload)

    def _to_record(
        self, coll_path: str, doc: Dict[str, Any], model: Optional[Type[Any]]
    ) -> Record:
        raw_id = doc.pop("_id")
        raw = copy.deepcopy(doc)
        return Record(
            id=str(raw_id),
            ref=DocumentRef(collection_path=coll_path, id=raw_id),
            data=self._convert(doc, model),
            raw_data=raw,
        )

    async def get_collection(
        self,
        path: str,
        filter: Optional[Filter] = None,
        options: Optional[QueryOptions] = None,
        model: Optional[Type[Any]] = None,
    ) -> List[Record]:
        """Fetch documents under a collection path.

        Args:
            path: collection path (odd number of segments)
            filter: optional single equality predicate
            options: optional ``QueryOptions``; ``limit`` caps the result count
            model: optional pydantic model used to type each record's ``data``

        Returns:
            Records in whatever order the database yields them.
        """
        coll_path = collection_path(path)
        query = {filter.field: filter.value} if filter is not None else {}
        cursor = self._collection(coll_path).find(query)
        if options is not None and options.limit is not None:
            cursor = cursor.limit(options.limit)
        records: List[Record] = []
        async for doc in cursor:
            records.append(self._to_record(coll_path, doc, model))
        logger.debug(
            f"get_collection path={coll_path} filter={filter} count={len(records)}"
        )
        return records

    async def get_collection_as_map(
        self,
        path: str,
        filter: Optional[Filter] = None,
        options: Optional[QueryOptions] = None,
        model: Optional[Type[Any]] = None,
    ) -> Dict[str, Record]:
        """Same fetch as ``get_collection``, keyed by document id in fetch order."""
        records = await self.get_collection(path, filter, options, model)
        return {r.id: r for r in records}

    async def get_document(
        self, path: PathLike, model: Optional[Type[Any]] = None
    ) -> Optional[Any]:
        """Return the stored payload, or None when the document does not exist."""
        ref = DocumentRef.parse(path)
        doc = await self._collection(ref.collection_path).find_one({"_id": ref.id})
        if doc is None:
            logger.debug(f"get_document path={ref.path} missing")
            return None
        doc.pop("_id", None)
        return self._convert(doc, model)

    async def set_document(self, path: PathLike, data: Mapping[str, Any]) -> None:
        """Overwrite the whole document, creating it if needed."""
        await self._set(DocumentRef.parse(path), data)

    async def update_document(self, path: PathLike, data: Mapping[str, Any]) -> None:
        """Merge fields into an existing document; raises DocumentNotFoundError if absent."""
        await self._update(DocumentRef.parse(path), data)

    async def delete_document(self, path: PathLike) -> None:
        await self._delete(DocumentRef.parse(path))

    async def batch_update(self, updates: Iterable[Update]) -> None:
        """Apply all updates in one transaction: every write commits or none does.

        Multi-document transactions need a replica set or sharded cluster.
        """
        updates = list(updates)
        if not updates:
            logger.debug("batch_update called with no updates")
            return
        async with await self._client.start_session() as session:
            async with session.start_transaction():
                for update in updates:
                    ref = update.ref
                    if update.kind is UpdateType.UPDATE:
                        await self._update(ref, update.payload, session=session)
                    elif update.kind is UpdateType.DELETE:
                        await self._delete(ref, session=session)
                    elif update.kind is UpdateType.CREATE:
                        await self._set(ref, update.payload, session=session)
        logger.debug(f"batch_update committed {len(updates)} writes")

    async def _set(self, ref: DocumentRef, data: Mapping[str, Any], session=None) -> None:
        await self._collection(ref.collection_path).replace_one(
            {"_id": ref.id}, resolve_for_set(data), upsert=True, session=session
        )
        logger.debug(f"set path={ref.path}")

    async def _update(
        self, ref: DocumentRef, data: Mapping[str, Any], session=None
    ) -> None:
        res = await self._collection(ref.collection_path).update_one(
            {"_id": ref.id}, build_update(data), session=session
        )
        if res.matched_count == 0:
            raise DocumentNotFoundError(ref.path)
        logger.debug(f"update path={ref.path}")

    async def _delete(self, ref: DocumentRef, session=None) -> None:
        await self._collection(ref.collection_path).delete_one(
            {"_id": ref.id}, session=session
        )
        logger.debug(f"delete path={ref.path}")


_SERVICE: Optional[DataService] = None
_SERVICE_FINGERPRINT: Optional[str] = None
_SERVICE_LOCK = Lock()


def _fingerprint(credentials_json: str) -> str:
    return hashlib.sha256(credentials_json.encode("utf-8")).hexdigest()


def get_data_service(credentials_json: str) -> DataService:
    """Return the process-wide DataService, creating it on first use.

    The first successful initialization wins: later calls with different
    credentials get the existing instance and a warning is logged.
    """
    global _SERVICE, _SERVICE_FINGERPRINT
    if _SERVICE is None:
        with _SERVICE_LOCK:
            if _SERVICE is None:
                service = DataService.from_credentials(credentials_json)
                _SERVICE_FINGERPRINT = _fingerprint(credentials_json)
                _SERVICE = service
                logger.info(f"DataService initialized database={_SERVICE.database_name}")
                return _SERVICE
    if _fingerprint(credentials_json) != _SERVICE_FINGERPRINT:
        logger.warning(
            "get_data_service called with different credentials; "
            "returning the instance created by the first call"
        )
    return _SERVICE


def reset_data_service() -> None:
    """Drop the process-wide instance and close its client."""
    global _SERVICE, _SERVICE_FINGERPRINT
    with _SERVICE_LOCK:
        if _SERVICE is not None:
            _SERVICE.client.close()
        _SERVICE = None
        _SERVICE_FINGERPRINT = None


__all__ = ["DataService", "get_data_service", "reset_data_service"]
