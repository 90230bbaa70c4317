"""Environment-driven construction of the data service.

Credentials come from ``DOCSTORE_CREDENTIALS`` (JSON string) or, failing that,
``DOCSTORE_CREDENTIALS_FILE`` (path to a JSON file). A `.env` file is honored.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional, Protocol

from .data_service import get_data_service
from ..util.env_loader import load_env
from ..util.logger import get_logger

logger = get_logger("db.factory")


class DocumentStore(Protocol):  # pragma: no cover - structural protocol
    async def get_collection(self, path, filter=None, options=None, model=None): ...

    async def get_collection_as_map(
        self, path, filter=None, options=None, model=None
    ): ...

    async def get_document(self, path, model=None): ...

    async def set_document(self, path, data) -> None: ...

    async def update_document(self, path, data) -> None: ...

    async def delete_document(self, path) -> None: ...

    async def batch_update(self, updates) -> None: ...


def read_credentials() -> Optional[str]:
    inline = os.getenv("DOCSTORE_CREDENTIALS", "").strip()
    if inline:
        return inline
    file_path = os.getenv("DOCSTORE_CREDENTIALS_FILE", "").strip()
    if file_path:
        return Path(file_path).read_text(encoding="utf-8")
    return None


def have_credentials() -> bool:
    return bool(
        os.getenv("DOCSTORE_CREDENTIALS", "").strip()
        or os.getenv("DOCSTORE_CREDENTIALS_FILE", "").strip()
    )


def get_data_service_from_env() -> DocumentStore:
    env_file = load_env()
    if env_file:
        logger.info(f"env loaded: {env_file}")
    credentials = read_credentials()
    if credentials is None:
        raise RuntimeError(
            "Document store not configured: set DOCSTORE_CREDENTIALS or DOCSTORE_CREDENTIALS_FILE."
        )
    return get_data_service(credentials)


__all__ = [
    "DocumentStore",
    "read_credentials",
    "have_credentials",
    "get_data_service_from_env",
]
