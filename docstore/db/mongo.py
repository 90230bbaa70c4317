from typing import Any, Optional
import json
import os

from pydantic import BaseModel, ValidationError, model_validator

from .errors import CredentialParseError
from ..util.logger import get_logger

logger = get_logger("mongo")


class MongoCredentials(BaseModel):
    """Service credentials for the document database.

    Either a full connection string (``uri``) or AWS IAM authentication
    (``auth_mechanism="MONGODB-AWS"`` plus ``cluster_host``).
    """

    database: str
    uri: Optional[str] = None
    auth_mechanism: Optional[str] = None
    cluster_host: Optional[str] = None
    app_name: Optional[str] = None

    @model_validator(mode="after")
    def _check_auth(self) -> "MongoCredentials":
        if not self.database.strip():
            raise ValueError("database must not be empty")
        if self.is_aws:
            if not (self.cluster_host or "").strip():
                raise ValueError("cluster_host is required for MONGODB-AWS authentication")
        elif not (self.uri or "").strip():
            raise ValueError("uri is required unless auth_mechanism is MONGODB-AWS")
        return self

    @property
    def is_aws(self) -> bool:
        return (self.auth_mechanism or "").strip().upper() == "MONGODB-AWS"


def parse_credentials(credentials_json: str) -> MongoCredentials:
    """Parse a credential JSON string; any malformed input raises CredentialParseError."""
    try:
        raw = json.loads(credentials_json)
    except (TypeError, ValueError) as e:
        raise CredentialParseError(f"Credentials are not valid JSON: {e}") from e
    if not isinstance(raw, dict):
        raise CredentialParseError("Credentials must be a JSON object")
    try:
        return MongoCredentials.model_validate(raw)
    except ValidationError as e:
        raise CredentialParseError(f"Invalid credentials: {e}") from e


def build_mongo_uri(creds: MongoCredentials) -> str:
    """Build MongoDB connection URI based on authentication mechanism."""
    if creds.is_aws:
        # AWS IAM Authentication - uses ambient AWS credentials
        cluster_host = creds.cluster_host.strip()
        uri = (
            f"mongodb+srv://{cluster_host}/"
            f"?authSource=%24external"
            f"&authMechanism=MONGODB-AWS"
        )
        logger.info(f"Using AWS IAM authentication for MongoDB Atlas: {cluster_host}")
        return uri
    logger.info("Using traditional connection string for MongoDB")
    return creds.uri.strip()


def _write_concern():
    w = os.getenv("DOCSTORE_WRITE_CONCERN", "majority").strip()
    return int(w) if w.isdigit() else w


def create_async_mongo_client(creds: MongoCredentials) -> Any:
    """Create async MongoDB client for use with Motor. Does not connect until first use."""
    from motor.motor_asyncio import AsyncIOMotorClient

    server_sel_ms = int(os.getenv("DOCSTORE_SERVER_SELECTION_MS", "30000"))
    app_name = creds.app_name or os.getenv("DOCSTORE_APP_NAME", "docstore")

    return AsyncIOMotorClient(
        build_mongo_uri(creds),
        appname=app_name,
        serverSelectionTimeoutMS=server_sel_ms,
        retryWrites=True,
        w=_write_concern(),
    )


__all__ = [
    "MongoCredentials",
    "parse_credentials",
    "build_mongo_uri",
    "create_async_mongo_client",
]
