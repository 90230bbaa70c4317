"""Errors raised by the adapter itself.

Failures coming from the database driver (``pymongo.errors.PyMongoError`` and
subclasses) are never wrapped; they reach the caller unchanged.
"""


class DocstoreError(Exception):
    """Base class for locally raised errors."""


class ConstructionError(DocstoreError, ValueError):
    """An Update of kind CREATE or UPDATE was built without a payload."""


class CredentialParseError(DocstoreError, ValueError):
    """The credential payload is not valid JSON or is missing required fields."""


class InvalidPathError(DocstoreError, ValueError):
    """A document or collection path has the wrong shape."""


class DocumentNotFoundError(DocstoreError, LookupError):
    """An update targeted a document that does not exist."""

    def __init__(self, path: str):
        super().__init__(f"No document to update: {path}")
        self.path = path


__all__ = [
    "DocstoreError",
    "ConstructionError",
    "CredentialParseError",
    "InvalidPathError",
    "DocumentNotFoundError",
]
