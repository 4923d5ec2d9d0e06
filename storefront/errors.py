"""
Error Taxonomy

Every error raised by the catalog lifecycle carries the HTTP status it maps to
and a message that is safe to return to the caller.
"""

from typing import Any, Dict, Optional


class CatalogError(Exception):
    """Base class for catalog lifecycle errors"""

    status_code: int = 500

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ValidationError(CatalogError):
    """Missing required field, invalid enum or out-of-range value"""

    status_code = 400


class ConflictError(CatalogError):
    """A record with the same unique key already exists"""

    status_code = 400


class NotFoundError(CatalogError):
    """The entity or a referenced entity does not exist"""

    status_code = 404


class MediaGatewayError(CatalogError):
    """The remote media store failed"""

    status_code = 500


class PersistenceError(CatalogError):
    """The persistent store failed"""

    status_code = 500
