"""
Exceptions raised to callers of the service operations.

Internal failures (fetch errors, search errors, persistence failures) are
absorbed inside the pipeline; only caller mistakes surface as these.
"""


class CatalogRequestError(Exception):
    """Base class for client errors, carries an HTTP-style status code."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"success": False, "error": self.message, "status": self.status_code}


class InvalidRequestError(CatalogRequestError):
    """A required identifier is missing or malformed."""

    status_code = 400


class NotFoundError(CatalogRequestError):
    """A referenced session or catalog entry does not exist."""

    status_code = 404
