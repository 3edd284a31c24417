"""Exception types shared by the API, the graph engine and the CLI."""


class CaseLinkError(Exception):
    """Base class for caselink errors."""


class ApiError(CaseLinkError):
    """An error that maps directly onto an HTTP status and JSON error body."""

    status = 500

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.message = message
        if status is not None:
            self.status = status

    def to_dict(self) -> dict:
        return {"error": {"message": self.message, "status": self.status}}


class NotFoundError(ApiError):
    status = 404


class BadRequestError(ApiError):
    status = 400


class EntityNotFoundError(CaseLinkError):
    """The root entity of a graph traversal does not exist."""

    def __init__(self, entity_type: str, entity_id: str):
        super().__init__(f"{entity_type.capitalize()} not found: {entity_id}")
        self.entity_type = entity_type
        self.entity_id = entity_id


class FetchError(CaseLinkError):
    """A graph source failed to fetch rows (database or network failure)."""
