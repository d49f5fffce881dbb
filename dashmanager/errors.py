"""Exception hierarchy shared by the stores and adapters."""

from __future__ import annotations


class DashManagerError(Exception):
    """Base class for every error raised by :mod:`dashmanager`."""


class ConfigurationError(DashManagerError):
    """Credentials are missing or malformed, or the store is unreachable."""


class RemoteStoreError(DashManagerError):
    """A request against the remote data store failed.

    Attributes
    ----------
    status:
        HTTP status code when the server answered, ``None`` for transport
        failures.
    detail:
        Response body returned by the server, if any.

    """

    def __init__(self, message: str, *, status: int | None = None, detail: str = "") -> None:
        super().__init__(message)
        self.status = status
        self.detail = detail


class ValidationError(DashManagerError):
    """User supplied data failed validation before any remote call."""

    def __init__(self, errors: dict[str, str]) -> None:
        self.errors = dict(errors)
        summary = "; ".join(f"{field}: {msg}" for field, msg in self.errors.items())
        super().__init__(summary or "Invalid data.")


class NotFoundError(DashManagerError):
    """An operation referenced an entity id that is not loaded."""
