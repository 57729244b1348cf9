from __future__ import annotations


class ReplayError(RuntimeError):
    pass


class ValidationError(ReplayError):
    """Malformed queue definition or item; raised before any network activity."""


class BrokerConnectionError(ReplayError):
    """The broker could not be reached while initializing a channel."""


class TransportError(ReplayError):
    """A single write was rejected by the broker or timed out."""

    def __init__(self, message: str, *, cause: object | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class NotFoundError(ReplayError, LookupError):
    pass
