from __future__ import annotations


class FetchError(Exception):
    """A single source could not be fetched. Never fatal to the poll loop."""

    def __init__(self, source_id: str, message: str) -> None:
        super().__init__(f"{source_id}: {message}")
        self.source_id = source_id
        self.message = message


class TransportError(FetchError):
    """Connection refused, DNS, timeout or an HTTP error status."""


class DecodeError(FetchError):
    """The response body was not a JSON array of events."""
