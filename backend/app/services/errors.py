from __future__ import annotations


class InputError(ValueError):
    """Missing or malformed caller input (empty address, bad coordinate)."""


class FetchError(Exception):
    """Upstream answered with a non-success status, or nothing was captured."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code
