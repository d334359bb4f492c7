"""Exceptions module. Defines custom exceptions for the sanity checker."""


class DockerException(Exception):
    """Base exception for engine API errors."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class SanityFailure(Exception):
    """A sanity assertion did not hold."""


class FatalSanityError(SanityFailure):
    """A sanity assertion failed and the run cannot continue."""
