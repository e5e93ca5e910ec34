"""Error taxonomy for archive resolution.

Every error carries the URL being processed and the stage that failed so the
caller can print an actionable message.  None of them are retried internally.
"""

from __future__ import annotations


class ResolutionError(Exception):
    """Base class for every failure while resolving or validating an archive."""

    def __init__(self, message: str, *, url: str = "", stage: str = "") -> None:
        super().__init__(message)
        self.url = url
        self.stage = stage


class FetchError(ResolutionError):
    """Transport failure, timeout, or non-success HTTP status."""

    pass


class ParseError(ResolutionError):
    """A rewritten URL is not absolute, or a JSON body is malformed."""

    pass


class NotFoundError(ResolutionError):
    """A required link or header is absent from an otherwise good response."""

    pass


class EmptyResultError(ResolutionError):
    """A listing was fetched successfully but contained no links."""

    pass


# -- Archive validation ----------------------------------------------------


class ArchiveStatusError(FetchError):
    """The archive HEAD request returned a non-200 status."""

    def __init__(self, message: str, *, url: str = "", status_code: int | None = None) -> None:
        super().__init__(message, url=url, stage="validate")
        self.status_code = status_code


class MissingContentLengthError(NotFoundError):
    """The archive response did not include a Content-Length header."""

    pass


class InvalidContentLengthError(ParseError):
    """The archive Content-Length header is not an integer."""

    pass


class EmptyArchiveError(ResolutionError):
    """The archive exists but its Content-Length is zero."""

    pass
