"""Check that a resolved metrics archive exists and is non-empty."""

from __future__ import annotations

import logging

import requests

from prowmetrics.engine.errors import (
    ArchiveStatusError,
    EmptyArchiveError,
    FetchError,
    InvalidContentLengthError,
    MissingContentLengthError,
)
from prowmetrics.models import DEFAULT_FETCH_TIMEOUT

logger = logging.getLogger("prowmetrics.engine.validator")


def validate_archive(
    archive_url: str,
    session: requests.Session | None = None,
    timeout: float = DEFAULT_FETCH_TIMEOUT,
) -> int:
    """HEAD ``archive_url`` and return its Content-Length.

    The body is never downloaded.

    Raises:
        FetchError: The request itself failed.
        ArchiveStatusError: The response status was not 200.
        MissingContentLengthError: No Content-Length header.
        InvalidContentLengthError: Content-Length is not an integer.
        EmptyArchiveError: Content-Length is zero.
    """
    http = session or requests
    try:
        with http.head(archive_url, timeout=timeout, allow_redirects=True) as resp:
            status_code = resp.status_code
            reason = resp.reason
            content_length = resp.headers.get("content-length")
    except requests.RequestException as exc:
        raise FetchError(f"Failed to fetch {archive_url}: {exc}", url=archive_url, stage="validate") from exc

    if status_code != requests.codes.ok:
        raise ArchiveStatusError(
            f"Failed to check archive at {archive_url}: returned {status_code} {reason or ''}".rstrip(),
            url=archive_url,
            status_code=status_code,
        )

    if not content_length:
        raise MissingContentLengthError(
            f"Failed to check archive at {archive_url}: no content length returned",
            url=archive_url,
            stage="validate",
        )

    try:
        length = int(content_length)
    except ValueError as exc:
        raise InvalidContentLengthError(
            f"Failed to check archive at {archive_url}: invalid content length {content_length!r}",
            url=archive_url,
            stage="validate",
        ) from exc

    if length == 0:
        raise EmptyArchiveError(
            f"Failed to check archive at {archive_url}: archive is empty",
            url=archive_url,
            stage="validate",
        )

    logger.info("Archive at %s is %d bytes", archive_url, length)
    return length
