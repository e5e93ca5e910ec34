"""Read the ``timestamp`` field from Prow's started.json / finished.json."""

from __future__ import annotations

import datetime as dt
import json
import logging

import requests

from prowmetrics.engine.errors import FetchError, ParseError
from prowmetrics.engine.urls import require_absolute
from prowmetrics.models import DEFAULT_FETCH_TIMEOUT

logger = logging.getLogger("prowmetrics.engine.timestamps")


def parse_timestamp(body: str | bytes, source_url: str = "") -> dt.datetime:
    """Decode a ``{"timestamp": <int>}`` document into a UTC datetime.

    Fields other than ``timestamp`` are ignored.
    """
    try:
        data = json.loads(body)
    except ValueError as exc:
        raise ParseError(
            f"Failed to unmarshal json from {source_url}: {exc}", url=source_url, stage="decode"
        ) from exc

    if not isinstance(data, dict):
        raise ParseError(
            f"Failed to unmarshal json from {source_url}: expected an object, got {type(data).__name__}",
            url=source_url,
            stage="decode",
        )

    value = data.get("timestamp")
    # bool is an int subclass but never a valid timestamp
    if isinstance(value, bool) or not isinstance(value, int):
        raise ParseError(
            f"Failed to unmarshal json from {source_url}: 'timestamp' must be an integer, got {value!r}",
            url=source_url,
            stage="decode",
        )
    try:
        return dt.datetime.fromtimestamp(value, tz=dt.timezone.utc)
    except (OverflowError, OSError, ValueError) as exc:
        raise ParseError(
            f"Timestamp {value} from {source_url} is out of range: {exc}", url=source_url, stage="decode"
        ) from exc


def fetch_timestamp(
    json_url: str,
    session: requests.Session | None = None,
    timeout: float = DEFAULT_FETCH_TIMEOUT,
) -> dt.datetime:
    """Fetch ``json_url`` and return the instant it records.

    Raises:
        ParseError: If the URL is not absolute or the body is not a valid document.
        FetchError: On transport failure, timeout, or an HTTP error status.
    """
    require_absolute(json_url, "json")

    http = session or requests
    try:
        with http.get(json_url, timeout=timeout) as resp:
            resp.raise_for_status()
            body = resp.content
    except requests.RequestException as exc:
        raise FetchError(f"Failed to fetch {json_url}: {exc}", url=json_url, stage="fetch") from exc

    instant = parse_timestamp(body, json_url)
    logger.debug("Timestamp at %s: %s", json_url, instant.isoformat())
    return instant
