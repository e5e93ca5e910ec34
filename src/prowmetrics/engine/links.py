"""Link extraction from gcsweb directory listing pages."""

from __future__ import annotations

import logging

import requests
from bs4 import BeautifulSoup

from prowmetrics.engine.errors import FetchError
from prowmetrics.models import DEFAULT_FETCH_TIMEOUT

logger = logging.getLogger("prowmetrics.engine.links")


def parse_links(markup: str | bytes) -> list[str]:
    """Return the href of every anchor in ``markup``, in document order.

    Anchors without an href are skipped.  When an anchor repeats the
    attribute, the first value wins.  Values are returned verbatim.
    """
    soup = BeautifulSoup(markup, "html.parser", on_duplicate_attribute="ignore")
    links: list[str] = []
    for anchor in soup.find_all("a"):
        href = anchor.get("href")
        if href is not None:
            links.append(href)
    return links


def extract_links(
    page_url: str,
    session: requests.Session | None = None,
    timeout: float = DEFAULT_FETCH_TIMEOUT,
) -> list[str]:
    """Fetch ``page_url`` and return the links it contains.

    An empty list is a valid result; callers decide whether that is an error.

    Raises:
        FetchError: On transport failure, timeout, or an HTTP error status.
    """
    http = session or requests
    try:
        with http.get(page_url, timeout=timeout) as resp:
            resp.raise_for_status()
            body = resp.content
    except requests.RequestException as exc:
        raise FetchError(f"Failed to fetch {page_url}: {exc}", url=page_url, stage="links") from exc

    links = parse_links(body)
    logger.debug("Extracted %d links from %s", len(links), page_url)
    return links
