"""URL helpers shared by the resolver.

Host rewriting, last-segment extraction and first-match link selection are
kept here as pure functions so each selection rule can be tested on its own.
"""

from __future__ import annotations

import dataclasses
from typing import Callable, Iterable
from urllib.parse import urlsplit

from prowmetrics.engine.errors import ParseError

LinkPredicate = Callable[[str], bool]


@dataclasses.dataclass(frozen=True)
class HostRewrite:
    """Replace every occurrence of ``source`` with ``target`` in a URL."""

    source: str
    target: str

    def apply(self, url: str) -> str:
        if not self.source:
            return url
        return url.replace(self.source, self.target)


def require_absolute(url: str, stage: str) -> str:
    """Return ``url`` unchanged if it has a scheme and host, else raise ParseError."""
    try:
        parts = urlsplit(url)
    except ValueError as exc:
        raise ParseError(f"Failed to parse {stage} URL {url}: {exc}", url=url, stage=stage) from exc
    if not parts.scheme or not parts.netloc:
        raise ParseError(
            f"Failed to parse {stage} URL {url}: not an absolute URL",
            url=url,
            stage=stage,
        )
    return url


def last_segment(href: str) -> str:
    """Return the last non-empty path segment of ``href``.

    A trailing slash is ignored, so ``/a/b/e2e-aws/`` yields ``e2e-aws``.
    """
    parts = href.split("/")
    segment = parts[-1]
    if not segment and len(parts) > 1:
        segment = parts[-2]
    return segment


# ── Predicates ────────────────────────────────────────────────────────────


def has_suffix(suffix: str) -> LinkPredicate:
    """Match links whose full text ends with ``suffix``."""
    return lambda link: link.endswith(suffix)


def segment_contains(marker: str) -> LinkPredicate:
    """Match links whose last segment contains ``marker``."""
    return lambda link: marker in last_segment(link)


def segment_equals(name: str) -> LinkPredicate:
    """Match links whose last segment is exactly ``name``."""
    return lambda link: last_segment(link) == name


def select_first(links: Iterable[str], predicate: LinkPredicate) -> str | None:
    """Return the first link in document order that satisfies ``predicate``."""
    for link in links:
        if predicate(link):
            return link
    return None
