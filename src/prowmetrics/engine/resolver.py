"""prowmetrics Directory Resolver — walk a gcsweb listing to the metrics archive.

Starting from a Prow job report URL, the resolver:

1. rewrites the viewer URL into the matching gcsweb listing URL,
2. reads the run window from ``started.json`` / ``finished.json``,
3. picks the ``artifacts/`` directory from the top-level listing,
4. picks the first directory whose name contains ``e2e`` under artifacts,
5. descends into ``gather-extra/`` when the job uses the new-style layout,
6. appends ``metrics/prometheus.tar`` and rewrites the result to the public
   storage host.

Every step depends on the previous one; the first failure aborts the walk.
At each level the first qualifying link in document order wins.
"""

from __future__ import annotations

import dataclasses
import datetime as dt
import logging
from typing import TYPE_CHECKING, Any

import requests

from prowmetrics.engine.errors import EmptyResultError, FetchError, NotFoundError, ResolutionError
from prowmetrics.engine.links import extract_links
from prowmetrics.engine.timestamps import fetch_timestamp
from prowmetrics.engine.urls import (
    LinkPredicate,
    has_suffix,
    last_segment,
    require_absolute,
    segment_contains,
    segment_equals,
    select_first,
)
from prowmetrics.models import (
    ARTIFACTS_SUFFIX,
    E2E_MARKER,
    FINISHED_JSON,
    GATHER_EXTRA_SEGMENT,
    PROM_TAR_PATH,
    STARTED_JSON,
)

if TYPE_CHECKING:
    from prowmetrics.config import ProwMetricsConfig

logger = logging.getLogger("prowmetrics.engine.resolver")


@dataclasses.dataclass(frozen=True)
class RunWindow:
    """Start and finish instants of a job run (UTC)."""

    started: dt.datetime
    finished: dt.datetime


@dataclasses.dataclass(frozen=True)
class ResolvedArchive:
    """A job's run window plus the URL of its Prometheus archive."""

    window: RunWindow
    archive_url: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "archive_url": self.archive_url,
            "started": self.window.started.isoformat(),
            "finished": self.window.finished.isoformat(),
        }


class DirectoryResolver:
    """Resolves Prow report URLs to Prometheus archive URLs.

    Owns a ``requests.Session`` unless one is injected; an injected session is
    never closed by the resolver.  Instances hold no per-call state, but a
    session should not be shared across threads.
    """

    def __init__(
        self,
        config: ProwMetricsConfig,
        session: requests.Session | None = None,
    ) -> None:
        """
        Args:
            config: Configuration providing the three host prefixes
                and the per-request timeout.
            session: Optional HTTP session (tests inject mocks here).

        Raises:
            ProwMetricsConfigError: If a host prefix is missing or the timeout
                is not positive.
        """
        config.validate()
        self._config = config
        self._owns_session = session is None
        self._session = session if session is not None else requests.Session()

    @property
    def timeout(self) -> float:
        return self._config.timeout

    @property
    def session(self) -> requests.Session:
        return self._session

    def close(self) -> None:
        if self._owns_session:
            self._session.close()

    def __enter__(self) -> DirectoryResolver:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    # ── Public API ────────────────────────────────────────────────────────

    def resolve(self, report_url: str) -> ResolvedArchive:
        """Walk the listing behind ``report_url`` down to the metrics archive.

        Raises:
            ResolutionError: A subclass describing the first failing step.
        """
        config = self._config

        gcs_url = require_absolute(config.viewer_rewrite.apply(report_url), "GCS")
        logger.info("Resolving %s via %s", report_url, gcs_url)

        window = self._fetch_run_window(gcs_url)

        # Level 1: job directory -> artifacts/
        top_links = self._list(gcs_url, "top-level")
        artifacts_url = self._pick(top_links, has_suffix(ARTIFACTS_SUFFIX), "artifacts", gcs_url)

        # Level 2: artifacts/ -> <test>-e2e-*/
        artifact_links = self._list(artifacts_url, "artifacts")
        e2e_url = self._pick(artifact_links, segment_contains(E2E_MARKER), "e2e", artifacts_url)

        # Level 3: new-style jobs keep metrics one level deeper, under gather-extra/
        e2e_links = self._list(e2e_url, "e2e")
        extra_link = select_first(e2e_links, self._traced(segment_equals(GATHER_EXTRA_SEGMENT)))
        if extra_link is not None:
            e2e_url = require_absolute(config.listing_url(extra_link), "gather-extra")
            logger.info("New-style job layout, using %s", e2e_url)

        metrics_url = config.storage_rewrite.apply(e2e_url + PROM_TAR_PATH)
        archive_url = require_absolute(metrics_url, "metrics")
        logger.info("Resolved archive for %s: %s", report_url, archive_url)
        return ResolvedArchive(window=window, archive_url=archive_url)

    # ── Steps ─────────────────────────────────────────────────────────────

    def _fetch_run_window(self, gcs_url: str) -> RunWindow:
        started = self._timestamp(f"{gcs_url}/{STARTED_JSON}", "started", "start")
        finished = self._timestamp(f"{gcs_url}/{FINISHED_JSON}", "finished", "finished")
        return RunWindow(started=started, finished=finished)

    def _timestamp(self, json_url: str, stage: str, which: str) -> dt.datetime:
        try:
            return fetch_timestamp(json_url, session=self._session, timeout=self.timeout)
        except ResolutionError as exc:
            raise type(exc)(
                f"Failed to fetch test {which} time: {exc}", url=json_url, stage=stage
            ) from exc

    def _list(self, url: str, level: str) -> list[str]:
        """Extract links at one level; an empty listing is an error here."""
        try:
            links = extract_links(url, session=self._session, timeout=self.timeout)
        except FetchError as exc:
            raise FetchError(
                f"Failed to fetch {level} GCS link at {url}: {exc}", url=url, stage=level
            ) from exc
        if not links:
            raise EmptyResultError(f"No {level} GCS links found at {url}", url=url, stage=level)
        return links

    def _pick(self, links: list[str], predicate: LinkPredicate, name: str, listing_url: str) -> str:
        """Select the first matching link and make it absolute."""
        link = select_first(links, self._traced(predicate))
        if link is None:
            raise NotFoundError(
                f"Failed to find {name} link in {links}", url=listing_url, stage=name
            )
        return require_absolute(self._config.listing_url(link), name)

    @staticmethod
    def _traced(predicate: LinkPredicate) -> LinkPredicate:
        def check(link: str) -> bool:
            logger.debug("link: %s (last segment: %s)", link, last_segment(link))
            return predicate(link)

        return check


def resolve_archive(
    report_url: str,
    config: ProwMetricsConfig,
    session: requests.Session | None = None,
) -> ResolvedArchive:
    """One-shot helper: resolve ``report_url`` with a short-lived resolver."""
    with DirectoryResolver(config, session=session) as resolver:
        return resolver.resolve(report_url)
