"""Find and check the metrics archive for a Prow job, narrating progress.

This is the caller the web client talks to: it drives the resolver and the
validator and reports each checkpoint to a status sink.
"""

from __future__ import annotations

import dataclasses
import logging
import random

from prowmetrics.engine import status
from prowmetrics.engine.errors import ResolutionError
from prowmetrics.engine.resolver import DirectoryResolver, ResolvedArchive
from prowmetrics.engine.status import StatusSink, report
from prowmetrics.engine.validator import validate_archive
from prowmetrics.models import APP_LABEL_CHARSET, APP_LABEL_LENGTH

logger = logging.getLogger("prowmetrics.engine.lookup")


@dataclasses.dataclass(frozen=True)
class ArchiveLookup:
    """Outcome of a successful lookup."""

    archive: ResolvedArchive
    label: str | None = None


def generate_app_label(rng: random.Random, length: int = APP_LABEL_LENGTH) -> str:
    """Return a lowercase label drawn from ``rng``.

    The same seed always yields the same label.
    """
    return "".join(rng.choice(APP_LABEL_CHARSET) for _ in range(length))


def find_metrics_archive(
    report_url: str,
    resolver: DirectoryResolver,
    sink: StatusSink | None = None,
    *,
    validate: bool = True,
    rng: random.Random | None = None,
) -> ArchiveLookup:
    """Resolve ``report_url`` to its Prometheus archive and optionally HEAD-check it.

    Args:
        report_url: Prow job report URL.
        resolver: Resolver configured with the host prefixes.
        sink: Where status messages go.  Delivery failures are ignored.
        validate: Whether to confirm the archive exists and is non-empty.
        rng: Caller-owned random source for the run label.  No label is
            generated when omitted.

    Raises:
        ResolutionError: The first failure, after it has been reported.
    """
    label = None
    if rng is not None:
        label = generate_app_label(rng)
        report(sink, status.APP_LABEL, label)

    report(sink, status.PROGRESS, f"Looking up prometheus archive for {report_url}")
    try:
        archive = resolver.resolve(report_url)
    except ResolutionError as exc:
        report(sink, status.FAILURE, str(exc))
        raise

    report(sink, status.STATUS, f"Found prometheus archive at {archive.archive_url}")
    report(sink, status.LINK, archive.archive_url)

    if validate:
        report(sink, status.STATUS, "Checking if prometheus archive can be fetched")
        try:
            validate_archive(archive.archive_url, session=resolver.session, timeout=resolver.timeout)
        except ResolutionError as exc:
            report(sink, status.FAILURE, str(exc))
            raise

    report(sink, status.DONE, "Prometheus archive is ready")
    logger.info("Lookup complete for %s", report_url)
    return ArchiveLookup(archive=archive, label=label)
