"""prowmetrics engine — archive resolution modules.

- extract_links: anchors of a gcsweb listing page
- fetch_timestamp: instant recorded in started.json / finished.json
- DirectoryResolver: walks the listing down to metrics/prometheus.tar
- validate_archive: HEAD check that the archive exists and is non-empty
- find_metrics_archive: resolve + validate with status narration
- ListingServer: local fixture server standing in for gcsweb and storage
"""

from prowmetrics.engine.errors import (
    ArchiveStatusError,
    EmptyArchiveError,
    EmptyResultError,
    FetchError,
    InvalidContentLengthError,
    MissingContentLengthError,
    NotFoundError,
    ParseError,
    ResolutionError,
)
from prowmetrics.engine.links import extract_links, parse_links
from prowmetrics.engine.lookup import ArchiveLookup, find_metrics_archive, generate_app_label
from prowmetrics.engine.resolver import DirectoryResolver, ResolvedArchive, RunWindow, resolve_archive
from prowmetrics.engine.timestamps import fetch_timestamp
from prowmetrics.engine.validator import validate_archive

# ListingServer is NOT eagerly imported; it is test and dev tooling:
#   from prowmetrics.engine.listing_server import ListingServer

__all__ = [
    "ArchiveLookup",
    "ArchiveStatusError",
    "DirectoryResolver",
    "EmptyArchiveError",
    "EmptyResultError",
    "FetchError",
    "InvalidContentLengthError",
    "MissingContentLengthError",
    "NotFoundError",
    "ParseError",
    "ResolutionError",
    "ResolvedArchive",
    "RunWindow",
    "extract_links",
    "fetch_timestamp",
    "find_metrics_archive",
    "generate_app_label",
    "parse_links",
    "resolve_archive",
    "validate_archive",
]
