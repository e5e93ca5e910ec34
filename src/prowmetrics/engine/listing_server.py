"""prowmetrics Listing Server — local stand-in for gcsweb and the storage host.

Reads a listing fixture (YAML file or dict), starts a background HTTP server
and answers each request path with the route configured for it:

- ``links``: an HTML directory page with one anchor per entry
- ``json``: a JSON document (``started.json`` / ``finished.json``)
- ``archive``: an object answered to HEAD with a Content-Length and no body

Every request is kept in an ordered in-memory log, and optionally appended as
JSONL to a recording directory.

Fixture format::

    listing:
      port: 0                      # 0 picks a free port
      recording:
        enabled: false
        output_dir: recordings
      routes:
        /gcs/bucket/logs/job/1/started.json:
          json: {timestamp: 1700000000}
        /gcs/bucket/logs/job/1:
          links: [/gcs/bucket/logs/job/1/artifacts/]
        /bucket/logs/job/1/artifacts/e2e/metrics/prometheus.tar:
          archive: {content_length: 1024}

Usage::

    with ListingServer.from_file(Path("fixture.yaml")) as server:
        print(server.url)   # http://127.0.0.1:54321
"""

from __future__ import annotations

import datetime as dt
import html
import json
import logging
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger("prowmetrics.engine.listing_server")


# ---------------------------------------------------------------------------
# Fixture model
# ---------------------------------------------------------------------------

class ListingRoute:
    """One path in the fixture and how to answer it."""

    __slots__ = ("path", "status", "links", "anchors", "json_body", "archive")

    def __init__(self, path: str, raw: dict[str, Any]) -> None:
        self.path = path
        self.status: int = int(raw.get("status", 200))
        self.links: list[str] | None = raw.get("links")
        self.anchors: list[str] = list(raw.get("anchors") or [])
        self.json_body: Any = raw.get("json")
        self.archive: dict[str, Any] | None = raw.get("archive")

    def render_page(self) -> bytes:
        """Render ``links`` (and raw ``anchors``) as a gcsweb-style listing page."""
        rows = [
            f'<li class="grid-row"><a href="{html.escape(link, quote=True)}">'
            f"{html.escape(link.rstrip('/').rsplit('/', 1)[-1] or link)}</a></li>"
            for link in self.links or []
        ]
        rows.extend(f"<li>{anchor}</li>" for anchor in self.anchors)
        page = (
            "<!doctype html>\n<html><head><title>listing</title></head>\n"
            "<body><ul>\n" + "\n".join(rows) + "\n</ul></body></html>\n"
        )
        return page.encode("utf-8")


class ListingFixture:
    """Fully parsed listing fixture ready for request matching."""

    def __init__(self, raw: dict[str, Any]) -> None:
        svc = raw.get("listing", raw) if isinstance(raw, dict) else {}

        self.port: int = int(svc.get("port", 0))
        self.routes: dict[str, ListingRoute] = {
            path: ListingRoute(path, spec or {})
            for path, spec in (svc.get("routes") or {}).items()
        }

        rec = svc.get("recording") or {}
        self.recording_enabled: bool = bool(rec.get("enabled", False))
        self.recording_dir: str = rec.get("output_dir", "")


# ---------------------------------------------------------------------------
# Request handler
# ---------------------------------------------------------------------------

class ListingRequestHandler(BaseHTTPRequestHandler):
    """HTTP handler that answers requests from a ListingFixture."""

    # Set by ListingServer before the HTTPServer is started
    fixture: ListingFixture
    base_dir: Path
    request_log: list[tuple[str, str]]
    _log_lock: threading.Lock

    def do_GET(self) -> None:
        self._handle_request("GET")

    def do_HEAD(self) -> None:
        self._handle_request("HEAD")

    # Route default stderr logging through Python logging
    def log_message(self, format: str, *args: Any) -> None:  # noqa: A002
        logger.debug("listing_http: %s", format % args)

    def _handle_request(self, method: str) -> None:
        path = self.path.split("?")[0]
        cls = self.__class__
        with cls._log_lock:
            cls.request_log.append((method, path))

        # Recorded before responding so the log is complete once the client returns
        route = cls.fixture.routes.get(path)
        if route is None:
            self._record(method, path, 404)
            self._send(404, b"not found\n", "text/plain", method)
            return

        self._record(method, path, route.status)
        if route.archive is not None:
            self._send_archive(route, method)
        elif route.json_body is not None:
            payload = json.dumps(route.json_body).encode("utf-8")
            self._send(route.status, payload, "application/json", method)
        else:
            self._send(route.status, route.render_page(), "text/html; charset=utf-8", method)

    # -----------------------------------------------------------------------
    # Response helpers
    # -----------------------------------------------------------------------

    def _send(self, status: int, payload: bytes, content_type: str, method: str) -> None:
        self.send_response(status)
        self.send_header("Content-Type", content_type)
        self.send_header("Content-Length", str(len(payload)))
        self.end_headers()
        if method != "HEAD":
            self.wfile.write(payload)

    def _send_archive(self, route: ListingRoute, method: str) -> None:
        """Answer an archive route; HEAD gets headers only."""
        spec = route.archive or {}
        length = spec.get("content_length", 0)
        self.send_response(route.status)
        self.send_header("Content-Type", "application/x-tar")
        if not spec.get("omit_content_length", False):
            self.send_header("Content-Length", str(length))
        self.end_headers()
        if method != "HEAD" and isinstance(length, int) and length > 0:
            self.wfile.write(b"\0" * length)
        # Without a Content-Length the body is delimited by closing the connection
        self.close_connection = True

    # -----------------------------------------------------------------------
    # Recording
    # -----------------------------------------------------------------------

    def _record(self, method: str, path: str, status: int) -> None:
        """Append a JSONL line to the recordings directory (if enabled)."""
        fixture = self.__class__.fixture
        if not fixture.recording_enabled or not fixture.recording_dir:
            return

        rec_dir = self.__class__.base_dir / fixture.recording_dir
        rec_dir.mkdir(parents=True, exist_ok=True)

        record = {
            "timestamp": dt.datetime.now(dt.timezone.utc).isoformat(timespec="milliseconds"),
            "method": method,
            "path": path,
            "response_status": status,
        }
        line = json.dumps(record, separators=(",", ":")) + "\n"

        with self.__class__._log_lock:
            with open(rec_dir / "requests.jsonl", "a", encoding="utf-8") as f:
                f.write(line)


# ---------------------------------------------------------------------------
# ListingServer -- public API
# ---------------------------------------------------------------------------

class ListingServer:
    """Manages lifecycle of a local listing server backed by a fixture."""

    def __init__(self, fixture: ListingFixture, base_dir: Path | None = None, port: int | None = None) -> None:
        """
        Args:
            fixture: Parsed fixture.
            base_dir: Directory that recording output paths are relative to.
            port: Overrides ``fixture.port`` when given.
        """
        self._fixture = fixture
        self._base_dir = Path(base_dir) if base_dir is not None else Path.cwd()
        self._port = fixture.port if port is None else port
        self._httpd: ThreadingHTTPServer | None = None
        self._thread: threading.Thread | None = None
        self._requests: list[tuple[str, str]] = []

    @classmethod
    def from_file(cls, fixture_path: Path, port: int | None = None) -> ListingServer:
        """Load a fixture YAML file; recordings land next to it."""
        if not fixture_path.exists():
            raise FileNotFoundError(f"Listing fixture not found: {fixture_path}")
        with open(fixture_path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
        return cls(ListingFixture(raw), base_dir=fixture_path.parent, port=port)

    @classmethod
    def from_dict(cls, raw: dict[str, Any], port: int | None = None) -> ListingServer:
        return cls(ListingFixture(raw), port=port)

    @property
    def fixture(self) -> ListingFixture:
        return self._fixture

    @property
    def port(self) -> int:
        """Return the bound port (the configured one until started)."""
        if self._httpd is not None:
            return self._httpd.server_address[1]
        return self._port

    @property
    def url(self) -> str:
        """Return the base URL of the running server."""
        return f"http://127.0.0.1:{self.port}"

    @property
    def is_running(self) -> bool:
        return self._httpd is not None

    @property
    def requests(self) -> list[tuple[str, str]]:
        """Ordered ``(method, path)`` pairs received so far."""
        return list(self._requests)

    def requested_paths(self, method: str | None = None) -> list[str]:
        return [p for m, p in self._requests if method is None or m == method]

    def start(self) -> None:
        """Start serving in a background daemon thread.

        Raises:
            RuntimeError: If the server is already running.
            OSError: If the port is already in use.
        """
        if self._httpd is not None:
            raise RuntimeError(f"ListingServer already running on port {self.port}")

        handler_class = type(
            "BoundListingHandler",
            (ListingRequestHandler,),
            {
                "fixture": self._fixture,
                "base_dir": self._base_dir,
                "request_log": self._requests,
                "_log_lock": threading.Lock(),
            },
        )

        self._httpd = ThreadingHTTPServer(("127.0.0.1", self._port), handler_class)
        self._httpd.daemon_threads = True
        self._thread = threading.Thread(
            target=self._httpd.serve_forever,
            name=f"listing-{self.port}",
            daemon=True,
        )
        self._thread.start()
        logger.info("ListingServer started at %s (%d routes)", self.url, len(self._fixture.routes))

    def stop(self) -> None:
        """Shut down the server and join the thread.  Safe to call twice."""
        if self._httpd is None:
            return

        self._httpd.shutdown()
        self._httpd.server_close()
        if self._thread is not None:
            self._thread.join(timeout=5.0)
            if self._thread.is_alive():
                logger.warning("ListingServer thread did not exit cleanly within 5s")

        self._httpd = None
        self._thread = None
        logger.info("ListingServer stopped")

    def serve_forever(self) -> None:
        """Block until interrupted, starting first if needed (used by ``prowmetrics serve``)."""
        if self._httpd is None:
            self.start()
        try:
            while self._thread is not None and self._thread.is_alive():
                self._thread.join(timeout=0.5)
        finally:
            self.stop()

    def __enter__(self) -> ListingServer:
        self.start()
        return self

    def __exit__(self, *exc: Any) -> None:
        self.stop()
