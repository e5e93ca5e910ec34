"""Shared fixtures for prowmetrics unit tests."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Iterator

import pytest
import yaml

from prowmetrics.config import ENV_OVERRIDES, ENV_TIMEOUT_KEY, ProwMetricsConfig
from prowmetrics.engine.listing_server import ListingServer

VIEWER_PREFIX = "https://prow.example.test/view"
JOB_PATH = "/gcs/origin-ci-test/logs/release-e2e-aws/42"
REPORT_URL = VIEWER_PREFIX + JOB_PATH
STARTED_TS = 1700000000
FINISHED_TS = 1700003600
ARCHIVE_SIZE = 4096


# ---------------------------------------------------------------------------
# Fixture: isolate tests from PROWMETRICS_* variables in the environment
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for env_key in (*ENV_OVERRIDES.values(), ENV_TIMEOUT_KEY):
        monkeypatch.delenv(env_key, raising=False)


# ---------------------------------------------------------------------------
# Fixture: listing fixture builder for a three-level Prow job
# ---------------------------------------------------------------------------

def build_job_routes(new_style: bool = False) -> dict[str, Any]:
    """Routes for a job whose e2e folder is ``e2e-aws``.

    With ``new_style`` the e2e folder also lists ``gather-extra/`` and the
    archive lives underneath it.
    """
    artifacts = f"{JOB_PATH}/artifacts/"
    e2e = f"{artifacts}e2e-aws/"
    e2e_links = [artifacts, f"{e2e}container-logs/"]
    if new_style:
        e2e_links.append(f"{e2e}gather-extra/")
    archive_dir = f"{e2e}gather-extra/" if new_style else e2e
    storage_archive = archive_dir.replace("/gcs", "/storage", 1) + "metrics/prometheus.tar"

    return {
        f"{JOB_PATH}/started.json": {"json": {"timestamp": STARTED_TS, "node": "worker-1"}},
        f"{JOB_PATH}/finished.json": {"json": {"timestamp": FINISHED_TS, "passed": True}},
        JOB_PATH: {
            "links": [
                f"{JOB_PATH}/build-log.txt",
                artifacts,
                f"{JOB_PATH}/finished.json",
            ]
        },
        artifacts: {
            "links": [
                f"{JOB_PATH}/",
                f"{artifacts}build-resources/",
                e2e,
            ]
        },
        e2e: {"links": e2e_links},
        storage_archive: {"archive": {"content_length": ARCHIVE_SIZE}},
    }


@pytest.fixture
def serve_routes() -> Iterator[Callable[[dict[str, Any]], ListingServer]]:
    """Start a ListingServer for a routes dict; all servers stop at teardown."""
    servers: list[ListingServer] = []

    def _start(routes: dict[str, Any]) -> ListingServer:
        server = ListingServer.from_dict({"listing": {"port": 0, "routes": routes}})
        server.start()
        servers.append(server)
        return server

    yield _start

    for server in servers:
        server.stop()


@pytest.fixture
def legacy_server(serve_routes) -> ListingServer:
    return serve_routes(build_job_routes(new_style=False))


@pytest.fixture
def new_style_server(serve_routes) -> ListingServer:
    return serve_routes(build_job_routes(new_style=True))


def config_for(server: ListingServer) -> ProwMetricsConfig:
    """Config that maps the test viewer host onto ``server``."""
    return ProwMetricsConfig(
        viewer_prefix=VIEWER_PREFIX,
        listing_prefix=server.url,
        storage_prefix=server.url + "/storage",
        timeout=5,
    )


# ---------------------------------------------------------------------------
# Fixture: .prowmetrics/ project directory with config.yaml
# ---------------------------------------------------------------------------

@pytest.fixture
def write_project_config(tmp_path: Path) -> Callable[[dict[str, Any]], Path]:
    """Write ``.prowmetrics/config.yaml`` under tmp_path and return the project dir."""

    def _write(data: dict[str, Any]) -> Path:
        project_dir = tmp_path / ".prowmetrics"
        project_dir.mkdir(parents=True, exist_ok=True)
        (project_dir / "config.yaml").write_text(
            yaml.dump(data, default_flow_style=False), encoding="utf-8"
        )
        return project_dir

    return _write
