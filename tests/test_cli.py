"""Unit tests for the prowmetrics CLI — resolve, init, config show, --version."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml
from rich.console import Console
from typer.testing import CliRunner

from conftest import JOB_PATH, REPORT_URL, VIEWER_PREFIX, build_job_routes
from prowmetrics import __version__
from prowmetrics.cli.app import app
from prowmetrics.cli.init_cmd import _SAMPLE_CONFIG, write_sample_config
from prowmetrics.models import OPENSHIFT_CI_PREFIXES

runner = CliRunner()


@pytest.fixture(autouse=True)
def _wide_consoles(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep Rich from wrapping long tmp paths across lines."""
    monkeypatch.setattr("prowmetrics.cli.init_cmd.console", Console(width=300))
    monkeypatch.setattr("prowmetrics.cli.config_cmd.console", Console(width=300))
    monkeypatch.setattr("prowmetrics.cli.resolve.console", Console(stderr=True, width=300))


def _project_for(server, write_project_config) -> Path:
    return write_project_config(
        {
            "viewer_prefix": VIEWER_PREFIX,
            "listing_prefix": server.url,
            "storage_prefix": server.url + "/storage",
            "timeout": 5,
        }
    )


# ---------------------------------------------------------------------------
# 1. Global options
# ---------------------------------------------------------------------------

class TestGlobalOptions:
    def test_version(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_no_args_shows_help(self):
        result = runner.invoke(app, [])
        assert "resolve" in result.output


# ---------------------------------------------------------------------------
# 2. prowmetrics resolve
# ---------------------------------------------------------------------------

class TestResolveCommand:
    """resolve prints the archive URL and narrates progress."""

    def test_prints_archive_url(self, new_style_server, write_project_config):
        project_dir = _project_for(new_style_server, write_project_config)

        result = runner.invoke(app, ["resolve", REPORT_URL, "--dir", str(project_dir)])

        assert result.exit_code == 0, result.output
        expected = (
            new_style_server.url
            + "/storage"
            + JOB_PATH[len("/gcs"):]
            + "/artifacts/e2e-aws/gather-extra/metrics/prometheus.tar"
        )
        assert expected in result.output
        assert "[status] Found prometheus archive at" in result.output

    def test_json_output(self, legacy_server, write_project_config):
        project_dir = _project_for(legacy_server, write_project_config)

        result = runner.invoke(
            app, ["resolve", REPORT_URL, "--dir", str(project_dir), "--json", "--seed", "11"]
        )

        assert result.exit_code == 0, result.output
        assert '"archive_url"' in result.output
        assert '"started": "2023-11-14T22:13:20+00:00"' in result.output
        assert '"validated": true' in result.output
        assert '"label"' in result.output

    def test_no_validate_skips_head(self, legacy_server, write_project_config):
        project_dir = _project_for(legacy_server, write_project_config)

        result = runner.invoke(app, ["resolve", REPORT_URL, "--dir", str(project_dir), "--no-validate"])

        assert result.exit_code == 0, result.output
        assert legacy_server.requested_paths("HEAD") == []

    def test_resolution_failure_exits_1(self, serve_routes, write_project_config):
        routes = build_job_routes()
        routes[JOB_PATH] = {"links": []}
        server = serve_routes(routes)
        project_dir = _project_for(server, write_project_config)

        result = runner.invoke(app, ["resolve", REPORT_URL, "--dir", str(project_dir)])

        assert result.exit_code == 1
        assert "[failure]" in result.output
        assert "No top-level GCS links" in result.output

    def test_missing_config_exits_2(self, tmp_path: Path):
        result = runner.invoke(app, ["resolve", REPORT_URL, "--dir", str(tmp_path / ".prowmetrics")])

        assert result.exit_code == 2
        assert "Missing required host prefix" in result.output

    def test_invalid_timeout_exits_2(self, legacy_server, write_project_config):
        project_dir = _project_for(legacy_server, write_project_config)

        result = runner.invoke(app, ["resolve", REPORT_URL, "--dir", str(project_dir), "--timeout", "0"])

        assert result.exit_code == 2
        assert "timeout must be positive" in result.output


# ---------------------------------------------------------------------------
# 3. prowmetrics init
# ---------------------------------------------------------------------------

class TestInitCommand:
    """init writes a config holding the OpenShift CI prefixes."""

    def test_sample_config_is_valid_yaml_with_prefixes(self):
        data = yaml.safe_load(_SAMPLE_CONFIG)
        for key, value in OPENSHIFT_CI_PREFIXES.items():
            assert data[key] == value
        assert data["timeout"] == 10

    def test_init_creates_config(self, tmp_path: Path):
        result = runner.invoke(app, ["init", "--dir", str(tmp_path)])
        assert result.exit_code == 0, result.output
        assert (tmp_path / ".prowmetrics" / "config.yaml").is_file()

    def test_init_refuses_to_overwrite(self, tmp_path: Path):
        runner.invoke(app, ["init", "--dir", str(tmp_path)])
        result = runner.invoke(app, ["init", "--dir", str(tmp_path)])
        assert result.exit_code == 1
        assert "already exists" in result.output

    def test_write_sample_config_force(self, tmp_path: Path):
        project_dir = tmp_path / ".prowmetrics"
        project_dir.mkdir()
        (project_dir / "config.yaml").write_text("old: true\n", encoding="utf-8")

        assert write_sample_config(project_dir) is None
        assert write_sample_config(project_dir, force=True) == project_dir / "config.yaml"
        assert "viewer_prefix" in (project_dir / "config.yaml").read_text(encoding="utf-8")


# ---------------------------------------------------------------------------
# 4. prowmetrics config show
# ---------------------------------------------------------------------------

class TestConfigShow:
    """config show lists effective settings and their sources."""

    def test_shows_values_from_file(self, write_project_config):
        project_dir = write_project_config(
            {
                "viewer_prefix": "https://prow.example/view",
                "listing_prefix": "https://gcsweb.example",
                "storage_prefix": "https://storage.example",
            }
        )
        result = runner.invoke(app, ["config", "show", "--dir", str(project_dir)])
        assert result.exit_code == 0, result.output
        assert "https://gcsweb.example" in result.output
        assert "Viewer Prefix" in result.output

    def test_marks_missing_prefixes(self, tmp_path: Path):
        result = runner.invoke(app, ["config", "show", "--dir", str(tmp_path / ".prowmetrics")])
        assert result.exit_code == 0, result.output
        assert "NOT SET" in result.output

    def test_env_source_is_reported(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
        monkeypatch.setenv("PROWMETRICS_STORAGE_PREFIX", "https://mirror.example")
        result = runner.invoke(app, ["config", "show", "--dir", str(tmp_path / ".prowmetrics")])
        assert "https://mirror.example" in result.output
        assert "PROWMETRICS_STORAGE_PREFIX" in result.output


# ---------------------------------------------------------------------------
# 5. prowmetrics serve
# ---------------------------------------------------------------------------

class TestServeCommand:
    def test_missing_fixture_exits_2(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setattr("prowmetrics.cli.serve.console", Console(stderr=True, width=300))
        result = runner.invoke(app, ["serve", str(tmp_path / "missing.yaml")])
        assert result.exit_code == 2
        assert "Listing fixture not found" in result.output
