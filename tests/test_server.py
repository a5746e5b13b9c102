"""
Test suite for the HTTP server
"""

import time
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from promtriage.config import AnalyzerConfig
from promtriage.errors import InvalidVersionError, RuleLoadError
from promtriage.server import create_app

from conftest import RULES_DIR, SAMPLE_METRICS


def upload(client, content: bytes, filename: str = "prod-sensor-metrics.txt"):
    return client.post("/api/analyze/both", files={"file": (filename, content, "text/plain")})


@pytest.fixture
def client(rule_set):
    return TestClient(create_app(AnalyzerConfig(), rule_set))


class TestAnalyzeEndpoint:
    """Test POST /api/analyze/both"""

    def test_analyze_fixture(self, client):
        response = upload(client, SAMPLE_METRICS.read_bytes())

        assert response.status_code == 200
        body = response.json()
        assert "error" not in body
        assert "**Cluster:** prod" in body["markdown"]
        assert "Cluster: prod" in body["console"]
        assert "\x1b[" not in body["console"]

    def test_cluster_name_from_upload_name(self, client):
        response = upload(client, SAMPLE_METRICS.read_bytes(), "east-metrics.prom")

        assert "**Cluster:** east" in response.json()["markdown"]

    def test_missing_file(self, client):
        response = client.post("/api/analyze/both")

        assert response.status_code == 400
        assert response.json() == {"markdown": "", "console": "", "error": "No file uploaded"}

    def test_file_too_large(self, rule_set):
        config = AnalyzerConfig(server={"max_file_size": 10})
        client = TestClient(create_app(config, rule_set))

        response = upload(client, SAMPLE_METRICS.read_bytes())

        assert response.status_code == 413
        assert response.json()["error"] == "File exceeds maximum size of 10 bytes"

    def test_malformed_lines_skipped(self, client):
        content = SAMPLE_METRICS.read_bytes() + b"some_metric not_a_number\n"
        response = upload(client, content)

        assert response.status_code == 200
        assert "**Cluster:** prod" in response.json()["markdown"]

    def test_analysis_failure(self, client):
        with patch("promtriage.server.run_analysis", side_effect=InvalidVersionError("bad version")):
            response = upload(client, SAMPLE_METRICS.read_bytes())

        assert response.status_code == 500
        assert response.json()["error"] == "Analysis failed: bad version"

    def test_request_timeout(self, rule_set):
        config = AnalyzerConfig(server={"request_timeout": 0.05})
        client = TestClient(create_app(config, rule_set))

        with patch("promtriage.server.run_analysis", side_effect=lambda *a, **k: time.sleep(0.5)):
            response = upload(client, SAMPLE_METRICS.read_bytes())

        assert response.status_code == 408
        assert response.json()["error"] == "Request timed out"


class TestInfoEndpoints:
    """Test health, version and metrics endpoints"""

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_version(self, rule_set):
        config = AnalyzerConfig(server={"build_time": "2025-11-03T10:00:00Z"})
        client = TestClient(create_app(config, rule_set))

        assert client.get("/version").json() == {
            "version": "0.1.0",
            "lastUpdate": "2025-11-03T10:00:00Z",
        }

    def test_version_without_build_time(self, client):
        assert client.get("/version").json()["lastUpdate"] == "Unknown"

    def test_metrics(self, client):
        upload(client, SAMPLE_METRICS.read_bytes())

        response = client.get("/metrics")

        assert response.status_code == 200
        assert 'promtriage_analyses_total{outcome="success"} 1.0' in response.text

    def test_metrics_disabled(self, rule_set):
        config = AnalyzerConfig(telemetry={"metrics": {"enabled": False}})
        client = TestClient(create_app(config, rule_set))

        assert client.get("/metrics").status_code == 404


class TestCreateApp:
    """Test application construction"""

    def test_loads_rules_from_config(self):
        app = create_app(AnalyzerConfig(rules={"rules_dir": RULES_DIR}))
        response = upload(TestClient(app), SAMPLE_METRICS.read_bytes())

        assert response.status_code == 200

    def test_missing_rules_dir(self, tmp_path):
        with pytest.raises(RuleLoadError):
            create_app(AnalyzerConfig(rules={"rules_dir": tmp_path / "none"}))
