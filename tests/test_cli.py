import json
from unittest.mock import patch

import httpx
from typer.testing import CliRunner

from tweet_genie.cli import app
from tweet_genie.fetchers.metrics import MetricsClient

runner = CliRunner()


def _write_snapshot(tmp_path, payload):
    path = tmp_path / "snapshot.json"
    path.write_text(json.dumps(payload))
    return path


def test_report_prints_markdown(tmp_path, snapshot_payload):
    result = runner.invoke(app, ["report", str(_write_snapshot(tmp_path, snapshot_payload))])
    assert result.exit_code == 0, result.output
    assert "Tweet Analytics Report" in result.output


def test_report_writes_json_to_file(tmp_path, snapshot_payload):
    out = tmp_path / "dashboard.json"
    result = runner.invoke(app, [
        "report", str(_write_snapshot(tmp_path, snapshot_payload)), "--days", "90", "--json", "--output", str(out),
    ])
    assert result.exit_code == 0, result.output
    data = json.loads(out.read_text())
    assert data["timeframeDays"] == 90
    assert "growthMetrics" in data


def test_report_applies_policy_file(tmp_path, snapshot_payload):
    policy = tmp_path / "policy.yaml"
    policy.write_text("success_engagement_rate: 10\n")
    out = tmp_path / "report.md"
    result = runner.invoke(app, [
        "report", str(_write_snapshot(tmp_path, snapshot_payload)), "--policy", str(policy), "-o", str(out),
    ])
    assert result.exit_code == 0, result.output
    assert "Healthy Baseline, Room to Scale" in out.read_text()


def test_report_rejects_bad_policy(tmp_path, snapshot_payload):
    policy = tmp_path / "policy.yaml"
    policy.write_text("not_a_threshold: 1\n")
    result = runner.invoke(app, ["report", str(_write_snapshot(tmp_path, snapshot_payload)), "--policy", str(policy)])
    assert result.exit_code == 1
    assert "not_a_threshold" in result.output


def test_report_rejects_invalid_snapshot(tmp_path):
    path = tmp_path / "snapshot.json"
    path.write_text("{not json")
    result = runner.invoke(app, ["report", str(path)])
    assert result.exit_code == 1


def test_report_missing_file(tmp_path):
    result = runner.invoke(app, ["report", str(tmp_path / "missing.json")])
    assert result.exit_code == 1


def _client_for(handler):
    return MetricsClient(base_url="http://metrics.test", transport=httpx.MockTransport(handler))


def test_fetch_reports_live_metrics(tmp_path, snapshot_payload):
    client = _client_for(lambda request: httpx.Response(200, json={"data": snapshot_payload}))
    out = tmp_path / "report.md"
    with patch("tweet_genie.cli.MetricsClient.from_env", return_value=client):
        result = runner.invoke(app, ["fetch", "--days", "7", "--output", str(out)])
    assert result.exit_code == 0, result.output
    assert out.read_text().startswith("# Tweet Analytics Report (7 days)")


def test_fetch_exits_on_backend_error():
    client = _client_for(lambda request: httpx.Response(500, json={"error": "maintenance"}))
    with patch("tweet_genie.cli.MetricsClient.from_env", return_value=client):
        result = runner.invoke(app, ["fetch"])
    assert result.exit_code == 1
    assert "maintenance" in result.output


def _sync_handler(snapshot, sync_response):
    def handler(request):
        if request.url.path.endswith("/sync-status"):
            return httpx.Response(200, json={"syncStatus": {}})
        if request.url.path.endswith("/sync"):
            return sync_response
        return httpx.Response(200, json={"data": snapshot})
    return handler


def test_sync_reports_updated_tweets(snapshot_payload):
    client = _client_for(_sync_handler(snapshot_payload, httpx.Response(200, json={
        "success": True, "stats": {"metrics_updated": 9, "errors": 1, "total_processed": 10},
    })))
    with patch("tweet_genie.cli.MetricsClient.from_env", return_value=client):
        result = runner.invoke(app, ["sync", "--days", "30"])
    assert result.exit_code == 0, result.output
    assert "Updated metrics for 9 tweets" in result.output


def test_sync_warns_when_rate_limited(snapshot_payload):
    client = _client_for(_sync_handler(snapshot_payload, httpx.Response(200, json={
        "success": True, "rateLimited": True, "resetTime": "13:00", "stats": {"metrics_updated": 2},
    })))
    with patch("tweet_genie.cli.MetricsClient.from_env", return_value=client):
        result = runner.invoke(app, ["sync"])
    assert result.exit_code == 0, result.output
    assert "Rate limit reached after syncing 2 tweets" in result.output


def test_sync_skipped_on_free_plan(snapshot_payload):
    snapshot_payload["plan"] = {"pro": False}
    client = _client_for(_sync_handler(snapshot_payload, None))
    with patch("tweet_genie.cli.MetricsClient.from_env", return_value=client):
        result = runner.invoke(app, ["sync"])
    assert result.exit_code == 1
    assert "Sync skipped" in result.output
