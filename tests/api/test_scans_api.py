# SPDX-License-Identifier: MIT
"""Tests for the scan trigger and scan log endpoints."""

from pipeline.config import get_settings
from pipeline.database import AppSetting, ScanLog
from pipeline.ingestion import AiScan, ApiScan, MultiScan
from pipeline.utils.http import HTTPError


class TestAdminAuth:
    """Scan endpoints are admin only."""

    def test_missing_header(self, test_client, admin_headers):
        response = test_client.get("/api/scans/logs")
        assert response.status_code == 401

    def test_wrong_scheme(self, test_client, admin_headers):
        response = test_client.get("/api/scans/logs", headers={"Authorization": "Basic abc"})
        assert response.status_code == 401

    def test_wrong_key(self, test_client, admin_headers):
        response = test_client.get("/api/scans/logs", headers={"Authorization": "Bearer nope"})
        assert response.status_code == 403

    def test_key_not_configured(self, test_client, monkeypatch):
        monkeypatch.delenv("ADMIN_KEY", raising=False)
        monkeypatch.setattr(get_settings().api, "admin_key", "")

        response = test_client.get("/api/scans/logs", headers={"Authorization": "Bearer anything"})

        assert response.status_code == 503

    def test_settings_key_accepted(self, test_client, monkeypatch):
        monkeypatch.delenv("ADMIN_KEY", raising=False)
        monkeypatch.setattr(get_settings().api, "admin_key", "from-settings")

        response = test_client.get("/api/scans/logs", headers={"Authorization": "Bearer from-settings"})

        assert response.status_code == 200


class TestRunScans:
    """Test POST /api/scans/*."""

    def test_api_scan(self, test_client, admin_headers, mocker, stub_provider, make_candidate):
        mocker.patch.object(ApiScan, "build_providers", return_value=[
            stub_provider([make_candidate("Hoia Forest"), make_candidate("Bran Castle")]),
        ])

        response = test_client.post("/api/scans/api", headers=admin_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["status"] == "completed"
        assert data["places_found"] == 2
        assert data["places_added"] == 2
        assert data["scan_log_id"]

    def test_rerun_merges(self, test_client, admin_headers, mocker, stub_provider, make_candidate):
        mocker.patch.object(ApiScan, "build_providers", return_value=[
            stub_provider([make_candidate("Hoia Forest")]),
        ])

        test_client.post("/api/scans/api", headers=admin_headers)
        data = test_client.post("/api/scans/api", headers=admin_headers).json()

        assert data["places_added"] == 0
        assert data["places_merged"] == 1

    def test_ai_scan(self, test_client, admin_headers, mocker, stub_provider, make_candidate):
        mocker.patch.object(AiScan, "build_providers", return_value=[
            stub_provider([make_candidate("Bran Castle", source_type="web", evidence_score=75)]),
        ])

        data = test_client.post("/api/scans/ai", headers=admin_headers).json()

        assert data["places_added"] == 1

    def test_multi_scan_accepts_camel_case(self, test_client, admin_headers, mocker):
        build = mocker.patch.object(MultiScan, "build_providers", return_value=[])

        response = test_client.post(
            "/api/scans/multi",
            headers=admin_headers,
            json={"enabledApis": ["geonames"], "country": "ro", "category": "castle"},
        )

        assert response.status_code == 200
        config = build.call_args.args[0]
        assert config.enabled_providers == ["geonames"]
        assert config.country == "RO"
        assert config.category == "castle"

    def test_multi_scan_provider_errors_reported(self, test_client, admin_headers, mocker, stub_provider):
        mocker.patch.object(MultiScan, "build_providers", return_value=[
            stub_provider(error=HTTPError("HTTP 429 for x", 429), name="Google"),
        ])

        data = test_client.post("/api/scans/multi", headers=admin_headers).json()

        assert data["success"] is False
        assert data["errors"] == ["Google error: HTTP 429 for x"]

    def test_invalid_country(self, test_client, admin_headers):
        response = test_client.post("/api/scans/multi", headers=admin_headers, json={"country": "TUR"})
        assert response.status_code == 422

    def test_scan_failure_is_500(self, test_client, admin_headers, mocker):
        mocker.patch.object(ApiScan, "build_providers", side_effect=RuntimeError("boom"))

        response = test_client.post("/api/scans/api", headers=admin_headers)

        assert response.status_code == 500
        assert response.json()["detail"] == "Scan failed: boom"

    def test_paused(self, test_client, admin_headers, db_session, mocker):
        build = mocker.patch.object(ApiScan, "build_providers", return_value=[])
        db_session.add(AppSetting(setting_key="scanning_paused", setting_value="true"))
        db_session.commit()

        data = test_client.post("/api/scans/api", headers=admin_headers).json()

        assert data["status"] == "skipped"
        build.assert_not_called()

    def test_configured_method(self, test_client, admin_headers, db_session, mocker, stub_provider, make_candidate):
        mocker.patch.object(AiScan, "build_providers", return_value=[stub_provider([make_candidate("Bran Castle")])])
        db_session.add(AppSetting(setting_key="data_collection_method", setting_value='"ai"'))
        db_session.commit()

        test_client.post("/api/scans", headers=admin_headers)

        assert db_session.query(ScanLog).one().search_query.startswith("haunted places")

    def test_configured_method_unknown(self, test_client, admin_headers, db_session):
        db_session.add(AppSetting(setting_key="data_collection_method", setting_value="carrier-pigeon"))
        db_session.commit()

        response = test_client.post("/api/scans", headers=admin_headers)

        assert response.status_code == 400


class TestScanLogs:
    """Test GET /api/scans/logs."""

    def test_empty(self, test_client, admin_headers):
        assert test_client.get("/api/scans/logs", headers=admin_headers).json() == {"count": 0, "logs": []}

    def test_lists_runs(self, test_client, admin_headers, mocker, stub_provider, make_candidate):
        mocker.patch.object(ApiScan, "build_providers", return_value=[stub_provider([make_candidate("Hoia Forest")])])
        test_client.post("/api/scans/api", headers=admin_headers)
        test_client.post("/api/scans/api", headers=admin_headers)

        data = test_client.get("/api/scans/logs?limit=1", headers=admin_headers).json()

        assert data["count"] == 1
        log = data["logs"][0]
        assert log["status"] == "completed"
        assert log["search_query"] == "API: Wikidata + Wikipedia"
        assert log["places_found"] == 1

    def test_limit_validated(self, test_client, admin_headers):
        response = test_client.get("/api/scans/logs?limit=0", headers=admin_headers)
        assert response.status_code == 422
