"""Tests for the Jetpack settings HTTP endpoints."""

from __future__ import annotations

from unittest.mock import MagicMock

import httpx
import pytest
from fastapi.testclient import TestClient

from src.dependencies import get_jetpack_service, get_settings_store
from src.jetpack.base import Site, StoreError
from src.jetpack.service import JetpackSettingsService
from src.main import create_app

BASE = "/api/v1/sites/7/jetpack-settings"


@pytest.fixture
def client(
    mock_store: MagicMock, mock_remote: MagicMock, jetpack_site: Site
) -> TestClient:
    mock_store.load_site.return_value = jetpack_site
    app = create_app()
    app.dependency_overrides[get_settings_store] = lambda: mock_store
    app.dependency_overrides[get_jetpack_service] = lambda: JetpackSettingsService(
        store=mock_store, remote_factory=lambda site: mock_remote
    )
    return TestClient(app)


class TestSyncEndpoint:
    def test_sync_returns_settings(self, client: TestClient) -> None:
        response = client.post(f"{BASE}/sync")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "success"
        assert body["settings"]["jetpack_sso_enabled"] is True
        assert body["settings"]["jetpack_login_allow_listed_ip_addresses"] == [
            "1.2.3.4",
            "5.6.7.8",
        ]

    def test_unknown_site_404(self, client: TestClient, mock_store: MagicMock) -> None:
        mock_store.load_site.return_value = None
        assert client.post(f"{BASE}/sync").status_code == 404

    def test_unsupported_site_skipped(self, client: TestClient, jetpack_site: Site) -> None:
        jetpack_site.is_jetpack = False
        response = client.post(f"{BASE}/sync")
        assert response.status_code == 200
        assert response.json()["status"] == "skipped"

    def test_remote_failure_502(self, client: TestClient, mock_remote: MagicMock) -> None:
        mock_remote.get_jetpack_monitor_settings.side_effect = httpx.ConnectError("down")
        assert client.post(f"{BASE}/sync").status_code == 502

    def test_missing_precondition_409(self, client: TestClient, jetpack_site: Site) -> None:
        jetpack_site.dot_com_id = None
        assert client.post(f"{BASE}/sync").status_code == 409

    def test_store_failure_500(self, client: TestClient, mock_store: MagicMock) -> None:
        mock_store.commit.side_effect = StoreError("disk full")
        assert client.post(f"{BASE}/sync").status_code == 500


class TestUpdateEndpoint:
    def test_single_field_update(self, client: TestClient, mock_remote: MagicMock) -> None:
        response = client.patch(BASE, json={"sso_match_accounts_by_email": True})
        assert response.status_code == 200
        assert response.json()["operation"] == "update:jetpack_sso_match_by_email"
        mock_remote.update_jetpack_setting.assert_awaited_once_with(
            123456, "jetpack_sso_match_by_email", True
        )

    def test_allow_list_update(self, client: TestClient, mock_remote: MagicMock) -> None:
        response = client.patch(
            BASE, json={"allow_listed_ip_addresses": ["5.6.7.8", "1.2.3.4"]}
        )
        assert response.status_code == 200
        _, _, value = mock_remote.update_jetpack_setting.await_args.args
        assert sorted(value.split(", ")) == ["1.2.3.4", "5.6.7.8"]

    def test_two_fields_rejected(self, client: TestClient, mock_remote: MagicMock) -> None:
        response = client.patch(BASE, json={"sso_enabled": True, "monitor_enabled": True})
        assert response.status_code == 422
        mock_remote.update_jetpack_setting.assert_not_called()

    def test_empty_body_rejected(self, client: TestClient) -> None:
        assert client.patch(BASE, json={}).status_code == 422


class TestMonitorEndpoint:
    def test_composite_update(self, client: TestClient, mock_remote: MagicMock) -> None:
        response = client.put(f"{BASE}/monitor", json={"email_notifications": True})
        assert response.status_code == 200
        assert response.json()["settings"]["jetpack_monitor_email_notifications"] is True
        mock_remote.update_jetpack_monitor_settings.assert_awaited_once()


class TestHealthEndpoint:
    def test_healthy_when_store_reachable(self, client: TestClient) -> None:
        body = client.get("/health").json()
        assert body["status"] == "healthy"
        assert body["settings_store"] == "reachable"
        assert body["wpcom_api_base"].startswith("https://")

    def test_degraded_when_store_unreachable(
        self, client: TestClient, mock_store: MagicMock
    ) -> None:
        mock_store.ping.side_effect = StoreError("db down")
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "degraded"
