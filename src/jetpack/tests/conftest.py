"""Shared fixtures and mock API responses for Jetpack settings tests."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from src.jetpack.base import (
    RemoteJetpackMonitorSettings,
    RemoteJetpackSettings,
    Site,
    SiteSettings,
)
from src.jetpack.service import JetpackSettingsService
from src.jetpack.store import SettingsStore

TEST_SITE_ID = 7
TEST_DOT_COM_ID = 123456


# ---------------------------------------------------------------------------
# Local records
# ---------------------------------------------------------------------------


@pytest.fixture
def site_settings() -> SiteSettings:
    """A settings record with everything switched off."""
    return SiteSettings(
        site_id=TEST_SITE_ID,
        jetpack_login_allow_listed_ip_addresses={"10.0.0.1"},
    )


@pytest.fixture
def jetpack_site(site_settings: SiteSettings) -> Site:
    """A connected Jetpack site administered by the stored account."""
    return Site(
        site_id=TEST_SITE_ID,
        dot_com_id=TEST_DOT_COM_ID,
        is_jetpack=True,
        is_admin=True,
        is_hosted_at_wpcom=False,
        auth_token="wpcom-token",
        settings=site_settings,
    )


# ---------------------------------------------------------------------------
# Remote payloads / snapshots
# ---------------------------------------------------------------------------


@pytest.fixture
def jetpack_settings_payload() -> dict:
    """Realistic ``/jetpack/v4/settings`` proxy response."""
    return {
        "code": "success",
        "data": {
            "monitor": True,
            "protect": True,
            "jetpack_protect_global_whitelist": {
                "local": ["1.2.3.4", "5.6.7.8"],
                "global": [],
            },
            "sso": True,
            "jetpack_sso_match_by_email": True,
            "jetpack_sso_require_two_step": False,
            "carousel": False,
        },
    }


@pytest.fixture
def monitor_settings_payload() -> dict:
    """Realistic ``jetpack-blogs/{id}`` response."""
    return {
        "ID": 123456,
        "email": "admin@example.com",
        "settings": {
            "monitor_active": True,
            "email_notifications": True,
            "wp_note_notifications": False,
        },
    }


@pytest.fixture
def remote_jetpack_settings() -> RemoteJetpackSettings:
    return RemoteJetpackSettings(
        monitor_enabled=True,
        block_malicious_login_attempts=True,
        login_allow_listed_ip_addresses=frozenset({"1.2.3.4", "5.6.7.8"}),
        sso_enabled=True,
        sso_match_accounts_by_email=True,
        sso_require_two_step_authentication=True,
    )


@pytest.fixture
def remote_monitor_settings() -> RemoteJetpackMonitorSettings:
    return RemoteJetpackMonitorSettings(
        monitor_email_notifications=True,
        monitor_push_notifications=True,
    )


# ---------------------------------------------------------------------------
# Collaborator mocks
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_remote(
    remote_jetpack_settings: RemoteJetpackSettings,
    remote_monitor_settings: RemoteJetpackMonitorSettings,
) -> MagicMock:
    """Mock JetpackSettingsRemote whose reads succeed."""
    remote = MagicMock()
    remote.get_jetpack_settings = AsyncMock(return_value=remote_jetpack_settings)
    remote.get_jetpack_monitor_settings = AsyncMock(return_value=remote_monitor_settings)
    remote.update_jetpack_setting = AsyncMock(return_value=None)
    remote.update_jetpack_monitor_settings = AsyncMock(return_value=None)
    return remote


@pytest.fixture
def mock_store() -> MagicMock:
    """Mock SettingsStore whose commits succeed."""
    store = MagicMock(spec=SettingsStore)
    store.commit = AsyncMock(return_value=None)
    store.load_site = AsyncMock(return_value=None)
    store.ping = AsyncMock(return_value=None)
    return store


@pytest.fixture
def service(mock_store: MagicMock, mock_remote: MagicMock) -> JetpackSettingsService:
    return JetpackSettingsService(store=mock_store, remote_factory=lambda site: mock_remote)


@pytest.fixture
def mock_httpx_client() -> MagicMock:
    """Mock httpx.AsyncClient for testing the remote without real API calls."""
    client = MagicMock()
    response = MagicMock()
    response.status_code = 200
    response.raise_for_status = MagicMock()
    response.json = MagicMock(return_value={})
    client.request = AsyncMock(return_value=response)
    return client
