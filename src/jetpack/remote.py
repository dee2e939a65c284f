"""WordPress.com REST client for Jetpack settings.

API base: https://public-api.wordpress.com/rest/v1.1 (``WPCOM_API_BASE``)

Endpoints used:
    GET  /jetpack-blogs/{id}/rest-api/?path=/jetpack/v4/settings - module settings
    POST /jetpack-blogs/{id}/rest-api/                            - one module setting
    GET  /jetpack-blogs/{id}                                      - Monitor notifications
    POST /jetpack-blogs/{id}                                      - Monitor notifications

The ``/jetpack/v4/settings`` proxy only accepts one key per request, so
module settings are written one at a time.  The Monitor endpoint takes both
notification flags in a single call.
"""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from src.config import Settings, get_settings
from src.jetpack.base import (
    JetpackSettingKey,
    RemoteJetpackMonitorSettings,
    RemoteJetpackSettings,
    RemoteResponseError,
    Site,
)

logger = logging.getLogger("jetsync.jetpack.remote")

_SETTINGS_PATH = "/jetpack/v4/settings"


class JetpackSettingsRemote:
    """Authenticated client for the Jetpack settings endpoints of WordPress.com."""

    def __init__(
        self,
        auth_token: str,
        api_base: str | None = None,
        timeout: float | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            auth_token:  WordPress.com OAuth2 bearer token.
            api_base:    REST base URL; defaults to ``WPCOM_API_BASE``.
            timeout:     Request timeout in seconds.
            http_client: Optional pre-configured httpx client (for testing).
        """
        settings = get_settings()
        self._auth_token = auth_token
        self._api_base = (api_base or settings.wpcom_api_base).rstrip("/")
        self._timeout = timeout if timeout is not None else settings.wpcom_request_timeout_seconds
        self._http_client = http_client

    @classmethod
    def for_site(
        cls,
        site: Site,
        settings: Settings | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> JetpackSettingsRemote | None:
        """Build a client for ``site``, or None when the site has no token."""
        if not site.auth_token:
            return None
        s = settings or get_settings()
        return cls(
            site.auth_token,
            api_base=s.wpcom_api_base,
            timeout=s.wpcom_request_timeout_seconds,
            http_client=http_client,
        )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_jetpack_settings(self, site_id: int) -> RemoteJetpackSettings:
        """Fetch the Jetpack module settings of a site.

        Raises:
            httpx.HTTPError:     On transport failures or non-2xx responses.
            RemoteResponseError: If the payload lacks a required key.
        """
        payload = await self._request(
            "GET",
            f"jetpack-blogs/{site_id}/rest-api/",
            params={"path": _SETTINGS_PATH},
        )
        data = payload.get("data")
        if not isinstance(data, dict):
            raise RemoteResponseError(f"Jetpack settings for site {site_id} missing 'data'")
        return self.parse_jetpack_settings(data)

    async def get_jetpack_monitor_settings(self, site_id: int) -> RemoteJetpackMonitorSettings:
        """Fetch the Monitor notification settings of a site."""
        payload = await self._request("GET", f"jetpack-blogs/{site_id}")
        data = payload.get("settings")
        if not isinstance(data, dict):
            raise RemoteResponseError(
                f"Jetpack monitor settings for site {site_id} missing 'settings'"
            )
        return self.parse_monitor_settings(data)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def update_jetpack_setting(self, site_id: int, key: str, value: Any) -> None:
        """Write a single module setting."""
        logger.debug("Updating Jetpack setting %s for site %s", key, site_id)
        await self._request(
            "POST",
            f"jetpack-blogs/{site_id}/rest-api/",
            data={
                "path": _SETTINGS_PATH,
                "body": json.dumps({key: value}),
                "json": "true",
            },
        )

    async def update_jetpack_monitor_settings(
        self, site_id: int, settings: RemoteJetpackMonitorSettings
    ) -> None:
        """Write both Monitor notification flags in one call."""
        logger.debug("Updating Jetpack monitor settings for site %s", site_id)
        await self._request(
            "POST",
            f"jetpack-blogs/{site_id}",
            data={
                JetpackSettingKey.MONITOR_EMAIL_NOTIFICATIONS: _form_bool(
                    settings.monitor_email_notifications
                ),
                JetpackSettingKey.MONITOR_PUSH_NOTIFICATIONS: _form_bool(
                    settings.monitor_push_notifications
                ),
            },
        )

    # ------------------------------------------------------------------
    # Parsing
    # ------------------------------------------------------------------

    @staticmethod
    def parse_jetpack_settings(data: dict) -> RemoteJetpackSettings:
        """Convert the ``/jetpack/v4/settings`` dict to a snapshot.

        This is a pure function.  The allow list arrives as
        ``{"local": ["1.2.3.4", ...], "global": [...]}``; only the local
        entries are user-managed.

        Raises:
            RemoteResponseError: If a key is missing or has the wrong type.
        """
        allow_list = data.get(JetpackSettingKey.ALLOW_LISTED_IP_ADDRESSES)
        local_ips = allow_list.get("local") if isinstance(allow_list, dict) else None
        if not isinstance(local_ips, list):
            raise RemoteResponseError(
                f"'{JetpackSettingKey.ALLOW_LISTED_IP_ADDRESSES}' has no 'local' list"
            )

        return RemoteJetpackSettings(
            monitor_enabled=_require_bool(data, JetpackSettingKey.MONITOR_ENABLED),
            block_malicious_login_attempts=_require_bool(
                data, JetpackSettingKey.BLOCK_MALICIOUS_LOGIN_ATTEMPTS
            ),
            login_allow_listed_ip_addresses=frozenset(str(ip) for ip in local_ips),
            sso_enabled=_require_bool(data, JetpackSettingKey.SSO_ENABLED),
            sso_match_accounts_by_email=_require_bool(
                data, JetpackSettingKey.SSO_MATCH_ACCOUNTS_BY_EMAIL
            ),
            sso_require_two_step_authentication=_require_bool(
                data, JetpackSettingKey.SSO_REQUIRE_TWO_STEP_AUTHENTICATION
            ),
        )

    @staticmethod
    def parse_monitor_settings(data: dict) -> RemoteJetpackMonitorSettings:
        return RemoteJetpackMonitorSettings(
            monitor_email_notifications=_require_bool(
                data, JetpackSettingKey.MONITOR_EMAIL_NOTIFICATIONS
            ),
            monitor_push_notifications=_require_bool(
                data, JetpackSettingKey.MONITOR_PUSH_NOTIFICATIONS
            ),
        )

    # ------------------------------------------------------------------
    # Private HTTP helper
    # ------------------------------------------------------------------

    def _build_headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self._auth_token}"}

    async def _request(
        self,
        method: str,
        endpoint: str,
        params: dict | None = None,
        data: dict | None = None,
    ) -> dict:
        """Make an authenticated request to the WordPress.com REST API.

        Args:
            method:   HTTP method.
            endpoint: Path relative to the API base.
            params:   Query parameters.
            data:     Form-encoded body.

        Returns:
            JSON response dict.

        Raises:
            httpx.HTTPStatusError: On non-2xx responses.
            RemoteResponseError:   If the body is not JSON or not an object.
        """
        url = f"{self._api_base}/{endpoint}"
        headers = self._build_headers()

        if self._http_client:
            response = await self._http_client.request(
                method, url, params=params, data=data, headers=headers, timeout=self._timeout
            )
        else:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.request(
                    method, url, params=params, data=data, headers=headers
                )

        response.raise_for_status()
        try:
            body = response.json()
        except ValueError as exc:
            raise RemoteResponseError(f"Non-JSON response from {endpoint}") from exc
        if not isinstance(body, dict):
            raise RemoteResponseError(f"Unexpected response from {endpoint}: {body!r}")
        return body


def _require_bool(data: dict, key: str) -> bool:
    value = data.get(key)
    if not isinstance(value, bool):
        raise RemoteResponseError(f"Expected boolean '{key}', got {value!r}")
    return value


def _form_bool(value: bool) -> str:
    return "true" if value else "false"
