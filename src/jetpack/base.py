"""Domain models for Jetpack settings synchronization.

A ``Site`` owns one mutable ``SiteSettings`` record (the locally persisted
copy of the Jetpack options).  The remote API hands back two immutable
snapshots, ``RemoteJetpackSettings`` and ``RemoteJetpackMonitorSettings``,
which the service merges into that record.  Every service operation returns
a ``SettingsResult`` instead of raising.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
from enum import Enum
from typing import Any


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class JetpackSettingsError(Exception):
    """Base class for errors raised by the Jetpack settings layer."""


class MissingPreconditionError(JetpackSettingsError):
    """The site lacks an identifier, credentials or a settings record."""


class RemoteResponseError(JetpackSettingsError):
    """The remote API answered with a payload we could not decode."""


class StoreError(JetpackSettingsError):
    """The local settings store failed to commit or load a record."""


# ---------------------------------------------------------------------------
# Remote keys
# ---------------------------------------------------------------------------


class JetpackSettingKey:
    """Keys understood by the ``/jetpack/v4/settings`` endpoint."""

    MONITOR_ENABLED = "monitor"
    BLOCK_MALICIOUS_LOGIN_ATTEMPTS = "protect"
    ALLOW_LISTED_IP_ADDRESSES = "jetpack_protect_global_whitelist"
    SSO_ENABLED = "sso"
    SSO_MATCH_ACCOUNTS_BY_EMAIL = "jetpack_sso_match_by_email"
    SSO_REQUIRE_TWO_STEP_AUTHENTICATION = "jetpack_sso_require_two_step"

    # Monitor endpoint
    MONITOR_EMAIL_NOTIFICATIONS = "email_notifications"
    MONITOR_PUSH_NOTIFICATIONS = "wp_note_notifications"


# Remote setting key -> SiteSettings attribute
LOCAL_FIELD_FOR_KEY: dict[str, str] = {
    JetpackSettingKey.MONITOR_ENABLED: "jetpack_monitor_enabled",
    JetpackSettingKey.BLOCK_MALICIOUS_LOGIN_ATTEMPTS: "jetpack_block_malicious_login_attempts",
    JetpackSettingKey.ALLOW_LISTED_IP_ADDRESSES: "jetpack_login_allow_listed_ip_addresses",
    JetpackSettingKey.SSO_ENABLED: "jetpack_sso_enabled",
    JetpackSettingKey.SSO_MATCH_ACCOUNTS_BY_EMAIL: "jetpack_sso_match_accounts_by_email",
    JetpackSettingKey.SSO_REQUIRE_TWO_STEP_AUTHENTICATION: "jetpack_sso_require_two_step_authentication",
}


def join_ip_addresses(addresses: set[str] | frozenset[str]) -> str:
    """Serialize an IP allow list the way the Protect module stores it."""
    return ", ".join(sorted(addresses))


def split_ip_addresses(value: str) -> set[str]:
    """Inverse of :func:`join_ip_addresses`; tolerates stray whitespace."""
    return {part.strip() for part in value.split(",") if part.strip()}


# ---------------------------------------------------------------------------
# Remote snapshots
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RemoteJetpackSettings:
    """Snapshot of the Jetpack module settings of one site.

    Attributes:
        monitor_enabled:                    Jetpack Monitor module active.
        block_malicious_login_attempts:     Protect module active.
        login_allow_listed_ip_addresses:    IPs never blocked by Protect.
        sso_enabled:                        WordPress.com log-in (SSO) active.
        sso_match_accounts_by_email:        Match local accounts by e-mail.
        sso_require_two_step_authentication: Require 2FA on WordPress.com.
    """

    monitor_enabled: bool
    block_malicious_login_attempts: bool
    login_allow_listed_ip_addresses: frozenset[str]
    sso_enabled: bool
    sso_match_accounts_by_email: bool
    sso_require_two_step_authentication: bool


@dataclass(frozen=True)
class RemoteJetpackMonitorSettings:
    """Snapshot of the Monitor notification options of one site."""

    monitor_email_notifications: bool
    monitor_push_notifications: bool


# ---------------------------------------------------------------------------
# Local record
# ---------------------------------------------------------------------------


@dataclass
class SiteSettings:
    """Locally persisted Jetpack settings of a site.

    Owned by the settings store.  The sync service mutates it only after a
    successful remote fetch or push and restores it when the commit fails.
    """

    site_id: int
    jetpack_monitor_enabled: bool = False
    jetpack_block_malicious_login_attempts: bool = False
    jetpack_login_allow_listed_ip_addresses: set[str] = field(default_factory=set)
    jetpack_sso_enabled: bool = False
    jetpack_sso_match_accounts_by_email: bool = False
    jetpack_sso_require_two_step_authentication: bool = False
    jetpack_monitor_email_notifications: bool = False
    jetpack_monitor_push_notifications: bool = False

    def snapshot(self) -> dict[str, Any]:
        """Return a copy of every field, suitable for :meth:`restore`."""
        values = {f.name: getattr(self, f.name) for f in fields(self)}
        values["jetpack_login_allow_listed_ip_addresses"] = set(
            self.jetpack_login_allow_listed_ip_addresses
        )
        return values

    def restore(self, values: dict[str, Any]) -> None:
        for name, value in values.items():
            setattr(self, name, value)

    def apply_jetpack_settings(self, remote: RemoteJetpackSettings) -> None:
        self.jetpack_monitor_enabled = remote.monitor_enabled
        self.jetpack_block_malicious_login_attempts = remote.block_malicious_login_attempts
        self.jetpack_login_allow_listed_ip_addresses = set(
            remote.login_allow_listed_ip_addresses
        )
        self.jetpack_sso_enabled = remote.sso_enabled
        self.jetpack_sso_match_accounts_by_email = remote.sso_match_accounts_by_email
        self.jetpack_sso_require_two_step_authentication = (
            remote.sso_require_two_step_authentication
        )

    def apply_monitor_settings(self, remote: RemoteJetpackMonitorSettings) -> None:
        self.jetpack_monitor_email_notifications = remote.monitor_email_notifications
        self.jetpack_monitor_push_notifications = remote.monitor_push_notifications

    def monitor_settings(self) -> RemoteJetpackMonitorSettings:
        """Build the composite Monitor payload from the local values."""
        return RemoteJetpackMonitorSettings(
            monitor_email_notifications=self.jetpack_monitor_email_notifications,
            monitor_push_notifications=self.jetpack_monitor_push_notifications,
        )


# ---------------------------------------------------------------------------
# Site + capability check
# ---------------------------------------------------------------------------


class BlogFeature(str, Enum):
    JETPACK_SETTINGS = "jetpack_settings"


@dataclass
class Site:
    """A WordPress site as known to the local store.

    Attributes:
        site_id:             Internal primary key.
        dot_com_id:          WordPress.com blog ID; None until the site is connected.
        is_jetpack:          Site runs the Jetpack plugin.
        is_admin:            The stored account administers the site.
        is_hosted_at_wpcom:  Site lives on WordPress.com (settings are not user-managed).
        auth_token:          WordPress.com OAuth2 bearer token.
        settings:            Local Jetpack settings record, if loaded.
    """

    site_id: int
    dot_com_id: int | None = None
    is_jetpack: bool = False
    is_admin: bool = False
    is_hosted_at_wpcom: bool = False
    auth_token: str | None = None
    settings: SiteSettings | None = None

    def supports(self, feature: BlogFeature) -> bool:
        if feature is BlogFeature.JETPACK_SETTINGS:
            return self.is_jetpack and self.is_admin and not self.is_hosted_at_wpcom
        return False


# ---------------------------------------------------------------------------
# Operation outcome
# ---------------------------------------------------------------------------


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class SettingsResult:
    """Outcome of one sync or update operation.

    Attributes:
        site_id:      Internal site ID.
        operation:    Operation name (e.g. 'sync', 'update:monitor').
        status:       'success', 'skipped' or 'error'.
        error:        The error as raised by the remote or the store.
        completed_at: UTC timestamp of completion.
    """

    site_id: int
    operation: str
    status: str = "success"
    error: Exception | None = None
    completed_at: datetime = field(default_factory=utc_now)

    @property
    def ok(self) -> bool:
        """Skipped operations count as successful."""
        return self.status != "error"

    @classmethod
    def failed(cls, site_id: int, operation: str, error: Exception) -> SettingsResult:
        return cls(site_id=site_id, operation=operation, status="error", error=error)
