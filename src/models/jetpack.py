"""Pydantic models for the Jetpack settings endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import Field, model_validator

from src.jetpack.base import SiteSettings
from src.models.base import JetsyncBase


class JetpackSettingsRead(JetsyncBase):
    site_id: int
    jetpack_monitor_enabled: bool
    jetpack_block_malicious_login_attempts: bool
    jetpack_login_allow_listed_ip_addresses: list[str] = Field(default_factory=list)
    jetpack_sso_enabled: bool
    jetpack_sso_match_accounts_by_email: bool
    jetpack_sso_require_two_step_authentication: bool
    jetpack_monitor_email_notifications: bool
    jetpack_monitor_push_notifications: bool

    @classmethod
    def from_settings(cls, settings: SiteSettings) -> JetpackSettingsRead:
        values = settings.snapshot()
        values["jetpack_login_allow_listed_ip_addresses"] = sorted(
            settings.jetpack_login_allow_listed_ip_addresses
        )
        return cls(**values)


class JetpackSettingUpdate(JetsyncBase):
    """Exactly one module setting; the API writes them one at a time."""

    monitor_enabled: bool | None = None
    block_malicious_login_attempts: bool | None = None
    allow_listed_ip_addresses: list[str] | None = None
    sso_enabled: bool | None = None
    sso_match_accounts_by_email: bool | None = None
    sso_require_two_step_authentication: bool | None = None

    @model_validator(mode="after")
    def _exactly_one_field(self) -> JetpackSettingUpdate:
        if len(self.model_dump(exclude_none=True)) != 1:
            raise ValueError("Exactly one setting must be provided per update")
        return self

    def change(self) -> tuple[str, Any]:
        """Return the (field, value) pair being updated."""
        ((name, value),) = self.model_dump(exclude_none=True).items()
        return name, value


class JetpackMonitorSettingsUpdate(JetsyncBase):
    email_notifications: bool | None = None
    push_notifications: bool | None = None


class SettingsResultRead(JetsyncBase):
    operation: str
    status: str
    completed_at: datetime
    settings: JetpackSettingsRead | None = None
