"""Jetsync Jetpack settings synchronization.

Keeps the locally stored Jetpack Monitor / Protect / SSO options of a
WordPress site in step with WordPress.com.

Core modules:
    base    - Site, SiteSettings, remote snapshots, keys, errors, SettingsResult
    remote  - WordPress.com REST client (httpx)
    store   - SettingsStore capability and its asyncpg implementation
    service - JetpackSettingsService: dual-fetch sync and one-field updates
"""

from src.jetpack.base import (
    BlogFeature,
    JetpackSettingKey,
    JetpackSettingsError,
    MissingPreconditionError,
    RemoteJetpackMonitorSettings,
    RemoteJetpackSettings,
    RemoteResponseError,
    SettingsResult,
    Site,
    SiteSettings,
    StoreError,
)
from src.jetpack.remote import JetpackSettingsRemote
from src.jetpack.service import JetpackSettingsService
from src.jetpack.store import PostgresSettingsStore, SettingsStore

__all__ = [
    "BlogFeature",
    "JetpackSettingKey",
    "JetpackSettingsError",
    "JetpackSettingsRemote",
    "JetpackSettingsService",
    "MissingPreconditionError",
    "PostgresSettingsStore",
    "RemoteJetpackMonitorSettings",
    "RemoteJetpackSettings",
    "RemoteResponseError",
    "SettingsResult",
    "SettingsStore",
    "Site",
    "SiteSettings",
    "StoreError",
]
