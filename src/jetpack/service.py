"""Jetpack settings sync service.

Coordinates the remote WordPress.com API and the local settings store:

1. ``sync_jetpack_settings`` fetches the module settings and the Monitor
   settings concurrently and, only when both arrive, merges them into the
   site's record and commits it.
2. ``update_*`` pushes one module setting per request (the
   ``/jetpack/v4/settings`` proxy accepts a single key) and commits the
   matching local change once the remote acknowledges it.
3. ``update_monitor_settings`` pushes both Monitor notification flags in a
   single composite call.

Every operation returns a ``SettingsResult``; nothing is retried.  If the
commit fails the record is restored to its values before the operation.

Usage::

    service = JetpackSettingsService(store=PostgresSettingsStore())
    result = await service.sync_jetpack_settings(site)
    if not result.ok:
        raise result.error
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Iterable

import httpx

from src.jetpack.base import (
    LOCAL_FIELD_FOR_KEY,
    BlogFeature,
    JetpackSettingKey,
    MissingPreconditionError,
    RemoteJetpackMonitorSettings,
    RemoteResponseError,
    SettingsResult,
    Site,
    SiteSettings,
    StoreError,
    join_ip_addresses,
    split_ip_addresses,
)
from src.jetpack.remote import JetpackSettingsRemote
from src.jetpack.store import SettingsStore

logger = logging.getLogger("jetsync.jetpack.service")

# Errors a remote call may legitimately fail with; anything else is a bug.
_REMOTE_ERRORS = (httpx.HTTPError, RemoteResponseError)

RemoteFactory = Callable[[Site], JetpackSettingsRemote | None]


class JetpackSettingsService:
    """Synchronize a site's Jetpack settings with WordPress.com."""

    def __init__(
        self,
        store: SettingsStore,
        remote_factory: RemoteFactory | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            store:          Persistence for ``SiteSettings`` records.
            remote_factory: Callable(site) -> JetpackSettingsRemote or None.
                            Defaults to ``JetpackSettingsRemote.for_site``.
        """
        self._store = store
        self._remote_factory = remote_factory or JetpackSettingsRemote.for_site

    # ------------------------------------------------------------------
    # Sync
    # ------------------------------------------------------------------

    async def sync_jetpack_settings(self, site: Site) -> SettingsResult:
        """Pull all Jetpack settings for ``site`` into its local record.

        Sites that do not support Jetpack settings are skipped without any
        remote or store call.  When both reads fail, the error of the module
        settings read is reported.
        """
        operation = "sync"
        if not site.supports(BlogFeature.JETPACK_SETTINGS):
            logger.debug("Site %s does not support Jetpack settings; skipping", site.site_id)
            return SettingsResult(site_id=site.site_id, operation=operation, status="skipped")

        try:
            remote, dot_com_id, _ = self._require(site)
        except MissingPreconditionError as exc:
            return SettingsResult.failed(site.site_id, operation, exc)

        outcomes = await asyncio.gather(
            asyncio.create_task(remote.get_jetpack_settings(dot_com_id)),
            asyncio.create_task(remote.get_jetpack_monitor_settings(dot_com_id)),
            return_exceptions=True,
        )
        error = _first_remote_error(outcomes)
        if error is not None:
            logger.info("Jetpack settings sync failed for site %s: %s", site.site_id, error)
            return SettingsResult.failed(site.site_id, operation, error)

        jetpack_settings, monitor_settings = outcomes

        def merge(settings: SiteSettings) -> None:
            settings.apply_jetpack_settings(jetpack_settings)
            settings.apply_monitor_settings(monitor_settings)

        result = await self._commit(site, operation, merge)
        if result.ok:
            logger.info("Synced Jetpack settings for site %s", site.site_id)
        return result

    # ------------------------------------------------------------------
    # Single-setting updates
    # ------------------------------------------------------------------

    async def update_jetpack_setting(self, site: Site, key: str, value: Any) -> SettingsResult:
        """Push one module setting and commit it locally once acknowledged.

        ``key`` is one of the ``JetpackSettingKey`` module keys.  The IP
        allow list accepts either a set of addresses or the joined string.

        Raises:
            ValueError: If ``key`` is not a known module setting.
        """
        if key not in LOCAL_FIELD_FOR_KEY:
            raise ValueError(f"Unknown Jetpack setting key: {key!r}")
        operation = f"update:{key}"

        remote_value, local_value = value, value
        if key == JetpackSettingKey.ALLOW_LISTED_IP_ADDRESSES:
            if isinstance(value, str):
                local_value = split_ip_addresses(value)
            else:
                local_value = set(value)
                remote_value = join_ip_addresses(local_value)

        try:
            remote, dot_com_id, _ = self._require(site)
        except MissingPreconditionError as exc:
            return SettingsResult.failed(site.site_id, operation, exc)

        try:
            await remote.update_jetpack_setting(dot_com_id, key, remote_value)
        except _REMOTE_ERRORS as exc:
            return SettingsResult.failed(site.site_id, operation, exc)

        field_name = LOCAL_FIELD_FOR_KEY[key]
        return await self._commit(
            site, operation, lambda settings: setattr(settings, field_name, local_value)
        )

    async def update_monitor_enabled(self, site: Site, value: bool) -> SettingsResult:
        return await self.update_jetpack_setting(site, JetpackSettingKey.MONITOR_ENABLED, value)

    async def update_block_malicious_login_attempts(self, site: Site, value: bool) -> SettingsResult:
        return await self.update_jetpack_setting(
            site, JetpackSettingKey.BLOCK_MALICIOUS_LOGIN_ATTEMPTS, value
        )

    async def update_allow_listed_ip_addresses(
        self, site: Site, value: Iterable[str] | str
    ) -> SettingsResult:
        # A string is already the joined form.
        if not isinstance(value, str):
            value = set(value)
        return await self.update_jetpack_setting(
            site, JetpackSettingKey.ALLOW_LISTED_IP_ADDRESSES, value
        )

    async def update_sso_enabled(self, site: Site, value: bool) -> SettingsResult:
        return await self.update_jetpack_setting(site, JetpackSettingKey.SSO_ENABLED, value)

    async def update_sso_match_accounts_by_email(self, site: Site, value: bool) -> SettingsResult:
        return await self.update_jetpack_setting(
            site, JetpackSettingKey.SSO_MATCH_ACCOUNTS_BY_EMAIL, value
        )

    async def update_sso_require_two_step_authentication(
        self, site: Site, value: bool
    ) -> SettingsResult:
        return await self.update_jetpack_setting(
            site, JetpackSettingKey.SSO_REQUIRE_TWO_STEP_AUTHENTICATION, value
        )

    # ------------------------------------------------------------------
    # Composite Monitor update
    # ------------------------------------------------------------------

    async def update_monitor_settings(
        self,
        site: Site,
        *,
        email_notifications: bool | None = None,
        push_notifications: bool | None = None,
    ) -> SettingsResult:
        """Push both Monitor notification flags in one remote call.

        Flags left as None are sent with their current local value.
        """
        operation = "update:monitor_notifications"
        try:
            remote, dot_com_id, settings = self._require(site)
        except MissingPreconditionError as exc:
            return SettingsResult.failed(site.site_id, operation, exc)

        current = settings.monitor_settings()
        payload = RemoteJetpackMonitorSettings(
            monitor_email_notifications=(
                current.monitor_email_notifications
                if email_notifications is None
                else email_notifications
            ),
            monitor_push_notifications=(
                current.monitor_push_notifications
                if push_notifications is None
                else push_notifications
            ),
        )

        try:
            await remote.update_jetpack_monitor_settings(dot_com_id, payload)
        except _REMOTE_ERRORS as exc:
            return SettingsResult.failed(site.site_id, operation, exc)

        return await self._commit(
            site, operation, lambda s: s.apply_monitor_settings(payload)
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _require(self, site: Site) -> tuple[JetpackSettingsRemote, int, SiteSettings]:
        """Return (remote, dot_com_id, settings) or raise MissingPreconditionError."""
        remote = self._remote_factory(site)
        if remote is None:
            raise MissingPreconditionError(
                f"Site {site.site_id} has no WordPress.com API credentials"
            )
        if site.dot_com_id is None:
            raise MissingPreconditionError(f"Site {site.site_id} has no WordPress.com ID")
        if site.settings is None:
            raise MissingPreconditionError(f"Site {site.site_id} has no settings record")
        return remote, site.dot_com_id, site.settings

    async def _commit(
        self,
        site: Site,
        operation: str,
        mutate: Callable[[SiteSettings], None],
    ) -> SettingsResult:
        """Apply ``mutate`` to the site's record and commit it.

        The record is restored to its previous values if the commit fails,
        whatever the failure.  The restore covers every field, so a change
        another operation committed on the same record in the meantime is
        reverted in memory too; callers that overlap operations on one site
        must reload it after a failure.
        """
        settings = site.settings
        previous = settings.snapshot()
        mutate(settings)
        try:
            await self._store.commit(site)
        except StoreError as exc:
            settings.restore(previous)
            return SettingsResult.failed(site.site_id, operation, exc)
        except BaseException:
            settings.restore(previous)
            raise
        return SettingsResult(site_id=site.site_id, operation=operation)


def _first_remote_error(outcomes: list[Any]) -> Exception | None:
    """Return the first remote error among gathered outcomes.

    Anything raised that is not a remote error is re-raised.
    """
    error = None
    for outcome in outcomes:
        if not isinstance(outcome, BaseException):
            continue
        if not isinstance(outcome, _REMOTE_ERRORS):
            raise outcome
        if error is None:
            error = outcome
    return error
