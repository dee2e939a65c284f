"""Local persistence for site Jetpack settings.

``SettingsStore`` is the capability the sync service depends on.  The
production implementation writes to Postgres through ``asyncpg``:

    sites(site_id, dot_com_id, is_jetpack, is_admin, is_hosted_at_wpcom, auth_token)
    site_settings(site_id PK, jetpack_* columns, updated_at)

``jetpack_login_allow_listed_ip_addresses`` is a ``text[]`` column.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod

import asyncpg

from src.jetpack.base import Site, SiteSettings, StoreError
from src.services.database import get_connection, get_pool

logger = logging.getLogger("jetsync.jetpack.store")

_SETTINGS_COLUMNS = (
    "jetpack_monitor_enabled",
    "jetpack_block_malicious_login_attempts",
    "jetpack_login_allow_listed_ip_addresses",
    "jetpack_sso_enabled",
    "jetpack_sso_match_accounts_by_email",
    "jetpack_sso_require_two_step_authentication",
    "jetpack_monitor_email_notifications",
    "jetpack_monitor_push_notifications",
)

# Failures of the driver or the socket underneath it.
_DB_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError)


class SettingsStore(ABC):
    """Persistence capability for ``SiteSettings`` records."""

    @abstractmethod
    async def commit(self, site: Site) -> None:
        """Persist the current values of ``site.settings``.

        Raises:
            StoreError: If the write fails.
        """

    @abstractmethod
    async def load_site(self, site_id: int) -> Site | None:
        """Load a site and its settings record, or None if unknown.

        Raises:
            StoreError: If the read fails.
        """

    async def ping(self) -> None:
        """Check that the backing storage is reachable.

        Raises:
            StoreError: If it is not.
        """


class PostgresSettingsStore(SettingsStore):
    """``SettingsStore`` backed by the shared asyncpg pool.

    Commits are serialized through an ``asyncio.Lock`` so that two
    operations finishing together never interleave their writes.
    """

    def __init__(self, pool: asyncpg.Pool | None = None) -> None:
        self._pool = pool
        self._lock = asyncio.Lock()

    def _resolve_pool(self) -> asyncpg.Pool:
        if self._pool is not None:
            return self._pool
        try:
            return get_pool()
        except RuntimeError as exc:
            raise StoreError(str(exc)) from exc

    async def commit(self, site: Site) -> None:
        settings = site.settings
        if settings is None:
            raise StoreError(f"Site {site.site_id} has no settings record to commit")

        values = [
            sorted(settings.jetpack_login_allow_listed_ip_addresses)
            if column == "jetpack_login_allow_listed_ip_addresses"
            else getattr(settings, column)
            for column in _SETTINGS_COLUMNS
        ]
        placeholders = ", ".join(f"${i}" for i in range(2, len(_SETTINGS_COLUMNS) + 2))
        updates = ", ".join(f"{c} = EXCLUDED.{c}" for c in _SETTINGS_COLUMNS)
        query = (
            f"INSERT INTO site_settings (site_id, {', '.join(_SETTINGS_COLUMNS)}, updated_at) "
            f"VALUES ($1, {placeholders}, NOW()) "
            f"ON CONFLICT (site_id) DO UPDATE SET {updates}, updated_at = NOW()"
        )

        async with self._lock:
            try:
                async with get_connection(self._resolve_pool()) as conn:
                    await conn.execute(query, site.site_id, *values)
            except _DB_ERRORS as exc:
                raise StoreError(
                    f"Failed to commit settings for site {site.site_id}: {exc}"
                ) from exc

        logger.debug("Committed Jetpack settings for site %s", site.site_id)

    async def load_site(self, site_id: int) -> Site | None:
        query = (
            "SELECT s.site_id, s.dot_com_id, s.is_jetpack, s.is_admin, "
            "s.is_hosted_at_wpcom, s.auth_token, "
            "ss.site_id AS settings_site_id, "
            + ", ".join(f"ss.{c}" for c in _SETTINGS_COLUMNS)
            + " FROM sites s LEFT JOIN site_settings ss ON ss.site_id = s.site_id"
            " WHERE s.site_id = $1"
        )
        try:
            async with get_connection(self._resolve_pool()) as conn:
                row = await conn.fetchrow(query, site_id)
        except _DB_ERRORS as exc:
            raise StoreError(f"Failed to load site {site_id}: {exc}") from exc

        if row is None:
            return None
        return site_from_row(dict(row))

    async def ping(self) -> None:
        try:
            async with self._resolve_pool().acquire() as conn:
                await conn.fetchval("SELECT 1")
        except _DB_ERRORS as exc:
            raise StoreError(f"Database unreachable: {exc}") from exc


def site_from_row(row: dict) -> Site:
    """Build a ``Site`` from a joined sites/site_settings row.

    The settings record is None when the site has no ``site_settings`` row.
    """
    settings = None
    if row.get("settings_site_id") is not None:
        settings = SiteSettings(
            site_id=row["site_id"],
            jetpack_monitor_enabled=bool(row["jetpack_monitor_enabled"]),
            jetpack_block_malicious_login_attempts=bool(
                row["jetpack_block_malicious_login_attempts"]
            ),
            jetpack_login_allow_listed_ip_addresses=set(
                row["jetpack_login_allow_listed_ip_addresses"] or []
            ),
            jetpack_sso_enabled=bool(row["jetpack_sso_enabled"]),
            jetpack_sso_match_accounts_by_email=bool(row["jetpack_sso_match_accounts_by_email"]),
            jetpack_sso_require_two_step_authentication=bool(
                row["jetpack_sso_require_two_step_authentication"]
            ),
            jetpack_monitor_email_notifications=bool(row["jetpack_monitor_email_notifications"]),
            jetpack_monitor_push_notifications=bool(row["jetpack_monitor_push_notifications"]),
        )

    return Site(
        site_id=row["site_id"],
        dot_com_id=row["dot_com_id"],
        is_jetpack=bool(row["is_jetpack"]),
        is_admin=bool(row["is_admin"]),
        is_hosted_at_wpcom=bool(row["is_hosted_at_wpcom"]),
        auth_token=row["auth_token"],
        settings=settings,
    )
