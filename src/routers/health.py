"""Liveness endpoint reporting the settings store and the WordPress.com target."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter

from src.config import get_settings
from src.dependencies import SettingsStoreDep
from src.jetpack.base import StoreError

router = APIRouter(tags=["system"])
logger = logging.getLogger("jetsync.health")


@router.get("/health")
async def health_check(store: SettingsStoreDep) -> dict:
    """Always 200 while the process is up; ``status`` degrades with the store."""
    settings = get_settings()
    try:
        await store.ping()
        store_ok = True
    except StoreError as exc:
        logger.warning("Settings store unreachable: %s", exc)
        store_ok = False

    return {
        "status": "healthy" if store_ok else "degraded",
        "version": settings.app_version,
        "settings_store": "reachable" if store_ok else "unreachable",
        "wpcom_api_base": settings.wpcom_api_base,
        "checked_at": datetime.now(timezone.utc).isoformat(),
    }
