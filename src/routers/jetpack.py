"""Endpoints that sync and update a site's Jetpack settings."""

from __future__ import annotations

import logging
from typing import Any

import httpx
from fastapi import APIRouter, HTTPException

from src.dependencies import JetpackService, SettingsStoreDep
from src.jetpack.base import (
    JetpackSettingKey,
    MissingPreconditionError,
    RemoteResponseError,
    SettingsResult,
    Site,
    StoreError,
)
from src.models.base import ErrorDetail
from src.models.jetpack import (
    JetpackMonitorSettingsUpdate,
    JetpackSettingsRead,
    JetpackSettingUpdate,
    SettingsResultRead,
)

router = APIRouter(prefix="/sites/{site_id}/jetpack-settings", tags=["jetpack"])
logger = logging.getLogger("jetsync.routers.jetpack")

# JetpackSettingUpdate field -> remote setting key
_UPDATE_KEYS: dict[str, str] = {
    "monitor_enabled": JetpackSettingKey.MONITOR_ENABLED,
    "block_malicious_login_attempts": JetpackSettingKey.BLOCK_MALICIOUS_LOGIN_ATTEMPTS,
    "allow_listed_ip_addresses": JetpackSettingKey.ALLOW_LISTED_IP_ADDRESSES,
    "sso_enabled": JetpackSettingKey.SSO_ENABLED,
    "sso_match_accounts_by_email": JetpackSettingKey.SSO_MATCH_ACCOUNTS_BY_EMAIL,
    "sso_require_two_step_authentication": JetpackSettingKey.SSO_REQUIRE_TWO_STEP_AUTHENTICATION,
}

_ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    404: {"model": ErrorDetail},
    409: {"model": ErrorDetail},
    500: {"model": ErrorDetail},
    502: {"model": ErrorDetail},
}


async def _load_site(store: SettingsStoreDep, site_id: int) -> Site:
    try:
        site = await store.load_site(site_id)
    except StoreError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    if site is None:
        raise HTTPException(status_code=404, detail=f"Site {site_id} not found")
    return site


def _to_response(site: Site, result: SettingsResult) -> SettingsResultRead:
    """Map a service result to a response body or raise the matching HTTP error."""
    error = result.error
    if isinstance(error, MissingPreconditionError):
        raise HTTPException(status_code=409, detail=str(error))
    if isinstance(error, StoreError):
        raise HTTPException(status_code=500, detail=str(error))
    if isinstance(error, (httpx.HTTPError, RemoteResponseError)):
        logger.warning("WordPress.com call failed for site %s: %s", site.site_id, error)
        raise HTTPException(status_code=502, detail=f"WordPress.com request failed: {error}")
    if error is not None:
        raise HTTPException(status_code=500, detail=str(error))

    return SettingsResultRead(
        operation=result.operation,
        status=result.status,
        completed_at=result.completed_at,
        settings=(
            JetpackSettingsRead.from_settings(site.settings) if site.settings else None
        ),
    )


@router.post("/sync", response_model=SettingsResultRead, responses=_ERROR_RESPONSES)
async def sync_settings(
    site_id: int, store: SettingsStoreDep, service: JetpackService
) -> Any:
    site = await _load_site(store, site_id)
    result = await service.sync_jetpack_settings(site)
    return _to_response(site, result)


@router.patch("", response_model=SettingsResultRead, responses=_ERROR_RESPONSES)
async def update_setting(
    site_id: int,
    body: JetpackSettingUpdate,
    store: SettingsStoreDep,
    service: JetpackService,
) -> Any:
    site = await _load_site(store, site_id)
    name, value = body.change()
    result = await service.update_jetpack_setting(site, _UPDATE_KEYS[name], value)
    return _to_response(site, result)


@router.put("/monitor", response_model=SettingsResultRead, responses=_ERROR_RESPONSES)
async def update_monitor_settings(
    site_id: int,
    body: JetpackMonitorSettingsUpdate,
    store: SettingsStoreDep,
    service: JetpackService,
) -> Any:
    site = await _load_site(store, site_id)
    result = await service.update_monitor_settings(
        site,
        email_notifications=body.email_notifications,
        push_notifications=body.push_notifications,
    )
    return _to_response(site, result)
