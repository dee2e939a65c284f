"""Shared FastAPI dependencies injected into route handlers."""

from __future__ import annotations

from functools import lru_cache
from typing import Annotated

from fastapi import Depends

from src.jetpack.service import JetpackSettingsService
from src.jetpack.store import PostgresSettingsStore, SettingsStore


@lru_cache
def get_settings_store() -> SettingsStore:
    """One store per process so its commit lock is shared by every request."""
    return PostgresSettingsStore()


def get_jetpack_service(
    store: Annotated[SettingsStore, Depends(get_settings_store)],
) -> JetpackSettingsService:
    return JetpackSettingsService(store=store)


# Annotated shortcuts for route signatures
SettingsStoreDep = Annotated[SettingsStore, Depends(get_settings_store)]
JetpackService = Annotated[JetpackSettingsService, Depends(get_jetpack_service)]
