"""API router -- aggregates the endpoint routers under /api."""

from __future__ import annotations

from fastapi import APIRouter

from src.leadcapture.api.v1 import forms, health

router = APIRouter(prefix="/api")

router.include_router(health.router)
router.include_router(forms.router)
