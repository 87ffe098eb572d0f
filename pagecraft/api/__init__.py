"""API router for v1 endpoints."""

from fastapi import APIRouter

from pagecraft.api import design

router = APIRouter()

# Design session routes (generate, reset, session view, screen)
router.include_router(design.router)
