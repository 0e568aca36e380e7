"""Route aggregation for the Soyuz web application."""

from fastapi import APIRouter

from . import assessment, export, history

router = APIRouter()
router.include_router(export.router)
router.include_router(assessment.router)
router.include_router(history.router)
