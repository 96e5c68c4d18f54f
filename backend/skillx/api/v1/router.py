"""API v1 router aggregator.

All v1 endpoint routers are included here, mounted at /api/v1.
"""

from fastapi import APIRouter

from skillx.api.v1 import assessment, projects

router = APIRouter()

router.include_router(assessment.router, prefix="/assessment", tags=["assessment"])
router.include_router(projects.router, prefix="/projects", tags=["projects"])
