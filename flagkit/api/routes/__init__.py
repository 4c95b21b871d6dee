"""
API routes aggregation.
"""

from fastapi import APIRouter

from .features import router as features_router
from .evaluate import router as evaluate_router

router = APIRouter()

router.include_router(features_router, prefix="/features", tags=["features"])
router.include_router(evaluate_router, prefix="/evaluate", tags=["evaluate"])
