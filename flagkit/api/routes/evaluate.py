"""
Feature evaluation route.
"""

from fastapi import APIRouter

from flagkit.core.features import Flags
from flagkit.schemas.feature import EvaluateRequest, EvaluateResponse

router = APIRouter()


@router.post("", response_model=EvaluateResponse)
async def evaluate_feature(data: EvaluateRequest, flags: Flags) -> EvaluateResponse:
    """
    Decide whether a feature is on for a user and their groups.

    Unknown features come back disabled rather than 404, so callers can
    check flags before they are created.
    """
    result = await flags.evaluate(data.feature_key, data.user_id, data.groups)
    return EvaluateResponse(
        feature_key=result.feature_key,
        enabled=result.enabled,
        reason=result.reason,
    )
