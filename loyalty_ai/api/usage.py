"""Usage summary API: current-period counts and remaining quota per feature."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from loyalty_ai.api.features import get_pipeline
from loyalty_ai.core.errors import MissingUserError
from loyalty_ai.features.pipeline.service import FeaturePipeline

router = APIRouter(tags=["usage"])


@router.get("/usage")
def usage_endpoint(
    request: Request,
    user_id: Optional[str] = Query(None, alias="userId"),
    pipeline: FeaturePipeline = Depends(get_pipeline),
):
    if not user_id or not user_id.strip():
        raise MissingUserError("userId is required", request_id=getattr(request.state, "request_id", None))
    return pipeline.usage_summary(user_id.strip())
