"""Feature endpoints: chat, loyalty test and red-flag analysis.

Request bodies are checked before any external call; everything after that
goes through the shared FeaturePipeline.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel

from loyalty_ai.core.errors import ValidationError
from loyalty_ai.core.logging import get_request_id
from loyalty_ai.features.generation.provider import ConversationTurn
from loyalty_ai.features.pipeline.service import FeaturePipeline
from loyalty_ai.models.feature import Feature

router = APIRouter(tags=["features"])


class ChatRequest(BaseModel):
    messages: Optional[List[ConversationTurn]] = None
    userId: Optional[str] = None


class LoyaltyTestRequest(BaseModel):
    base64Image: Optional[str] = None
    userId: Optional[str] = None


class RedFlagRequest(BaseModel):
    images: Optional[List[str]] = None
    userId: Optional[str] = None


def get_pipeline(request: Request) -> FeaturePipeline:
    return request.app.state.pipeline


def _request_id(request: Request) -> Optional[str]:
    return getattr(request.state, "request_id", None) or get_request_id()


@router.post("/chat")
async def chat_endpoint(
    body: ChatRequest,
    request: Request,
    pipeline: FeaturePipeline = Depends(get_pipeline),
):
    if not body.messages:
        raise ValidationError("messages is required", request_id=_request_id(request))
    return await pipeline.run(Feature.CHAT, body.userId, turns=body.messages)


@router.post("/loyalty-test")
async def loyalty_test_endpoint(
    body: LoyaltyTestRequest,
    request: Request,
    pipeline: FeaturePipeline = Depends(get_pipeline),
):
    if not body.base64Image or not body.base64Image.strip():
        raise ValidationError("base64Image is required", request_id=_request_id(request))
    return await pipeline.run(Feature.LOYALTY_TEST, body.userId, images=[body.base64Image])


@router.post("/red-flag")
async def red_flag_endpoint(
    body: RedFlagRequest,
    request: Request,
    pipeline: FeaturePipeline = Depends(get_pipeline),
):
    if not body.images:
        raise ValidationError("images is required", request_id=_request_id(request))
    if any(not img or not img.strip() for img in body.images):
        raise ValidationError("images must not contain empty entries", request_id=_request_id(request))
    return await pipeline.run(Feature.RED_FLAG, body.userId, images=body.images)
