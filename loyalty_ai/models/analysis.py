"""
loyalty_ai/models/analysis.py

Structured red-flag analysis returned to clients.
"""

from typing import Any, Dict, List
from pydantic import BaseModel, Field


class MessageBalance(BaseModel):
    you: int = 0
    them: int = 0


class ChatAnalysis(BaseModel):
    """Shape the model is asked to produce for screenshot analysis."""
    messageBalance: MessageBalance
    engagementLevel: int = Field(ge=0, le=100)
    warningSignals: List[str]
    positiveSignals: List[str]
    compatibilityScore: int = Field(ge=0, le=100)


FALLBACK_ANALYSIS = ChatAnalysis(
    messageBalance=MessageBalance(you=0, them=0),
    engagementLevel=50,
    warningSignals=[
        "Unable to fully analyze the conversation",
        "Try uploading clearer screenshots",
    ],
    positiveSignals=[
        "Analysis incomplete",
        "More context may help",
    ],
    compatibilityScore=50,
)


def fallback_analysis() -> Dict[str, Any]:
    """Fresh copy of the placeholder returned when model output is unusable."""
    return FALLBACK_ANALYSIS.model_dump()
