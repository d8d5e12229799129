"""
loyalty_ai/models/feature.py

Feature model for the gated generative capabilities.

Every feature shares the same admission and metering plumbing; what differs
is captured here as data.
"""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict


class Feature(str, Enum):
    """Gated capability tags (values are the ledger/wire identifiers)."""
    CHAT = "chat"
    LOYALTY_TEST = "loyaltyTest"
    RED_FLAG = "redFlag"


class OutputKind(str, Enum):
    TEXT = "text"
    ANALYSIS = "analysis"


class FeatureConfig(BaseModel):
    """
    FeatureConfig describes one gated capability.

    Examples:
    - chat: free-form conversation, text reply
    - loyaltyTest: one screenshot in, suggested message(s) out
    - redFlag: several screenshots in, structured analysis out

    FeatureConfig does NOT include:
    - Entitlement tiers (any active entitlement unlocks every feature)
    - Usage counts (owned by the usage ledger)
    """
    model_config = ConfigDict(frozen=True)

    feature: Feature
    path: str
    monthly_limit: int
    system_prompt: str
    user_instruction: Optional[str] = None
    output: OutputKind = OutputKind.TEXT
