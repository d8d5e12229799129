"""
loyalty_ai/features/pipeline/service.py

Generic feature pipeline.

Handles:
- Admission (user, subscription, quota) through the RequestGate
- One bounded generative call
- Normalization for structured-output features
- Usage recording, only after the response is ready
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

import pydantic

from loyalty_ai.core.errors import AppError, GenerationError
from loyalty_ai.features.analysis.normalizer import NormalizedAnalysis, extract_analysis
from loyalty_ai.features.catalog.service import FeatureCatalog
from loyalty_ai.features.gate.service import RequestGate
from loyalty_ai.features.generation.provider import (
    ConversationTurn,
    GenerationRequest,
    GenerativeProvider,
)
from loyalty_ai.features.usage.ledger import UsageLedger, current_period
from loyalty_ai.models.analysis import ChatAnalysis, fallback_analysis
from loyalty_ai.models.feature import Feature, FeatureConfig, OutputKind


logger = logging.getLogger("loyalty_ai")


class FeaturePipeline:
    def __init__(
        self,
        *,
        catalog: FeatureCatalog,
        gate: RequestGate,
        provider: GenerativeProvider,
        ledger: UsageLedger,
        timeout_seconds: float = 60.0,
        charge_fallback: bool = True,
    ):
        self.catalog = catalog
        self.gate = gate
        self.provider = provider
        self.ledger = ledger
        self.timeout_seconds = timeout_seconds
        self.charge_fallback = charge_fallback

    def build_request(
        self,
        config: FeatureConfig,
        *,
        turns: Optional[List[ConversationTurn]] = None,
        images: Optional[List[str]] = None,
    ) -> GenerationRequest:
        return GenerationRequest(
            system_prompt=config.system_prompt,
            turns=list(turns or []),
            instruction=config.user_instruction,
            images=list(images or []),
        )

    async def _generate(self, feature: Feature, user_id: str, request: GenerationRequest) -> str:
        try:
            return await asyncio.wait_for(self.provider.complete(request), timeout=self.timeout_seconds)
        except asyncio.TimeoutError:
            logger.error(
                "[pipeline] generation timed out",
                extra={"user_id": user_id, "feature": feature.value, "error_code": "timeout"},
            )
            raise GenerationError("Failed to generate response: provider timed out")
        except AppError:
            raise
        except Exception as exc:
            logger.error(
                "[pipeline] generation failed",
                exc_info=True,
                extra={"user_id": user_id, "feature": feature.value, "error_code": exc.__class__.__name__},
            )
            raise GenerationError("Failed to generate response") from exc

    def _conform_analysis(self, normalized: NormalizedAnalysis, feature: Feature, user_id: str) -> NormalizedAnalysis:
        """Parsed JSON that does not match the analysis shape is treated like unparseable output."""
        if normalized.fallback:
            return normalized
        try:
            ChatAnalysis.model_validate(normalized.payload)
        except pydantic.ValidationError as exc:
            logger.warning(
                "[analysis] model output does not match analysis shape, using fallback",
                extra={
                    "user_id": user_id,
                    "feature": feature.value,
                    "event_type": "analysis.fallback",
                    "error_count": exc.error_count(),
                },
            )
            return NormalizedAnalysis(payload=fallback_analysis(), fallback=True)
        return normalized

    async def run(
        self,
        feature: Feature,
        user_id: Optional[str],
        *,
        turns: Optional[List[ConversationTurn]] = None,
        images: Optional[List[str]] = None,
    ) -> Dict[str, Any]:
        """
        Serve one feature request.

        Raises:
            MissingUserError / SubscriptionRequiredError / QuotaExceededError: Rejected by the gate
            GenerationError: Provider failed or timed out (no usage recorded)
        """
        config = self.catalog.get(feature)
        decision = await self.gate.admit(user_id, config.feature)
        decision.raise_for_status()

        request = self.build_request(config, turns=turns, images=images)
        raw = await self._generate(config.feature, decision.user_id, request)

        charge = True
        if config.output is OutputKind.ANALYSIS:
            normalized = self._conform_analysis(extract_analysis(raw), config.feature, decision.user_id)
            body: Dict[str, Any] = normalized.payload
            charge = self.charge_fallback or not normalized.fallback
        else:
            body = {"reply": raw}

        if charge:
            new_count = self.ledger.increment(decision.user_id, config.feature)
            logger.info(
                "[pipeline] usage recorded",
                extra={
                    "user_id": decision.user_id,
                    "feature": config.feature.value,
                    "count": new_count,
                    "limit": decision.limit,
                },
            )
        return body

    def usage_summary(self, user_id: str) -> Dict[str, Any]:
        """Per-feature usage for the current period. Reads only; no entitlement lookup."""
        policy = self.gate.policy
        now_fn = getattr(self.ledger, "now_fn", None)
        now = now_fn() if now_fn else None
        features: Dict[str, Dict[str, int]] = {}
        for config in self.catalog:
            used = self.ledger.current_count(user_id, config.feature, now)
            limit = policy.limit_for(config.feature)
            features[config.feature.value] = {
                "used": used,
                "limit": limit,
                "remaining": policy.remaining(used, limit),
            }
        return {"userId": user_id, "period": current_period(now), "features": features}
