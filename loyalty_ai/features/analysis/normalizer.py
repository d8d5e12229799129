"""Best-effort extraction of a JSON object from free-form model output.

Model replies are not guaranteed to be pure JSON. The span from the first
"{" to the last "}" is tried first; failing that, the first complete JSON
value starting at the first "{" is decoded. Anything that does not yield a
JSON object becomes the fallback analysis. Spurious braces in prose can
defeat both attempts; the fallback covers that.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from loyalty_ai.models.analysis import fallback_analysis

logger = logging.getLogger("loyalty_ai")

_decoder = json.JSONDecoder()


@dataclass(frozen=True)
class NormalizedAnalysis:
    payload: Dict[str, Any]
    fallback: bool


def _find_object(text: str) -> Optional[Dict[str, Any]]:
    start = text.find("{")
    if start == -1:
        return None
    end = text.rfind("}")
    if end > start:
        try:
            parsed = json.loads(text[start:end + 1])
        except ValueError:
            parsed = None
        if isinstance(parsed, dict):
            return parsed
    try:
        parsed, _ = _decoder.raw_decode(text, start)
    except ValueError:
        return None
    return parsed if isinstance(parsed, dict) else None


def extract_analysis(raw_text: Any) -> NormalizedAnalysis:
    """Never raises. Returns the parsed object, or the fallback analysis."""
    try:
        parsed = _find_object(raw_text) if isinstance(raw_text, str) else None
    except RecursionError:
        parsed = None

    if parsed is not None:
        return NormalizedAnalysis(payload=parsed, fallback=False)

    logger.warning(
        "[analysis] unparseable model output, using fallback",
        extra={"event_type": "analysis.fallback", "raw_length": len(raw_text) if isinstance(raw_text, str) else 0},
    )
    return NormalizedAnalysis(payload=fallback_analysis(), fallback=True)
