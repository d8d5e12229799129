"""
Generative provider boundary.

The relay only needs one capability from the model vendor: given a system
directive, prior turns and optional inline images, return text. GroqProvider
implements it with the groq SDK.
"""
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional, Protocol

import groq
from pydantic import BaseModel

from loyalty_ai.core.errors import GenerationError


class ConversationTurn(BaseModel):
    role: Literal["user", "assistant", "system"]
    content: str


@dataclass(frozen=True)
class GenerationRequest:
    system_prompt: str
    turns: List[ConversationTurn] = field(default_factory=list)
    instruction: Optional[str] = None
    images: List[str] = field(default_factory=list)  # base64-encoded JPEG payloads


class GenerativeProvider(Protocol):
    async def complete(self, request: GenerationRequest) -> str:
        """
        Run one completion.

        Raises:
            GenerationError: If the provider fails or returns no text
        """
        ...

    async def aclose(self) -> None:
        ...


def image_part(base64_image: str) -> Dict[str, Any]:
    return {
        "type": "image_url",
        "image_url": {"url": f"data:image/jpeg;base64,{base64_image}"},
    }


def build_messages(request: GenerationRequest) -> List[Dict[str, Any]]:
    """Translate a GenerationRequest into chat-completions messages."""
    messages: List[Dict[str, Any]] = [{"role": "system", "content": request.system_prompt}]
    messages.extend({"role": turn.role, "content": turn.content} for turn in request.turns)

    if request.instruction is not None or request.images:
        content: List[Dict[str, Any]] = []
        if request.instruction is not None:
            content.append({"type": "text", "text": request.instruction})
        content.extend(image_part(img) for img in request.images)
        messages.append({"role": "user", "content": content})
    return messages


class GroqProvider:
    """Groq chat-completions implementation of GenerativeProvider."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        *,
        model: str = "meta-llama/llama-4-scout-17b-16e-instruct",
        temperature: float = 0.7,
        max_tokens: int = 1024,
        timeout: float = 60.0,
        client: Optional[groq.AsyncGroq] = None,
    ):
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        if client is not None:
            self._client = client
        else:
            key = api_key or os.getenv("GROQ_API_KEY")
            if not key:
                raise GenerationError("GROQ_API_KEY not configured")
            # Retries are left to the caller re-issuing the HTTP request
            self._client = groq.AsyncGroq(api_key=key, timeout=timeout, max_retries=0)

    async def complete(self, request: GenerationRequest) -> str:
        try:
            response = await self._client.chat.completions.create(
                model=self.model,
                messages=build_messages(request),
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            )
        except groq.GroqError as e:
            raise GenerationError(f"Groq completion failed: {e.__class__.__name__}") from e

        if not response.choices:
            raise GenerationError("Groq returned no choices")
        content = response.choices[0].message.content
        if not content or not content.strip():
            raise GenerationError("Groq returned an empty message")
        return content

    async def aclose(self) -> None:
        await self._client.close()
