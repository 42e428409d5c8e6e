"""
LLM-backed template draft generator.

Uses the OpenAI chat completions API in JSON mode. The prompt asks for a
draft with ``name, description, steps[], rationale[], estimatedDuration,
complexity``; mapping and scoring happen in the recommendation use case.
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

import structlog
from openai import AsyncOpenAI, OpenAIError

from ..core import config
from ..core.exceptions import GeneratorConfigurationError, TemplateGenerationError

logger = structlog.get_logger(__name__)

SYSTEM_PROMPT = (
    "You design business process templates. Reply with a single JSON object "
    "with keys: name, description, complexity (simple|medium|complex|very_complex), "
    "estimatedDuration (hours), rationale (list of strings) and steps. Each step has "
    "id, name, description, duration (hours), dependencies (list of step ids), "
    "artifacts (list of strings) and responsible."
)


def build_user_prompt(requirements: List[str], context: Dict[str, Any]) -> str:
    lines = ["Requirements:"]
    lines.extend(f"- {r}" for r in requirements)
    for key in ("industry", "processType", "complexity"):
        if context.get(key):
            lines.append(f"{key}: {context[key]}")
    for key in ("constraints", "preferences", "bestPractices", "compliance"):
        values = context.get(key) or []
        if values:
            lines.append(f"{key}:")
            lines.extend(f"- {v}" for v in values)
    return "\n".join(lines)


class OpenAITemplateGenerator:
    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        client: Optional[AsyncOpenAI] = None,
        max_tokens: Optional[int] = None,
    ) -> None:
        self.api_key = api_key or config.OPENAI_API_KEY
        self.model = model or config.TEMPLATE_MODEL
        self.max_tokens = max_tokens or config.TEMPLATE_MAX_TOKENS
        self._client = client

    def _get_client(self) -> AsyncOpenAI:
        if self._client is None:
            if not self.api_key:
                raise GeneratorConfigurationError("OPENAI_API_KEY is not configured")
            self._client = AsyncOpenAI(api_key=self.api_key, timeout=120)
        return self._client

    async def generate(self, requirements: List[str], context: Dict[str, Any]) -> Dict[str, Any]:
        client = self._get_client()
        try:
            response = await client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": build_user_prompt(requirements, context)},
                ],
                response_format={"type": "json_object"},
                max_tokens=self.max_tokens,
            )
        except OpenAIError as e:
            logger.error("Template generation request failed", model=self.model, error=str(e))
            raise TemplateGenerationError(f"Template generation failed: {e}") from e

        content = (response.choices[0].message.content or "") if response.choices else ""
        try:
            draft = json.loads(content)
        except json.JSONDecodeError as e:
            raise TemplateGenerationError("Template generator returned invalid JSON") from e
        if not isinstance(draft, dict):
            raise TemplateGenerationError("Template generator returned a non-object draft")

        usage = getattr(response, "usage", None)
        logger.info(
            "Template draft generated",
            model=self.model,
            steps=len(draft.get("steps") or []),
            total_tokens=getattr(usage, "total_tokens", None),
        )
        return draft
