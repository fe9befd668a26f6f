"""
Description service — rewrite a product description with Gemini.

Builds the copywriting prompt, asks for a JSON answer and parses it. When
the model fails or its output is not usable JSON, the original description
is returned unchanged with an explanatory reasoning string.
Version: 1.0.0
"""
import asyncio
import json
import logging
from typing import Any, Dict, Optional

from candle_admin.clients.gemini_client import GeminiClient
from candle_admin.schemas.descriptions import ReengineerRequest, ReengineerResponse

logger = logging.getLogger(__name__)

BRAND_NAME = "Three Chicks and a Wick"
DEFAULT_BRAND_GUIDELINES = "Premium, artisanal, luxurious candles with personality and charm"

BRAND_VOICE = """- Playful yet sophisticated
- Conversational and engaging
- Emphasize unique materials and craftsmanship
- Include sensory details (scent, texture, visual)
- Use storytelling elements
- Maintain premium positioning
- Be authentic and genuine"""


def build_prompt(request: ReengineerRequest) -> str:
    ctx = request.product_context
    return f"""
You are a creative copywriter for the "{BRAND_NAME}" candle brand. Rewrite the product description below following the user's direction while keeping the brand consistent.

ORIGINAL DESCRIPTION:
{request.original_description}

PRODUCT CONTEXT:
- Name: {ctx.name}
- Image Analysis: {ctx.image_analysis or 'Not available'}
- Brand Guidelines: {ctx.brand_guidelines or DEFAULT_BRAND_GUIDELINES}

USER'S CREATIVE DIRECTION:
"{request.user_prompt}"

BRAND VOICE GUIDELINES:
{BRAND_VOICE}

Keep product details accurate and use SEO-friendly HTML.

RESPONSE FORMAT (JSON only):
{{
  "reengineeredDescription": "The new description with proper HTML formatting",
  "reasoning": "Brief explanation of why these changes were made",
  "changes": ["Key change 1", "Key change 2", "Key change 3"]
}}
"""


def parse_model_output(text: str) -> Optional[Dict[str, Any]]:
    """Extract the JSON object from a model answer, tolerating code fences."""
    content = (text or "").strip()
    if content.startswith("```"):
        content = content.split("\n", 1)[1] if "\n" in content else ""
    if content.endswith("```"):
        content = content[:-3]

    start = content.find("{")
    end = content.rfind("}")
    if start == -1 or end < start:
        return None
    try:
        data = json.loads(content[start:end + 1])
    except json.JSONDecodeError:
        return None
    if not isinstance(data, dict) or not data.get("reengineeredDescription"):
        return None
    return data


class DescriptionService:
    def __init__(self, gemini: GeminiClient) -> None:
        self._gemini = gemini

    async def reengineer(self, request: ReengineerRequest) -> ReengineerResponse:
        prompt = build_prompt(request)
        logger.info("Rewriting description for %s", request.product_context.name)

        try:
            raw = await asyncio.to_thread(
                self._gemini.generate_content,
                prompt,
                temperature=0.8,
                max_output_tokens=1000,
                json_response=True,
            )
        except Exception as e:
            logger.error(f"Gemini rewrite failed: {e}")
            return ReengineerResponse(
                reengineered_description=request.original_description,
                reasoning="Error occurred during rewrite, returning original description",
                changes=["No changes made due to error"],
            )

        data = parse_model_output(raw)
        if data is None:
            logger.warning("Could not parse Gemini rewrite output: %.200s", raw)
            return ReengineerResponse(
                reengineered_description=request.original_description,
                reasoning="Unable to parse AI response, returning original description",
                changes=["No changes made due to parsing error"],
            )

        changes = data.get("changes") or []
        return ReengineerResponse(
            reengineered_description=str(data["reengineeredDescription"]),
            reasoning=str(data.get("reasoning") or ""),
            changes=[str(c) for c in changes] if isinstance(changes, list) else [str(changes)],
        )
