"""
Google Gemini client — LLM wrapper for product copywriting.
Version: 1.0.0
"""
import logging
from typing import Optional

import google.generativeai as genai

logger = logging.getLogger(__name__)


class GeminiClient:
    """Thin synchronous wrapper around the Google Generative AI SDK."""

    def __init__(self, api_key: str, model: str = "gemini-2.5-pro"):
        genai.configure(api_key=api_key)
        self._model = genai.GenerativeModel(model)
        self._model_name = model
        logger.info(f"GeminiClient initialised with model={model}")

    def generate_content(
        self,
        prompt: str,
        temperature: Optional[float] = None,
        max_output_tokens: Optional[int] = None,
        json_response: bool = False,
    ) -> str:
        """Generate text from a prompt (synchronous).

        Args:
            prompt: The full prompt to send to Gemini.
            temperature: Sampling temperature, model default when None.
            max_output_tokens: Output cap, model default when None.
            json_response: Ask for an ``application/json`` response body.

        Returns:
            The generated text response.
        """
        config = {}
        if temperature is not None:
            config["temperature"] = temperature
        if max_output_tokens is not None:
            config["max_output_tokens"] = max_output_tokens
        if json_response:
            config["response_mime_type"] = "application/json"

        response = self._model.generate_content(prompt, generation_config=config or None)
        return response.text
