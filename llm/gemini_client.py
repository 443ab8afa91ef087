"""Google Gemini LLM client implementation."""

import os
import logging
from typing import Optional, List

from google import genai
from google.genai import types

from .base_client import BaseLLMClient, Message, LLMResponse

logger = logging.getLogger(__name__)


class GeminiClient(BaseLLMClient):
    """Google Gemini client implementation."""

    DEFAULT_MODEL = "gemini-2.5-flash"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None
    ):
        """
        Initialize Gemini client.

        Args:
            api_key: Gemini API key (falls back to GEMINI_API_KEY env var)
            model: Model to use (default: gemini-2.5-flash)
        """
        self.api_key = api_key or os.environ.get("GEMINI_API_KEY")
        self.model = model or self.DEFAULT_MODEL
        self.client = None

        if self.api_key:
            self.client = genai.Client(api_key=self.api_key)
            logger.info(f"Gemini client initialized with model: {self.model}")
        else:
            logger.warning("No Gemini API key provided")

    async def chat(
        self,
        messages: List[Message],
        temperature: float = 0.1,
        max_tokens: int = 1000
    ) -> LLMResponse:
        """Send a generate-content request to Gemini."""
        if not self.client:
            raise RuntimeError("Gemini client not initialized. Check API key.")

        system_content = "\n".join(msg.content for msg in messages if msg.role == "system")
        contents = [
            types.Content(
                role="model" if msg.role == "assistant" else "user",
                parts=[types.Part.from_text(text=msg.content)],
            )
            for msg in messages
            if msg.role != "system"
        ]

        try:
            response = await self.client.aio.models.generate_content(
                model=self.model,
                contents=contents,
                config=types.GenerateContentConfig(
                    system_instruction=system_content or None,
                    temperature=temperature,
                    max_output_tokens=max_tokens,
                ),
            )

            usage = None
            metadata = response.usage_metadata
            if metadata:
                usage = {
                    "prompt_tokens": metadata.prompt_token_count or 0,
                    "completion_tokens": metadata.candidates_token_count or 0,
                    "total_tokens": metadata.total_token_count or 0,
                }

            finish_reason = None
            if response.candidates and response.candidates[0].finish_reason:
                finish_reason = str(response.candidates[0].finish_reason)

            return LLMResponse(
                content=response.text or "",
                usage=usage,
                finish_reason=finish_reason
            )

        except Exception as e:
            logger.error(f"Gemini API error: {e}")
            raise

    def get_provider_name(self) -> str:
        """Get the provider name."""
        return "gemini"

    def get_model_name(self) -> str:
        """Get the model name."""
        return self.model
