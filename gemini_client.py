import logging
from typing import Any, Dict, Optional, Protocol

import google.generativeai as genai

from errors import ExternalServiceError

log = logging.getLogger(__name__)


class ModelClient(Protocol):
    async def generate(self, prompt: str, prefer_json: bool = True) -> str:
        ...


class GeminiClient:
    """Async wrapper over the Gemini SDK; every failure surfaces as ExternalServiceError."""

    def __init__(self, api_key: str, model_name: str = "gemini-2.0-flash", timeout: Optional[float] = 60):
        genai.configure(api_key=api_key)
        self.model_name = model_name
        self.timeout = timeout
        self.model = genai.GenerativeModel(model_name)

    async def generate(self, prompt: str, prefer_json: bool = True) -> str:
        generation_config: Dict[str, Any] = {}
        if prefer_json:
            generation_config["response_mime_type"] = "application/json"
        request_options = {"timeout": self.timeout} if self.timeout else None

        try:
            response = await self.model.generate_content_async(
                [{"role": "user", "parts": [{"text": prompt}]}],
                generation_config=generation_config,
                request_options=request_options,
            )
            # .text raises ValueError when the reply was blocked or has no parts
            text = response.text
        except Exception as e:
            log.warning("Gemini call to %s failed: %s", self.model_name, e)
            raise ExternalServiceError(str(e)) from e

        return text or ""
