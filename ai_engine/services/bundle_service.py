"""
Site bundle generation: prompt in, three-file bundle out.
"""
import time
from typing import Any, Optional

from config import Settings
from errors import ConfigurationError, InvalidInput, BundleServiceError
from logging_config import logger
from services.llm_response_handler import Bundle, LLMResponseHandler
from services.upstream_client import UpstreamClient

SITE_PROMPT_TEMPLATE = """
You are an assistant that outputs a complete simple static website as JSON.
Create three files: "index.html", "styles.css", and "script.js".
Return only valid JSON and nothing else.
User prompt:
{prompt}
"""


def build_site_prompt(prompt: str) -> str:
    """Wrap the user's request in the fixed JSON-output instructions"""
    return SITE_PROMPT_TEMPLATE.format(prompt=prompt).strip()


class BundleService:
    """Orchestrates one generation request. Never retries."""

    def __init__(self, settings: Settings, client: Optional[UpstreamClient] = None):
        self.settings = settings
        self.client = client or UpstreamClient(settings)

    def _require_upstream(self):
        if not self.settings.upstream_configured:
            raise ConfigurationError(
                "Server misconfigured: missing GEMINI_API_KEY or GEMINI_API_URL"
            )

    @staticmethod
    def _validate_prompt(prompt: Any) -> str:
        if not isinstance(prompt, str) or not prompt.strip():
            raise InvalidInput("Missing prompt string in request body.")
        return prompt

    async def generate(self, prompt: Any) -> Bundle:
        """
        Generate a site bundle for a prompt.

        Raises:
            ConfigurationError: endpoint or key not configured
            InvalidInput: prompt missing, not a string, or blank
            UpstreamUnavailable / UpstreamError: completion call failed
            InvalidModelOutput / MissingMarkup: completion unusable
        """
        self._require_upstream()
        prompt = self._validate_prompt(prompt)

        start_time = time.time()
        logger.info(
            "Bundle generation request received",
            model=self.settings.GEMINI_MODEL,
            prompt_length=len(prompt),
        )

        try:
            result = await self.client.complete(
                model=self.settings.GEMINI_MODEL,
                prompt=build_site_prompt(prompt),
                max_tokens=self.settings.MAX_TOKENS,
            )
            bundle = LLMResponseHandler.normalize(result.payload)
        except BundleServiceError as e:
            logger.warning(
                "Bundle generation failed",
                error_type=type(e).__name__,
                error=e.message,
            )
            raise

        logger.info(
            "Bundle generated",
            markup_chars=len(bundle.markup),
            stylesheet_chars=len(bundle.stylesheet),
            script_chars=len(bundle.script),
            execution_time=round(time.time() - start_time, 3),
        )
        return bundle
