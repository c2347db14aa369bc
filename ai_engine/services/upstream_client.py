"""
Completion API client. One POST per call, bounded by a fixed timeout.
"""
import httpx
import json
import time
from dataclasses import dataclass
from typing import Any, Optional

from config import Settings
from errors import UpstreamError, UpstreamUnavailable, truncate
from logging_config import logger

PAYLOAD_LOG_LIMIT = 3000


@dataclass(frozen=True)
class UpstreamResult:
    """Raw completion payload plus call metadata"""
    payload: Any
    status_code: int
    elapsed: float


def _decode_payload(response: httpx.Response) -> Any:
    """Decoded JSON body, or the raw text when the body is not JSON"""
    try:
        return response.json()
    except ValueError:
        return response.text


def _payload_for_log(payload: Any) -> str:
    try:
        text = json.dumps(payload, ensure_ascii=False)
    except (TypeError, ValueError):
        text = str(payload)
    return truncate(text, PAYLOAD_LOG_LIMIT)


class UpstreamClient:
    """Client for the configured completion endpoint"""

    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.api_url = settings.GEMINI_API_URL
        self.api_key = settings.GEMINI_API_KEY
        self.timeout = settings.UPSTREAM_TIMEOUT
        self._transport = transport

    async def complete(self, model: str, prompt: str, max_tokens: int) -> UpstreamResult:
        """
        Send one completion request.

        Args:
            model: Model identifier forwarded to the endpoint
            prompt: Full instruction text
            max_tokens: Token budget for the completion

        Returns:
            UpstreamResult with the decoded payload and elapsed seconds

        Raises:
            UpstreamUnavailable: request could not be sent or timed out
            UpstreamError: endpoint answered with a non-success status
        """
        start_time = time.monotonic()

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(
                    self.api_url,
                    headers={
                        "Authorization": f"Bearer {self.api_key}",
                        "Content-Type": "application/json",
                    },
                    json={
                        "model": model,
                        "prompt": prompt,
                        "max_tokens": max_tokens,
                    }
                )
        except httpx.TimeoutException:
            logger.error("Upstream request timed out", timeout=self.timeout)
            raise UpstreamUnavailable(f"Upstream request timed out after {self.timeout:g}s")
        except httpx.RequestError as e:
            logger.error("Upstream request failed", error=str(e))
            raise UpstreamUnavailable(f"Failed to connect to upstream: {str(e)}")
        except (httpx.InvalidURL, UnicodeEncodeError) as e:
            logger.error("Upstream request could not be built", error=str(e))
            raise UpstreamUnavailable(f"Invalid upstream request: {str(e)}")

        elapsed = time.monotonic() - start_time

        if not response.is_success:
            logger.error(
                "Upstream returned error status",
                status=response.status_code,
                body=truncate(response.text),
            )
            raise UpstreamError(response.status_code, response.text)

        payload = _decode_payload(response)
        logger.info("Upstream response (truncated)", payload=_payload_for_log(payload))
        logger.info(
            "Upstream call finished",
            status=response.status_code,
            took_ms=int(elapsed * 1000),
        )

        return UpstreamResult(payload=payload, status_code=response.status_code, elapsed=elapsed)
