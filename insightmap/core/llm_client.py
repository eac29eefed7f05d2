"""HTTP and SDK transports for LLM providers.

Each call is a single attempt bounded by ``timeout``; failures are
classified into credential, availability and empty-response errors.
Error messages carry status codes only, never request headers or
provider response bodies, so no credential material can leak through them.
"""

import asyncio
from typing import Any, Dict, List, Optional

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types
from httpx import HTTPStatusError, TimeoutException

from insightmap.core.exceptions import (
    CredentialRejected,
    EmptyResponse,
    ProviderUnavailable,
)
from insightmap.utils.logging import get_logger

LOGGER = get_logger(__name__)

AUTH_FAILURE_CODES = (401, 403)

GEMINI_AUTH_STATUSES = ("UNAUTHENTICATED", "PERMISSION_DENIED")
# Gemini answers a bad key with 400 INVALID_ARGUMENT and one of these reasons.
GEMINI_AUTH_REASONS = ("API_KEY_INVALID", "API_KEY_EXPIRED")


def _is_gemini_auth_failure(error: "genai_errors.APIError") -> bool:
    if error.code in AUTH_FAILURE_CODES or error.status in GEMINI_AUTH_STATUSES:
        return True
    details = getattr(error, "details", None)
    if not isinstance(details, dict):
        return False
    body = details.get("error", details)
    for item in (body.get("details") if isinstance(body, dict) else None) or []:
        if isinstance(item, dict) and item.get("reason") in GEMINI_AUTH_REASONS:
            return True
    return False


class BaseLLMClient:
    """Base client for LLM HTTP APIs.

    Handles bearer authentication, timeout management and error
    classification for one request.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str,
        timeout: float = 60,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the LLM client.

        Args:
            api_key: API key for authentication
            base_url: Full endpoint URL
            timeout: Request timeout in seconds
            transport: Optional httpx transport (tests inject a MockTransport)
        """
        self.api_key = api_key
        self.base_url = base_url
        self.timeout = timeout
        self.transport = transport
        self.logger = LOGGER

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(base_url={self.base_url!r}, timeout={self.timeout})"

    async def call_api(
        self,
        payload: Dict[str, Any],
        headers: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        """POST ``payload`` and return the decoded JSON body.

        Raises:
            CredentialRejected: The provider answered 401 or 403
            ProviderUnavailable: Timeout, transport error, non-JSON body or other HTTP error
        """
        request_headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        if headers:
            request_headers.update(headers)

        self.logger.debug(
            f"Calling LLM API: {self.base_url}",
            extra={"timeout": self.timeout}
        )

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(self.base_url, headers=request_headers, json=payload)
                response.raise_for_status()
                return response.json()

        except HTTPStatusError as e:
            status_code = e.response.status_code
            self.logger.warning(
                f"LLM API HTTP error {status_code}",
                extra={"url": self.base_url, "status_code": status_code}
            )
            if status_code in AUTH_FAILURE_CODES:
                raise CredentialRejected(
                    f"LLM provider rejected the credential (HTTP {status_code})"
                ) from None
            raise ProviderUnavailable(f"LLM provider returned HTTP {status_code}") from None

        except TimeoutException:
            self.logger.warning(f"LLM API timeout after {self.timeout}s", extra={"url": self.base_url})
            raise ProviderUnavailable(f"LLM provider timed out after {self.timeout}s") from None

        except httpx.HTTPError as e:
            self.logger.warning(
                f"LLM API transport error: {e.__class__.__name__}",
                extra={"url": self.base_url}
            )
            raise ProviderUnavailable(
                f"LLM provider unreachable ({e.__class__.__name__})"
            ) from None

        except ValueError:
            raise ProviderUnavailable("LLM provider returned a non-JSON body") from None


class OpenAICompatibleClient:
    """Chat-completions client for OpenAI-compatible endpoints (OpenRouter, OpenAI)."""

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str,
        timeout: float = 60,
        temperature: float = 0.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the client.

        Args:
            api_key: Bearer credential
            model: Model name (e.g., "gpt-4o-mini" or "openai/gpt-4o-mini")
            base_url: Chat completions endpoint URL
            timeout: Request timeout in seconds
            temperature: Sampling temperature
            transport: Optional httpx transport
        """
        self.model = model
        self.temperature = temperature
        self.client = BaseLLMClient(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout,
            transport=transport,
        )

    async def generate_content(self, system_instruction: str, contents: str) -> str:
        """Generate a JSON response for the given instructions.

        Raises:
            CredentialRejected, ProviderUnavailable, EmptyResponse
        """
        messages: List[Dict[str, str]] = [
            {"role": "system", "content": system_instruction},
            {"role": "user", "content": contents},
        ]
        payload = {
            "model": self.model,
            "messages": messages,
            "temperature": self.temperature,
            "response_format": {"type": "json_object"},
        }

        response = await self.client.call_api(payload=payload)

        choices = response.get("choices") if isinstance(response, dict) else None
        if not choices:
            LOGGER.warning("LLM response carried no choices")
            raise EmptyResponse("LLM returned empty response.")

        message = choices[0].get("message") or {}
        content = message.get("content")
        if not content or not str(content).strip():
            LOGGER.warning("LLM response content was empty")
            raise EmptyResponse("LLM returned empty response.")

        return content


class GeminiClient:
    """Wrapper for the Google Gemini API client."""

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.0-flash",
        timeout: float = 60,
        temperature: float = 0.0,
    ):
        """Initialize Gemini client.

        Args:
            api_key: Gemini API key
            model: Model name to use
            timeout: Request timeout in seconds
            temperature: Sampling temperature
        """
        self.model = model
        self.timeout = timeout
        self.temperature = temperature
        self.client = genai.Client(api_key=api_key)

    async def generate_content(self, system_instruction: str, contents: str) -> str:
        """Generate a JSON response for the given instructions.

        Raises:
            CredentialRejected, ProviderUnavailable, EmptyResponse
        """
        config = types.GenerateContentConfig(
            temperature=self.temperature,
            system_instruction=system_instruction,
            response_mime_type="application/json",
        )

        try:
            response = await asyncio.wait_for(
                self.client.aio.models.generate_content(
                    model=self.model,
                    contents=contents,
                    config=config,
                ),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            LOGGER.warning(f"Gemini call timed out after {self.timeout}s")
            raise ProviderUnavailable(f"LLM provider timed out after {self.timeout}s") from None
        except genai_errors.APIError as e:
            LOGGER.warning(f"Gemini API error {e.code}")
            if _is_gemini_auth_failure(e):
                raise CredentialRejected(
                    f"LLM provider rejected the credential (HTTP {e.code})"
                ) from None
            raise ProviderUnavailable(f"LLM provider returned HTTP {e.code}") from None
        except httpx.HTTPError as e:
            LOGGER.warning(f"Gemini transport error: {e.__class__.__name__}")
            raise ProviderUnavailable(
                f"LLM provider unreachable ({e.__class__.__name__})"
            ) from None

        if not response.text:
            LOGGER.warning("Empty response from Gemini")
            raise EmptyResponse("LLM returned empty response.")

        return response.text
