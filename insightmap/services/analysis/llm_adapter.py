"""Routes a resolved credential to the matching provider transport."""

from typing import Optional

import httpx

from insightmap.core.config import LLMSettings
from insightmap.core.exceptions import ConfigurationError
from insightmap.core.llm_client import GeminiClient, OpenAICompatibleClient
from insightmap.services.analysis.contracts import PromptPair, ResolvedCredential
from insightmap.services.analysis.credential_resolver import USER_PROVIDER
from insightmap.utils.logging import get_logger

LOGGER = get_logger(__name__)


class LLMClientAdapter:
    """Invokes the model for one prompt pair.

    Caller-supplied keys and OpenRouter keys go through the OpenAI-compatible
    transport; Gemini keys go through the Gemini SDK. No retries happen here.
    """

    def __init__(
        self,
        llm_settings: LLMSettings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = llm_settings
        self.transport = transport

    def _client_for(self, credential: ResolvedCredential):
        if credential.provider == USER_PROVIDER:
            return OpenAICompatibleClient(
                api_key=credential.api_key,
                model=self.settings.model,
                base_url=self.settings.user_key_api_url,
                timeout=self.settings.timeout_seconds,
                temperature=self.settings.temperature,
                transport=self.transport,
            )
        if credential.provider == "openrouter":
            return OpenAICompatibleClient(
                api_key=credential.api_key,
                model=self.settings.openrouter_model,
                base_url=self.settings.openrouter_api_url,
                timeout=self.settings.timeout_seconds,
                temperature=self.settings.temperature,
                transport=self.transport,
            )
        if credential.provider == "gemini":
            return GeminiClient(
                api_key=credential.api_key,
                model=self.settings.gemini_model,
                timeout=self.settings.timeout_seconds,
                temperature=self.settings.temperature,
            )
        raise ConfigurationError(f"Unsupported LLM provider: {credential.provider}")

    async def complete(self, credential: ResolvedCredential, prompt: PromptPair) -> str:
        """Return the raw textual model response.

        Raises:
            CredentialRejected, ProviderUnavailable, EmptyResponse
        """
        client = self._client_for(credential)
        LOGGER.info(f"Dispatching extraction call via provider '{credential.provider}'")
        return await client.generate_content(
            system_instruction=prompt.system_instructions,
            contents=prompt.user_instructions,
        )
