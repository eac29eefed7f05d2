"""Selects the LLM credential and provider for one analysis call."""

from typing import Mapping, Optional, Sequence

from insightmap.core.exceptions import NoCredentialAvailable
from insightmap.services.analysis.contracts import ResolvedCredential
from insightmap.utils.logging import get_logger

LOGGER = get_logger(__name__)

USER_PROVIDER = "user"


class CredentialResolver:
    """Caller-supplied key first, then configured fallbacks in priority order.

    Only provider names are ever logged.
    """

    def __init__(
        self,
        fallback_credentials: Mapping[str, str],
        priority: Sequence[str],
    ):
        """
        Args:
            fallback_credentials: Configured API keys keyed by provider name
            priority: Provider names in the order they should be tried
        """
        self._fallbacks = dict(fallback_credentials)
        self._priority = list(priority)

    @classmethod
    def from_settings(cls, llm_settings) -> "CredentialResolver":
        return cls(
            fallback_credentials=llm_settings.fallback_credentials(),
            priority=llm_settings.fallback_providers,
        )

    def resolve(self, caller_credential: Optional[str] = None) -> ResolvedCredential:
        """Return exactly one credential/provider pair.

        Raises:
            NoCredentialAvailable: No usable caller credential and no fallback configured
        """
        if isinstance(caller_credential, str) and caller_credential.strip():
            LOGGER.debug("Using caller-supplied credential")
            return ResolvedCredential(api_key=caller_credential, provider=USER_PROVIDER)

        for provider in self._priority:
            api_key = self._fallbacks.get(provider)
            if api_key:
                LOGGER.debug(f"Using configured fallback credential for provider '{provider}'")
                return ResolvedCredential(api_key=api_key, provider=provider)

        raise NoCredentialAvailable("No valid API key available for LLM call.")

    def configured_secrets(self) -> tuple:
        """Fallback key values, for registering with the log/debug scrubber."""
        return tuple(value for value in self._fallbacks.values() if value)
