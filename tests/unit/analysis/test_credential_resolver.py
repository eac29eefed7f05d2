import logging

import pytest

from insightmap.core.config import LLMSettings
from insightmap.core.exceptions import NoCredentialAvailable
from insightmap.services.analysis.credential_resolver import USER_PROVIDER, CredentialResolver


class TestCredentialResolver:

    def test_caller_credential_wins_over_fallbacks(self):
        resolver = CredentialResolver({"openrouter": "or-key", "gemini": "gm-key"}, ["openrouter", "gemini"])

        resolved = resolver.resolve("sk-caller-key-123456")

        assert resolved.provider == USER_PROVIDER
        assert resolved.api_key == "sk-caller-key-123456"

    def test_fallback_priority_order(self):
        resolver = CredentialResolver({"openrouter": "or-key", "gemini": "gm-key"}, ["gemini", "openrouter"])

        resolved = resolver.resolve(None)

        assert resolved.provider == "gemini"
        assert resolved.api_key == "gm-key"

    def test_blank_caller_credential_falls_through(self):
        resolver = CredentialResolver({"openrouter": "", "gemini": "gm-key"}, ["openrouter", "gemini"])

        resolved = resolver.resolve("   ")

        assert resolved.provider == "gemini"

    def test_no_credential_available(self):
        resolver = CredentialResolver({"openrouter": "", "gemini": ""}, ["openrouter", "gemini"])

        with pytest.raises(NoCredentialAvailable):
            resolver.resolve("")

    def test_repr_hides_key(self):
        resolver = CredentialResolver({}, [])

        resolved = resolver.resolve("sk-very-secret-value-0001")

        assert "sk-very-secret-value-0001" not in repr(resolved)

    def test_key_never_logged(self, caplog):
        resolver = CredentialResolver({"openrouter": "or-secret-fallback"}, ["openrouter"])

        with caplog.at_level(logging.DEBUG, logger="insightmap.services.analysis.credential_resolver"):
            resolver.resolve("sk-caller-secret-000111")
            resolver.resolve(None)

        assert "sk-caller-secret-000111" not in caplog.text
        assert "or-secret-fallback" not in caplog.text

    def test_from_settings(self):
        settings = LLMSettings(
            OPENROUTER_API_KEY="or-key",
            GEMINI_API_KEY="gm-key",
            LLM_FALLBACK_ORDER="gemini, openrouter",
        )

        resolver = CredentialResolver.from_settings(settings)

        assert resolver.resolve().provider == "gemini"
        assert set(resolver.configured_secrets()) == {"or-key", "gm-key"}
