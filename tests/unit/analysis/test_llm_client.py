import json
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
from google.genai import errors as genai_errors

from conftest import FALLBACK_KEY, USER_KEY, RecordingTransport, chat_completion, json_transport
from insightmap.core.exceptions import (
    ConfigurationError,
    CredentialRejected,
    EmptyResponse,
    ProviderUnavailable,
)
from insightmap.core.llm_client import GeminiClient, OpenAICompatibleClient
from insightmap.services.analysis.contracts import PromptPair, ResolvedCredential
from insightmap.services.analysis.llm_adapter import LLMClientAdapter

PROMPT = PromptPair(system_instructions="system", user_instructions="user")


def make_client(transport) -> OpenAICompatibleClient:
    return OpenAICompatibleClient(
        api_key=USER_KEY,
        model="gpt-4o-mini",
        base_url="https://llm.test/v1/chat/completions",
        timeout=5,
        transport=transport,
    )


class TestOpenAICompatibleClient:

    @pytest.mark.asyncio
    async def test_returns_message_content(self):
        transport = json_transport(chat_completion({"quotes": []}))

        content = await make_client(transport).generate_content("sys", "usr")

        assert json.loads(content) == {"quotes": []}
        request = transport.requests[0]
        assert request.headers["Authorization"] == f"Bearer {USER_KEY}"
        body = json.loads(request.content)
        assert body["model"] == "gpt-4o-mini"
        assert body["response_format"] == {"type": "json_object"}
        assert [m["role"] for m in body["messages"]] == ["system", "user"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status_code", [401, 403])
    async def test_auth_failure_is_credential_rejected(self, status_code):
        transport = json_transport({"error": {"message": f"Incorrect API key provided: {USER_KEY}"}}, status_code)

        with pytest.raises(CredentialRejected) as exc_info:
            await make_client(transport).generate_content("sys", "usr")

        assert USER_KEY not in str(exc_info.value)
        assert exc_info.value.__cause__ is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status_code", [429, 500, 503, 404])
    async def test_other_http_errors_are_provider_unavailable(self, status_code):
        transport = json_transport({"error": f"echo {USER_KEY}"}, status_code)

        with pytest.raises(ProviderUnavailable) as exc_info:
            await make_client(transport).generate_content("sys", "usr")

        assert str(status_code) in exc_info.value.message
        assert USER_KEY not in exc_info.value.message

    @pytest.mark.asyncio
    async def test_timeout_is_provider_unavailable(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(ProviderUnavailable):
            await make_client(RecordingTransport(handler)).generate_content("sys", "usr")

    @pytest.mark.asyncio
    async def test_connection_error_is_provider_unavailable(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(ProviderUnavailable):
            await make_client(RecordingTransport(handler)).generate_content("sys", "usr")

    @pytest.mark.asyncio
    async def test_non_json_body_is_provider_unavailable(self):
        transport = RecordingTransport(lambda request: httpx.Response(200, text="<html>gateway</html>"))

        with pytest.raises(ProviderUnavailable):
            await make_client(transport).generate_content("sys", "usr")

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body",
        [
            {"choices": []},
            {},
            chat_completion(""),
            {"choices": [{"message": {"role": "assistant", "content": None}}]},
        ],
    )
    async def test_empty_response(self, body):
        with pytest.raises(EmptyResponse):
            await make_client(json_transport(body)).generate_content("sys", "usr")

    def test_repr_hides_key(self):
        client = make_client(None)

        assert USER_KEY not in repr(client.client)


class TestGeminiClient:

    def _client(self, generate):
        with patch("insightmap.core.llm_client.genai.Client") as client_cls:
            sdk = MagicMock()
            sdk.aio.models.generate_content = generate
            client_cls.return_value = sdk
            return GeminiClient(api_key=FALLBACK_KEY, model="gemini-2.0-flash", timeout=5)

    @pytest.mark.asyncio
    async def test_returns_text(self):
        client = self._client(AsyncMock(return_value=MagicMock(text='{"nodes": []}')))

        assert await client.generate_content("sys", "usr") == '{"nodes": []}'

    @pytest.mark.asyncio
    async def test_auth_error_is_credential_rejected(self):
        error = genai_errors.ClientError(401, {"error": {"code": 401, "message": "API key not valid", "status": "UNAUTHENTICATED"}})
        client = self._client(AsyncMock(side_effect=error))

        with pytest.raises(CredentialRejected):
            await client.generate_content("sys", "usr")

    @pytest.mark.asyncio
    async def test_invalid_key_reported_as_bad_request_is_credential_rejected(self):
        error = genai_errors.ClientError(
            400,
            {
                "error": {
                    "code": 400,
                    "message": f"API key not valid: {FALLBACK_KEY}",
                    "status": "INVALID_ARGUMENT",
                    "details": [
                        {
                            "@type": "type.googleapis.com/google.rpc.ErrorInfo",
                            "reason": "API_KEY_INVALID",
                            "domain": "googleapis.com",
                        }
                    ],
                }
            },
        )
        client = self._client(AsyncMock(side_effect=error))

        with pytest.raises(CredentialRejected) as exc_info:
            await client.generate_content("sys", "usr")

        assert FALLBACK_KEY not in exc_info.value.message

    @pytest.mark.asyncio
    async def test_other_bad_request_is_provider_unavailable(self):
        error = genai_errors.ClientError(
            400, {"error": {"code": 400, "message": "Invalid JSON payload", "status": "INVALID_ARGUMENT"}}
        )
        client = self._client(AsyncMock(side_effect=error))

        with pytest.raises(ProviderUnavailable):
            await client.generate_content("sys", "usr")

    @pytest.mark.asyncio
    async def test_server_error_is_provider_unavailable(self):
        error = genai_errors.ServerError(503, {"error": {"code": 503, "message": "overloaded", "status": "UNAVAILABLE"}})
        client = self._client(AsyncMock(side_effect=error))

        with pytest.raises(ProviderUnavailable):
            await client.generate_content("sys", "usr")

    @pytest.mark.asyncio
    async def test_empty_text(self):
        client = self._client(AsyncMock(return_value=MagicMock(text="")))

        with pytest.raises(EmptyResponse):
            await client.generate_content("sys", "usr")


class TestLLMClientAdapter:

    @pytest.mark.asyncio
    async def test_user_credential_uses_user_endpoint(self, llm_settings):
        transport = json_transport(chat_completion({"nodes": []}))
        adapter = LLMClientAdapter(llm_settings, transport=transport)

        await adapter.complete(ResolvedCredential(api_key=USER_KEY, provider="user"), PROMPT)

        assert str(transport.requests[0].url) == llm_settings.user_key_api_url
        assert json.loads(transport.requests[0].content)["model"] == llm_settings.model

    @pytest.mark.asyncio
    async def test_openrouter_credential_uses_openrouter_endpoint(self, llm_settings):
        transport = json_transport(chat_completion({"nodes": []}))
        adapter = LLMClientAdapter(llm_settings, transport=transport)

        await adapter.complete(ResolvedCredential(api_key=FALLBACK_KEY, provider="openrouter"), PROMPT)

        assert str(transport.requests[0].url) == llm_settings.openrouter_api_url
        assert transport.requests[0].headers["Authorization"] == f"Bearer {FALLBACK_KEY}"

    @pytest.mark.asyncio
    async def test_unknown_provider(self, llm_settings):
        adapter = LLMClientAdapter(llm_settings)

        with pytest.raises(ConfigurationError):
            await adapter.complete(ResolvedCredential(api_key="x", provider="mystery"), PROMPT)
