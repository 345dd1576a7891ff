"""
ChatCompletionClient tests against a fake HTTP session.
"""

import logging
import math

import pytest
import requests

from conftest import FakeResponse, FakeSession, completion_body

from ailearning.llm import (
    ChatCompletionClient,
    EMPTY_RESULT_MESSAGE,
    NOT_CONFIGURED_MESSAGE,
    TIMEOUT_MESSAGE,
    UNKNOWN_ERROR_MESSAGE,
    build_request,
    get_parameter,
    parse_error_message,
)
from ailearning.schemas import AzureOpenAIConfig, ChatMessage, ErrorKind, Lab


MESSAGES = [
    ChatMessage(role="system", content="Be brief."),
    ChatMessage(role="user", content="Hi"),
]


def make_client(azure_config, session, timeout=60.0):
    return ChatCompletionClient(azure_config, timeout=timeout, session=session)


class TestParameters:
    """Parameter bag coercion."""

    def test_defaults(self):
        assert get_parameter(None, "temperature") == 0.7
        assert get_parameter({}, "max_tokens") == 1000
        assert get_parameter({}, "top_p") == 1.0
        assert get_parameter({}, "frequency_penalty") == 0.0
        assert get_parameter({}, "presence_penalty") == 0.0

    def test_coercion(self):
        assert get_parameter({"temperature": "0.2"}, "temperature") == 0.2
        assert get_parameter({"max_tokens": "500"}, "max_tokens") == 500
        assert get_parameter({"max_tokens": 250.0}, "max_tokens") == 250
        assert isinstance(get_parameter({"max_tokens": 250.0}, "max_tokens"), int)
        assert get_parameter({"temperature": 1}, "temperature") == 1.0

    @pytest.mark.parametrize("value", [None, "hot", [], {}, True, math.nan, math.inf])
    def test_malformed_values_fall_back(self, value):
        assert get_parameter({"temperature": value}, "temperature") == 0.7

    def test_malformed_int_falls_back(self):
        assert get_parameter({"max_tokens": "lots"}, "max_tokens") == 1000

    def test_build_request(self):
        request = build_request(
            [{"role": "user", "content": "Hi"}],
            {"temperature": 0.1, "max_tokens": 42, "seed": 9},
        )
        body = request.model_dump()
        assert body["messages"] == [{"role": "user", "content": "Hi"}]
        assert body["temperature"] == 0.1
        assert body["max_tokens"] == 42
        assert body["stream"] is False
        assert "seed" not in body


class TestErrorParsing:
    """Provider error bodies."""

    def test_structured_error(self):
        body = '{"error": {"code": "429", "message": "Rate limit exceeded"}}'
        assert parse_error_message(body) == "Rate limit exceeded"

    def test_raw_body(self):
        assert parse_error_message("Bad gateway") == "Bad gateway"

    def test_long_raw_body_truncated(self):
        body = "x" * 500
        assert parse_error_message(body) == "x" * 200 + "..."

    def test_exactly_limit_not_truncated(self):
        assert parse_error_message("y" * 200) == "y" * 200

    def test_json_without_message(self):
        assert parse_error_message('{"detail": "nope"}') == '{"detail": "nope"}'

    def test_null_message(self):
        assert parse_error_message('{"error": {"code": "500", "message": null}}') == UNKNOWN_ERROR_MESSAGE

    def test_error_without_message_key(self):
        body = '{"error": {"code": "500"}}'
        assert parse_error_message(body) == body


class TestNotConfigured:
    """Missing configuration short-circuits."""

    def test_no_request_made(self):
        session = FakeSession(FakeResponse(body=completion_body()))
        client = ChatCompletionClient(AzureOpenAIConfig(endpoint="https://x"), session=session)

        result = client.send_chat_completion(MESSAGES)

        assert not client.is_configured
        assert not result.is_success
        assert result.error_kind == ErrorKind.CONFIGURATION
        assert result.error_message == NOT_CONFIGURED_MESSAGE
        assert session.calls == []


class TestRequest:
    """Shape of the outgoing request."""

    def test_url_headers_body_timeout(self, azure_config):
        session = FakeSession(FakeResponse(body=completion_body()))
        client = make_client(azure_config, session, timeout=12.5)

        client.send_chat_completion(MESSAGES, {"temperature": 0.2, "max_tokens": 50})

        call = session.calls[0]
        assert call["url"] == (
            "https://example.openai.azure.com/openai/deployments/gpt-4o"
            "/chat/completions?api-version=2024-08-01-preview"
        )
        assert call["headers"]["api-key"] == "secret-key"
        assert call["headers"]["Content-Type"] == "application/json"
        assert call["timeout"] == 12.5
        assert call["body"]["messages"] == [
            {"role": "system", "content": "Be brief."},
            {"role": "user", "content": "Hi"},
        ]
        assert call["body"]["temperature"] == 0.2
        assert call["body"]["max_tokens"] == 50
        assert call["body"]["top_p"] == 1.0
        assert call["body"]["stream"] is False

    def test_key_not_logged(self, azure_config, caplog):
        session = FakeSession(FakeResponse(body=completion_body()))
        with caplog.at_level(logging.INFO):
            make_client(azure_config, session).send_chat_completion(MESSAGES)
        assert "openai/deployments/gpt-4o" in caplog.text
        assert "secret-key" not in caplog.text

    def test_send_prompt(self, azure_config):
        session = FakeSession(FakeResponse(body=completion_body()))
        make_client(azure_config, session).send_prompt("System!", "User?")
        assert session.calls[0]["body"]["messages"] == [
            {"role": "system", "content": "System!"},
            {"role": "user", "content": "User?"},
        ]

    def test_run_lab_merges_overrides(self, azure_config):
        session = FakeSession(FakeResponse(body=completion_body()))
        lab = Lab(id="lab", system_prompt="Lab prompt", parameters={"temperature": 0.3, "max_tokens": 500})

        make_client(azure_config, session).run_lab(lab, "Question", overrides={"max_tokens": 64})

        body = session.calls[0]["body"]
        assert body["messages"][0] == {"role": "system", "content": "Lab prompt"}
        assert body["messages"][1] == {"role": "user", "content": "Question"}
        assert body["temperature"] == 0.3
        assert body["max_tokens"] == 64


class TestResults:
    """Mapping every outcome to a LabExecutionResult."""

    def test_success(self, azure_config):
        session = FakeSession(FakeResponse(body=completion_body(content="Paris.", finish_reason="stop")))

        result = make_client(azure_config, session).send_chat_completion(MESSAGES)

        assert result.is_success
        assert result.response == "Paris."
        assert result.error_kind is None
        assert result.token_usage.prompt_tokens == 12
        assert result.token_usage.completion_tokens == 5
        assert result.token_usage.total_tokens == 17
        assert result.metadata == {"model": "gpt-4o", "finish_reason": "stop"}
        assert result.execution_time_ms >= 0

    def test_null_content_is_empty_response(self, azure_config):
        body = completion_body(choices=[{"message": {"role": "assistant", "content": None}, "finish_reason": "length"}])
        result = make_client(azure_config, FakeSession(FakeResponse(body=body))).send_chat_completion(MESSAGES)
        assert result.is_success
        assert result.response == ""
        assert result.metadata["finish_reason"] == "length"

    def test_provider_error_with_message(self, azure_config):
        response = FakeResponse(
            status_code=429,
            reason="Too Many Requests",
            text='{"error": {"code": "429", "message": "Rate limit exceeded. Retry after 20 seconds."}}',
        )
        result = make_client(azure_config, FakeSession(response)).send_chat_completion(MESSAGES)

        assert not result.is_success
        assert result.error_kind == ErrorKind.PROVIDER
        assert result.error_message == (
            "API Error (429 Too Many Requests): Rate limit exceeded. Retry after 20 seconds."
        )

    def test_provider_error_unparseable_body(self, azure_config):
        response = FakeResponse(status_code=500, reason="Internal Server Error", text="<html>" + "z" * 300)
        result = make_client(azure_config, FakeSession(response)).send_chat_completion(MESSAGES)

        assert result.error_kind == ErrorKind.PROVIDER
        assert result.error_message.startswith("API Error (500 Internal Server Error): <html>zzz")
        assert result.error_message.endswith("...")

    def test_provider_error_without_reason(self, azure_config):
        response = FakeResponse(status_code=401, reason="", text="denied")
        result = make_client(azure_config, FakeSession(response)).send_chat_completion(MESSAGES)
        assert result.error_message == "API Error (401): denied"

    def test_timeout(self, azure_config):
        session = FakeSession(error=requests.Timeout("read timed out"))
        result = make_client(azure_config, session).send_chat_completion(MESSAGES)

        assert result.error_kind == ErrorKind.TRANSPORT
        assert result.error_message == TIMEOUT_MESSAGE
        assert "try again" in result.error_message

    def test_network_error(self, azure_config):
        session = FakeSession(error=requests.ConnectionError("Name or service not known"))
        result = make_client(azure_config, session).send_chat_completion(MESSAGES)

        assert result.error_kind == ErrorKind.TRANSPORT
        assert result.error_message.startswith("Network error: Name or service not known")

    def test_empty_choices(self, azure_config):
        session = FakeSession(FakeResponse(body=completion_body(choices=[])))
        result = make_client(azure_config, session).send_chat_completion(MESSAGES)

        assert result.error_kind == ErrorKind.EMPTY_RESULT
        assert result.error_message == EMPTY_RESULT_MESSAGE

    @pytest.mark.parametrize("text", ['{"model": "gpt-4o", "choices": null}', '{"model": "gpt-4o"}'])
    def test_null_or_missing_choices(self, azure_config, text):
        session = FakeSession(FakeResponse(status_code=200, text=text))
        result = make_client(azure_config, session).send_chat_completion(MESSAGES)

        assert not result.is_success
        assert result.error_kind == ErrorKind.EMPTY_RESULT
        assert result.error_message == EMPTY_RESULT_MESSAGE

    def test_null_metadata_still_succeeds(self, azure_config):
        text = (
            '{"id": null, "object": null, "created": null, "model": null, '
            '"choices": [{"message": {"role": "assistant", "content": "hi"}, "finish_reason": "stop"}]}'
        )
        session = FakeSession(FakeResponse(status_code=200, text=text))
        result = make_client(azure_config, session).send_chat_completion(MESSAGES)

        assert result.is_success
        assert result.response == "hi"
        assert result.token_usage is None
        assert result.metadata == {"model": "", "finish_reason": "stop"}

    def test_undecodable_success_body(self, azure_config):
        session = FakeSession(FakeResponse(status_code=200, text="not json at all"))
        result = make_client(azure_config, session).send_chat_completion(MESSAGES)

        assert not result.is_success
        assert result.error_kind == ErrorKind.PROVIDER

    def test_wrong_shape_success_body(self, azure_config):
        session = FakeSession(FakeResponse(status_code=200, text='["not", "an", "object"]'))
        result = make_client(azure_config, session).send_chat_completion(MESSAGES)
        assert result.error_kind == ErrorKind.PROVIDER
