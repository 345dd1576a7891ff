"""
ChatCompletionClient - Azure OpenAI chat completions for labs.

One synchronous POST per call, no retries. Every outcome comes back as a
LabExecutionResult so the lab panel can show it inline:
- configuration missing -> failure, no request made
- non-success HTTP status -> failure with the provider's error message
- timeout / network error -> failure with a retry hint
- zero choices -> failure ("no response generated")
- otherwise -> response text, token usage, timing and metadata
"""

import json
import logging
import math
import time
from typing import Any, Iterable, Mapping, Optional, Union

import requests

from ailearning.schemas import (
    AzureOpenAIConfig,
    ChatCompletionRequest,
    ChatCompletionResponse,
    ChatMessage,
    ErrorKind,
    Lab,
    LabExecutionResult,
)

logger = logging.getLogger(__name__)


DEFAULT_TIMEOUT = 60.0  # seconds
ERROR_BODY_LIMIT = 200

NOT_CONFIGURED_MESSAGE = (
    "Azure OpenAI is not configured. Set AZURE_OPENAI_ENDPOINT, AZURE_OPENAI_API_KEY "
    "and AZURE_OPENAI_DEPLOYMENT_NAME (or add them to config.yaml) and try again."
)
TIMEOUT_MESSAGE = "Request timed out. The model might be processing a complex request. Please try again."
EMPTY_RESULT_MESSAGE = "No response generated from the model."
UNKNOWN_ERROR_MESSAGE = "Unknown error"

# name -> (type, default)
PARAMETER_DEFAULTS: dict[str, tuple[type, Any]] = {
    "max_tokens": (int, 1000),
    "temperature": (float, 0.7),
    "top_p": (float, 1.0),
    "frequency_penalty": (float, 0.0),
    "presence_penalty": (float, 0.0),
}

MessageLike = Union[ChatMessage, Mapping[str, Any]]


def get_parameter(parameters: Optional[Mapping[str, Any]], key: str) -> Any:
    """
    Read one recognized parameter with type coercion.

    Absent, None, boolean, non-numeric or non-finite values fall back to the
    default for that key.
    """
    cast, default = PARAMETER_DEFAULTS[key]
    if not parameters or key not in parameters:
        return default

    value = parameters[key]
    if value is None or isinstance(value, bool):
        return default
    try:
        result = cast(value)
    except (TypeError, ValueError, OverflowError):
        return default
    if isinstance(result, float) and not math.isfinite(result):
        return default
    return result


def build_request(
    messages: Iterable[MessageLike],
    parameters: Optional[Mapping[str, Any]] = None,
) -> ChatCompletionRequest:
    """Shape messages and a parameter bag into the wire request."""
    return ChatCompletionRequest(
        messages=[ChatMessage.model_validate(message) for message in messages],
        **{key: get_parameter(parameters, key) for key in PARAMETER_DEFAULTS},
    )


def parse_error_message(body: str) -> str:
    """
    Pull `error.message` out of a provider error envelope.

    An envelope whose message is null gives UNKNOWN_ERROR_MESSAGE. Anything
    else falls back to the raw body, truncated to ERROR_BODY_LIMIT characters.
    """
    try:
        payload = json.loads(body)
    except ValueError:
        payload = None

    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, dict) and "message" in error:
            message = error["message"]
            if isinstance(message, str):
                return message
            if message is None:
                return UNKNOWN_ERROR_MESSAGE

    if len(body) > ERROR_BODY_LIMIT:
        return body[:ERROR_BODY_LIMIT] + "..."
    return body


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000


class ChatCompletionClient:
    """Wrapper for the Azure OpenAI chat completions REST API."""

    def __init__(
        self,
        config: AzureOpenAIConfig,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        """
        Args:
            config: Endpoint, key, deployment and API version
            timeout: Client-side request timeout in seconds
            session: HTTP session (default: a new requests.Session)
        """
        self.config = config
        self.timeout = timeout
        self.session = session or requests.Session()

    @property
    def is_configured(self) -> bool:
        return self.config.is_complete

    @property
    def url(self) -> str:
        endpoint = self.config.endpoint.rstrip("/")
        return (
            f"{endpoint}/openai/deployments/{self.config.deployment_name}"
            f"/chat/completions?api-version={self.config.api_version}"
        )

    # -------------------------------------------------------------------------
    # Convenience entry points
    # -------------------------------------------------------------------------

    def send_prompt(
        self,
        system_prompt: str,
        user_message: str,
        parameters: Optional[Mapping[str, Any]] = None,
    ) -> LabExecutionResult:
        """Send a system prompt plus one user message."""
        messages = [
            ChatMessage(role="system", content=system_prompt),
            ChatMessage(role="user", content=user_message),
        ]
        return self.send_chat_completion(messages, parameters)

    def run_lab(
        self,
        lab: Lab,
        user_message: str,
        overrides: Optional[Mapping[str, Any]] = None,
    ) -> LabExecutionResult:
        """Run a lab's system prompt against the learner's message."""
        parameters = {**lab.parameters, **(overrides or {})}
        return self.send_prompt(lab.system_prompt, user_message, parameters)

    # -------------------------------------------------------------------------
    # Chat completion
    # -------------------------------------------------------------------------

    def send_chat_completion(
        self,
        messages: Iterable[MessageLike],
        parameters: Optional[Mapping[str, Any]] = None,
    ) -> LabExecutionResult:
        """
        Send one chat completion request.

        Args:
            messages: Ordered role-tagged messages (system / user / assistant)
            parameters: Open parameter bag; see PARAMETER_DEFAULTS

        Returns:
            LabExecutionResult; never raises for provider or network failures
        """
        if not self.is_configured:
            logger.warning("Chat completion requested but Azure OpenAI is not configured")
            return LabExecutionResult.failure(ErrorKind.CONFIGURATION, NOT_CONFIGURED_MESSAGE)

        request = build_request(messages, parameters)
        url = self.url
        start = time.perf_counter()

        logger.info(f"Sending request to Azure OpenAI: {url}")
        try:
            response = self.session.post(
                url,
                headers={"api-key": self.config.api_key, "Content-Type": "application/json"},
                data=request.model_dump_json(),
                timeout=self.timeout,
            )
        except requests.Timeout as e:
            logger.error(f"Timeout calling Azure OpenAI: {e}")
            return LabExecutionResult.failure(ErrorKind.TRANSPORT, TIMEOUT_MESSAGE, _elapsed_ms(start))
        except requests.RequestException as e:
            logger.error(f"HTTP error calling Azure OpenAI: {e}")
            return LabExecutionResult.failure(
                ErrorKind.TRANSPORT,
                f"Network error: {e}. Please check your connection and try again.",
                _elapsed_ms(start),
            )

        if not 200 <= response.status_code < 300:
            logger.error(f"Azure OpenAI error: {response.status_code} - {response.text}")
            status = f"{response.status_code} {response.reason}" if response.reason else str(response.status_code)
            return LabExecutionResult.failure(
                ErrorKind.PROVIDER,
                f"API Error ({status}): {parse_error_message(response.text)}",
                _elapsed_ms(start),
            )

        try:
            completion = ChatCompletionResponse.model_validate(response.json())
        except ValueError as e:
            logger.error(f"Unreadable response from Azure OpenAI: {e}")
            return LabExecutionResult.failure(
                ErrorKind.PROVIDER,
                f"Invalid response from the model provider: {parse_error_message(response.text)}",
                _elapsed_ms(start),
            )

        if not completion.choices:
            return LabExecutionResult.failure(ErrorKind.EMPTY_RESULT, EMPTY_RESULT_MESSAGE, _elapsed_ms(start))

        choice = completion.choices[0]
        elapsed = _elapsed_ms(start)
        if completion.usage:
            logger.info(
                f"Azure OpenAI call took {elapsed:.0f}ms, "
                f"{completion.usage.prompt_tokens} prompt / {completion.usage.completion_tokens} completion tokens"
            )

        return LabExecutionResult(
            is_success=True,
            response=(choice.message.content if choice.message else None) or "",
            token_usage=completion.usage,
            execution_time_ms=elapsed,
            metadata={
                "model": completion.model or "",
                "finish_reason": choice.finish_reason or "",
            },
        )
