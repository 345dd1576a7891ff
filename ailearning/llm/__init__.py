"""
AI Learning Lab LLM - Model-call client for interactive labs.
"""

from .client import (
    ChatCompletionClient,
    build_request,
    get_parameter,
    parse_error_message,
    DEFAULT_TIMEOUT,
    PARAMETER_DEFAULTS,
    NOT_CONFIGURED_MESSAGE,
    TIMEOUT_MESSAGE,
    EMPTY_RESULT_MESSAGE,
    UNKNOWN_ERROR_MESSAGE,
)

__all__ = [
    "ChatCompletionClient",
    "build_request",
    "get_parameter",
    "parse_error_message",
    "DEFAULT_TIMEOUT",
    "PARAMETER_DEFAULTS",
    "NOT_CONFIGURED_MESSAGE",
    "TIMEOUT_MESSAGE",
    "EMPTY_RESULT_MESSAGE",
    "UNKNOWN_ERROR_MESSAGE",
]
