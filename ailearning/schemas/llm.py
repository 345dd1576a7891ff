"""
Model-call schemas for AI Learning Lab.

Defines Pydantic models for the Azure OpenAI chat completions API:
- Connection configuration
- Request / response wire format
- Uniform lab execution result
"""

from pydantic import BaseModel, Field
from typing import Any, Literal, Optional
from enum import Enum


DEFAULT_API_VERSION = "2024-08-01-preview"


class AzureOpenAIConfig(BaseModel):
    endpoint: str = ""
    api_key: str = ""
    deployment_name: str = ""
    api_version: str = DEFAULT_API_VERSION

    @property
    def is_complete(self) -> bool:
        return bool(self.endpoint and self.api_key and self.deployment_name)


# -----------------------------------------------------------------------------
# Wire format
# -----------------------------------------------------------------------------

class ChatMessage(BaseModel):
    role: Literal["system", "user", "assistant"] = "user"
    content: str = ""


class ChatCompletionRequest(BaseModel):
    messages: list[ChatMessage]
    max_tokens: int = 1000
    temperature: float = 0.7
    top_p: float = 1.0
    frequency_penalty: float = 0.0
    presence_penalty: float = 0.0
    stream: bool = False


class ResponseMessage(BaseModel):
    # providers may answer with other roles (e.g. "tool"), so this stays open
    role: str = "assistant"
    content: Optional[str] = None


class ChatChoice(BaseModel):
    index: int = 0
    message: Optional[ResponseMessage] = None
    finish_reason: Optional[str] = None


class UsageInfo(BaseModel):
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class ChatCompletionResponse(BaseModel):
    id: Optional[str] = None
    object: Optional[str] = None
    created: Optional[int] = None
    model: Optional[str] = None
    choices: Optional[list[ChatChoice]] = None  # null or missing means zero choices
    usage: Optional[UsageInfo] = None


# -----------------------------------------------------------------------------
# Result
# -----------------------------------------------------------------------------

class ErrorKind(str, Enum):
    CONFIGURATION = "configuration"   # settings missing, no request made
    PROVIDER = "provider"             # non-success status or unreadable body
    TRANSPORT = "transport"           # network failure or timeout
    EMPTY_RESULT = "empty_result"     # provider returned zero choices


class LabExecutionResult(BaseModel):
    is_success: bool
    response: str = ""
    error_message: str = ""
    error_kind: Optional[ErrorKind] = None
    token_usage: Optional[UsageInfo] = None
    execution_time_ms: float = 0.0
    metadata: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def failure(
        cls,
        kind: ErrorKind,
        message: str,
        execution_time_ms: float = 0.0,
    ) -> "LabExecutionResult":
        return cls(
            is_success=False,
            error_kind=kind,
            error_message=message,
            execution_time_ms=execution_time_ms,
        )
