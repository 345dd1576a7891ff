"""
Lab renderer - Display lab instructions, hints and model results.
"""

import html
from typing import Optional

from ailearning.schemas import ErrorKind, Lab, LabExecutionResult, UsageInfo


ERROR_TITLES = {
    ErrorKind.CONFIGURATION: "Azure OpenAI not configured",
    ErrorKind.PROVIDER: "The model service returned an error",
    ErrorKind.TRANSPORT: "Could not reach the model service",
    ErrorKind.EMPTY_RESULT: "No response",
}


def get_lab_css() -> str:
    """Get CSS styles for lab display."""
    return """
    <style>
    .lab-result {
        background: #f5f5f5;
        border-radius: 8px;
        padding: 1em;
        margin: 1em 0;
        border-left: 4px solid #1976D2;
        white-space: pre-wrap;
        line-height: 1.6;
    }
    .lab-error {
        background: #ffebee;
        border-radius: 8px;
        padding: 1em;
        margin: 1em 0;
        border-left: 4px solid #D32F2F;
    }
    .lab-error-title {
        font-weight: 600;
        color: #C62828;
        margin-bottom: 0.3em;
    }
    .lab-meta {
        color: #666;
        font-size: 0.85em;
        margin-top: 0.5em;
    }
    .lab-hint {
        background: #fff3e0;
        padding: 0.8em 1em;
        border-radius: 8px;
        font-size: 0.95em;
        color: #e65100;
        margin-bottom: 0.5em;
    }
    </style>
    """


def format_token_usage(usage: Optional[UsageInfo]) -> str:
    """e.g. '42 prompt + 128 completion = 170 tokens'"""
    if usage is None:
        return ""
    return f"{usage.prompt_tokens} prompt + {usage.completion_tokens} completion = {usage.total_tokens} tokens"


def format_execution_time(execution_time_ms: float) -> str:
    if execution_time_ms >= 1000:
        return f"{execution_time_ms / 1000:.1f}s"
    return f"{execution_time_ms:.0f}ms"


def render_lab_result(result: LabExecutionResult) -> str:
    """
    Render a lab run as HTML.

    Successful runs show the response text with model, tokens and timing.
    Failed runs show the error message under a title for its kind.
    """
    if not result.is_success:
        title = ERROR_TITLES.get(result.error_kind, "Lab run failed")
        return (
            '<div class="lab-error">'
            f'<div class="lab-error-title">{html.escape(title)}</div>'
            f'<div>{html.escape(result.error_message)}</div>'
            '</div>'
        )

    meta = [
        result.metadata.get("model", ""),
        format_token_usage(result.token_usage),
        format_execution_time(result.execution_time_ms),
    ]
    return (
        f'<div class="lab-result">{html.escape(result.response)}</div>'
        f'<div class="lab-meta">{html.escape(" · ".join(part for part in meta if part))}</div>'
    )


def render_hints(lab: Lab, revealed: int) -> str:
    """Render the first `revealed` hints in order."""
    hints = lab.hints[:max(revealed, 0)]
    return ''.join(
        f'<div class="lab-hint">Hint {idx + 1}: {html.escape(hint.content)}</div>'
        for idx, hint in enumerate(hints)
    )
