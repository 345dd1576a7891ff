"""
Shared fixtures: a small in-code catalog, temporary stores and a fake
HTTP session for the model client.
"""

import json

import pytest

from ailearning.classroom import CloudProgressStore, ContentCatalog, LocalProgressStore
from ailearning.schemas import (
    AzureOpenAIConfig,
    Identity,
    Lab,
    Lesson,
    Module,
    Quiz,
    QuizOption,
    QuizQuestion,
)


# -----------------------------------------------------------------------------
# Catalog
# -----------------------------------------------------------------------------

def make_quiz(quiz_id: str = "basics-quiz", passing_score: int = 70) -> Quiz:
    return Quiz(
        id=quiz_id,
        title="Basics",
        passing_score=passing_score,
        questions=[
            QuizQuestion(
                id="q1",
                question="Pick b",
                options=[QuizOption(id="a", text="A"), QuizOption(id="b", text="B", is_correct=True)],
            ),
            QuizQuestion(
                id="q2",
                question="Pick a",
                options=[QuizOption(id="a", text="A", is_correct=True), QuizOption(id="b", text="B")],
            ),
            QuizQuestion(
                id="q3",
                question="Pick both",
                type="multiple_choice",
                options=[
                    QuizOption(id="a", text="A", is_correct=True),
                    QuizOption(id="b", text="B", is_correct=True),
                    QuizOption(id="c", text="C"),
                ],
            ),
        ],
    )


@pytest.fixture
def catalog() -> ContentCatalog:
    """
    intro (a, b) -> middle (c with quiz, d with lab) -> final (e)
    """
    intro = Module(
        id="intro",
        title="Intro",
        order=1,
        lessons=[
            Lesson(id="a", module_id="intro", title="A", order=1),
            Lesson(id="b", module_id="intro", title="B", order=2),
        ],
    )
    middle = Module(
        id="middle",
        title="Middle",
        order=2,
        prerequisites=["intro"],
        lessons=[
            Lesson(id="c", module_id="middle", title="C", order=1, quiz=make_quiz()),
            Lesson(
                id="d",
                module_id="middle",
                title="D",
                order=2,
                lab=Lab(id="d-lab", system_prompt="Be brief.", parameters={"temperature": 0.2}),
            ),
        ],
    )
    final = Module(
        id="final",
        title="Final",
        order=3,
        prerequisites=["middle"],
        lessons=[Lesson(id="e", module_id="final", title="E", order=1)],
    )
    return ContentCatalog([final, intro, middle])


# -----------------------------------------------------------------------------
# Stores and identities
# -----------------------------------------------------------------------------

@pytest.fixture
def local_store(tmp_path) -> LocalProgressStore:
    return LocalProgressStore(tmp_path / "local_storage.json")


@pytest.fixture
def cloud_store(tmp_path) -> CloudProgressStore:
    return CloudProgressStore(tmp_path / "cloud.db")


@pytest.fixture
def alice() -> Identity:
    return Identity(is_authenticated=True, user_id="alice-id", email="alice@example.com", display_name="Alice")


@pytest.fixture
def bob() -> Identity:
    return Identity(is_authenticated=True, user_id="bob-id", email="bob@example.com", display_name="Bob")


# -----------------------------------------------------------------------------
# HTTP
# -----------------------------------------------------------------------------

class FakeResponse:
    """Just enough of requests.Response for the client."""

    def __init__(self, status_code: int = 200, body=None, text: str = None, reason: str = "OK"):
        self.status_code = status_code
        self.reason = reason
        self.text = text if text is not None else json.dumps(body if body is not None else {})

    def json(self):
        return json.loads(self.text)


class FakeSession:
    """Records posts and returns a canned response or raises a canned error."""

    def __init__(self, response: FakeResponse = None, error: Exception = None):
        self.response = response
        self.error = error
        self.calls = []

    def post(self, url, headers=None, data=None, timeout=None):
        self.calls.append({
            "url": url,
            "headers": headers,
            "body": json.loads(data) if data else None,
            "timeout": timeout,
        })
        if self.error is not None:
            raise self.error
        return self.response


def completion_body(content="Hello!", finish_reason="stop", model="gpt-4o", choices=None):
    if choices is None:
        choices = [{"index": 0, "message": {"role": "assistant", "content": content}, "finish_reason": finish_reason}]
    return {
        "id": "chatcmpl-1",
        "object": "chat.completion",
        "created": 1700000000,
        "model": model,
        "choices": choices,
        "usage": {"prompt_tokens": 12, "completion_tokens": 5, "total_tokens": 17},
    }


@pytest.fixture
def azure_config() -> AzureOpenAIConfig:
    return AzureOpenAIConfig(
        endpoint="https://example.openai.azure.com/",
        api_key="secret-key",
        deployment_name="gpt-4o",
    )
