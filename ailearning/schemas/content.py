"""
Content schemas for AI Learning Lab.

Defines Pydantic models for the static learning catalog:
- Modules and lessons
- Content sections
- Labs with hints and model parameters
- Quizzes with scored questions
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Optional
from enum import Enum


class DifficultyLevel(str, Enum):
    NOVICE = "novice"
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"
    EXPERT = "expert"


class LessonType(str, Enum):
    THEORY = "theory"
    TUTORIAL = "tutorial"
    LAB = "lab"
    ASSESSMENT = "assessment"


class ContentType(str, Enum):
    TEXT = "text"
    CODE = "code"
    IMAGE = "image"
    VIDEO = "video"
    INTERACTIVE = "interactive"
    DIAGRAM = "diagram"


class LabType(str, Enum):
    PROMPT_ENGINEERING = "prompt_engineering"
    API_CALL = "api_call"
    COMPARISON = "comparison"
    FREE_FORM = "free_form"
    CODE_COMPLETION = "code_completion"


class QuestionType(str, Enum):
    SINGLE_CHOICE = "single_choice"
    MULTIPLE_CHOICE = "multiple_choice"
    TRUE_FALSE = "true_false"
    FILL_IN_BLANK = "fill_in_blank"


class CatalogModel(BaseModel):
    """Catalog entries never change after the catalog is built."""
    model_config = ConfigDict(frozen=True)


# -----------------------------------------------------------------------------
# Sections
# -----------------------------------------------------------------------------

class ContentSection(CatalogModel):
    id: str
    title: str
    order: int = 0
    type: ContentType = ContentType.TEXT
    content: str = ""        # markdown
    metadata: dict[str, str] = {}


# -----------------------------------------------------------------------------
# Labs
# -----------------------------------------------------------------------------

class LabHint(CatalogModel):
    order: int = 0
    content: str


class Lab(CatalogModel):
    """
    Interactive exercise sent to the model client.

    `parameters` is an open bag (temperature, max_tokens, ...) passed through
    to the chat completion request; unknown keys are ignored by the client.
    """
    id: str
    title: str = ""
    description: str = ""
    instructions: str = ""   # markdown
    lab_type: LabType = LabType.FREE_FORM
    starter_code: str = ""   # pre-filled user message
    expected_output: str = ""
    hints: list[LabHint] = []
    system_prompt: str = ""
    parameters: dict[str, Any] = {}


# -----------------------------------------------------------------------------
# Quizzes
# -----------------------------------------------------------------------------

class QuizOption(CatalogModel):
    id: str
    text: str
    is_correct: bool = False


class QuizQuestion(CatalogModel):
    id: str
    question: str
    type: QuestionType = QuestionType.SINGLE_CHOICE
    options: list[QuizOption] = []
    explanation: str = ""
    points: int = Field(default=1, ge=0)

    @property
    def correct_option_ids(self) -> set[str]:
        return {option.id for option in self.options if option.is_correct}


class Quiz(CatalogModel):
    id: str
    title: str = ""
    questions: list[QuizQuestion] = []
    passing_score: int = Field(default=70, ge=0, le=100)  # percentage

    @property
    def total_points(self) -> int:
        return sum(question.points for question in self.questions)


# -----------------------------------------------------------------------------
# Lessons and modules
# -----------------------------------------------------------------------------

class Lesson(CatalogModel):
    id: str
    module_id: str
    title: str
    description: str = ""
    order: int = 0
    type: LessonType = LessonType.THEORY
    sections: list[ContentSection] = []
    lab: Optional[Lab] = None
    quiz: Optional[Quiz] = None
    estimated_minutes: int = 0


class Module(CatalogModel):
    id: str
    title: str
    description: str = ""
    icon: str = "bi-book"
    level: DifficultyLevel = DifficultyLevel.NOVICE
    order: int = 0
    prerequisites: list[str] = []  # module IDs
    lessons: list[Lesson] = []
    estimated_minutes: int = 0
