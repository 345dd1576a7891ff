"""
AI Learning Lab Schemas - Pydantic models for the learning platform.

This module exports all schema classes for:
- Content: modules, lessons, sections, labs, quizzes
- Progress: learner progress, achievements, settings, identity
- LLM: chat completion wire format and lab execution results
"""

# Content schemas
from .content import (
    DifficultyLevel,
    LessonType,
    ContentType,
    LabType,
    QuestionType,
    ContentSection,
    LabHint,
    Lab,
    QuizOption,
    QuizQuestion,
    Quiz,
    Lesson,
    Module,
)

# Progress schemas
from .progress import (
    LabProgress,
    QuizProgress,
    LessonProgress,
    ModuleProgress,
    Achievement,
    UserSettings,
    UserProgress,
    Identity,
    LeaderboardEntry,
    utc_now,
)

# LLM schemas
from .llm import (
    DEFAULT_API_VERSION,
    AzureOpenAIConfig,
    ChatMessage,
    ChatCompletionRequest,
    ResponseMessage,
    ChatChoice,
    UsageInfo,
    ChatCompletionResponse,
    ErrorKind,
    LabExecutionResult,
)

__all__ = [
    # Content
    'DifficultyLevel',
    'LessonType',
    'ContentType',
    'LabType',
    'QuestionType',
    'ContentSection',
    'LabHint',
    'Lab',
    'QuizOption',
    'QuizQuestion',
    'Quiz',
    'Lesson',
    'Module',
    # Progress
    'LabProgress',
    'QuizProgress',
    'LessonProgress',
    'ModuleProgress',
    'Achievement',
    'UserSettings',
    'UserProgress',
    'Identity',
    'LeaderboardEntry',
    'utc_now',
    # LLM
    'DEFAULT_API_VERSION',
    'AzureOpenAIConfig',
    'ChatMessage',
    'ChatCompletionRequest',
    'ResponseMessage',
    'ChatChoice',
    'UsageInfo',
    'ChatCompletionResponse',
    'ErrorKind',
    'LabExecutionResult',
]
