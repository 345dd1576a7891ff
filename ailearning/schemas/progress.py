"""
Progress tracking schemas for AI Learning Lab.

Defines Pydantic models for learner state including:
- Nested module / lesson / lab / quiz progress
- Achievements and user settings
- Learner identity used to pick a storage backend
"""

import uuid
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime, timezone


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class LabProgress(BaseModel):
    lab_id: str
    is_completed: bool = False
    attempts_count: int = 0
    hints_used: list[str] = []
    last_submission: str = ""
    completed_at: Optional[datetime] = None


class QuizProgress(BaseModel):
    quiz_id: str
    is_passed: bool = False
    best_score: int = 0
    attempts_count: int = 0
    last_attempt_at: Optional[datetime] = None
    last_answers: dict[str, str] = {}  # question_id -> answer


class LessonProgress(BaseModel):
    lesson_id: str
    is_started: bool = False
    is_completed: bool = False
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    completed_sections: list[str] = []
    lab_progress: Optional[LabProgress] = None
    quiz_progress: Optional[QuizProgress] = None


class ModuleProgress(BaseModel):
    module_id: str
    is_started: bool = False
    is_completed: bool = False
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    lesson_progress: dict[str, LessonProgress] = {}
    total_time_spent_minutes: int = 0

    @property
    def completed_lesson_ids(self) -> set[str]:
        return {lid for lid, lp in self.lesson_progress.items() if lp.is_completed}


class Achievement(BaseModel):
    id: str
    title: str
    description: str = ""
    icon: str = ""
    earned_at: datetime = Field(default_factory=utc_now)


class UserSettings(BaseModel):
    display_name: str = "Learner"
    theme: str = "auto"  # auto, light, dark
    show_code_line_numbers: bool = True
    preferred_code_theme: str = "vs-dark"
    enable_animations: bool = True


class UserProgress(BaseModel):
    """One record per learner; read and written as a whole."""
    user_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = Field(default_factory=utc_now)
    last_activity_at: datetime = Field(default_factory=utc_now)
    module_progress: dict[str, ModuleProgress] = {}
    achievements: list[Achievement] = []
    settings: UserSettings = Field(default_factory=UserSettings)

    def completed_lesson_count(self) -> int:
        return sum(len(mp.completed_lesson_ids) for mp in self.module_progress.values())


class Identity(BaseModel):
    """Who is learning. Only used as a lookup/labelling key."""
    is_authenticated: bool = False
    user_id: Optional[str] = None
    email: str = ""
    display_name: str = ""

    @classmethod
    def anonymous(cls) -> "Identity":
        return cls()


class LeaderboardEntry(BaseModel):
    email: str
    display_name: str
    completed_lessons: int
    last_activity_at: datetime
