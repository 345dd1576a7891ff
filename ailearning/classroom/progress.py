"""
ProgressTracker - Track one learner's progress through the catalog.

Every tracked action is a read-modify-write of the whole UserProgress record:
- fetch the record (session cache, else the selected store)
- make sure the module / lesson entries exist (created as started)
- apply the mutation
- persist the whole record back

The store is picked by authentication state: authenticated learners use the
durable store when one is configured, everyone else the local device store.
Storage failures are logged and swallowed; the in-memory record survives.
"""

import logging
from datetime import datetime
from typing import Optional

from ailearning.schemas import (
    Achievement,
    Identity,
    LabProgress,
    LessonProgress,
    ModuleProgress,
    QuizProgress,
    UserProgress,
    UserSettings,
    utc_now,
)

from .catalog import ContentCatalog
from .storage import CloudProgressStore, LocalProgressStore, ProgressStore, StorageError

logger = logging.getLogger(__name__)


def _advance(current: Optional[datetime], now: datetime) -> datetime:
    """Completion timestamps only move forward once set."""
    if current is None or now > current:
        return now
    return current


class ProgressTracker:
    """
    Session-scoped progress tracker for a single identity.

    The loaded record is cached for the life of the tracker and refreshed on
    every save; reset_progress() drops it.
    """

    def __init__(
        self,
        identity: Optional[Identity] = None,
        local_store: Optional[LocalProgressStore] = None,
        cloud_store: Optional[CloudProgressStore] = None,
    ):
        """
        Initialize progress tracker.

        Args:
            identity: Current learner (default: anonymous)
            local_store: Device store (default: ~/.ailearning/local_storage.json)
            cloud_store: Durable store for authenticated learners, if configured
        """
        self.identity = identity or Identity.anonymous()
        self.local_store = local_store or LocalProgressStore()
        self.cloud_store = cloud_store
        self._cached_progress: Optional[UserProgress] = None

        if self.identity.is_authenticated and cloud_store is None:
            logger.warning(
                f"No durable store configured; progress for {self.identity.email or self.identity.user_id} "
                "stays on this device"
            )

    @property
    def store(self) -> ProgressStore:
        """Backend for the current identity."""
        if self.identity.is_authenticated and self.cloud_store is not None:
            return self.cloud_store
        return self.local_store

    # -------------------------------------------------------------------------
    # Whole record
    # -------------------------------------------------------------------------

    def _new_progress(self) -> UserProgress:
        progress = UserProgress()
        if self.identity.is_authenticated and self.identity.user_id:
            progress.user_id = self.identity.user_id
        if self.identity.display_name:
            progress.settings.display_name = self.identity.display_name
        return progress

    def get_progress(self) -> UserProgress:
        """Get the learner's record, creating an empty one on first access."""
        if self._cached_progress is not None:
            return self._cached_progress

        progress = None
        try:
            progress = self.store.load(self.identity)
        except StorageError as e:
            logger.error(f"Error loading progress from {self.store.name} storage: {e}")

        self._cached_progress = progress or self._new_progress()
        return self._cached_progress

    def save_progress(self, progress: UserProgress):
        """Stamp last activity and overwrite the stored record."""
        progress.last_activity_at = utc_now()
        try:
            self.store.save(self.identity, progress)
        except StorageError as e:
            logger.error(f"Error saving progress to {self.store.name} storage: {e}")
        self._cached_progress = progress

    def reset_progress(self):
        """Discard the stored record entirely."""
        try:
            self.store.delete(self.identity)
        except StorageError as e:
            logger.error(f"Error resetting progress in {self.store.name} storage: {e}")
        self._cached_progress = None

    # -------------------------------------------------------------------------
    # Structure helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def _ensure_module(progress: UserProgress, module_id: str, now: datetime) -> ModuleProgress:
        module_progress = progress.module_progress.get(module_id)
        if module_progress is None:
            module_progress = ModuleProgress(module_id=module_id)
            progress.module_progress[module_id] = module_progress
        if not module_progress.is_started:
            module_progress.is_started = True
            module_progress.started_at = module_progress.started_at or now
        return module_progress

    def _ensure_lesson(
        self,
        progress: UserProgress,
        module_id: str,
        lesson_id: str,
        now: datetime,
    ) -> LessonProgress:
        module_progress = self._ensure_module(progress, module_id, now)
        lesson_progress = module_progress.lesson_progress.get(lesson_id)
        if lesson_progress is None:
            lesson_progress = LessonProgress(lesson_id=lesson_id)
            module_progress.lesson_progress[lesson_id] = lesson_progress
        if not lesson_progress.is_started:
            lesson_progress.is_started = True
            lesson_progress.started_at = lesson_progress.started_at or now
        return lesson_progress

    @staticmethod
    def _ensure_lab(lesson_progress: LessonProgress, lab_id: str) -> LabProgress:
        if lesson_progress.lab_progress is None or lesson_progress.lab_progress.lab_id != lab_id:
            lesson_progress.lab_progress = LabProgress(lab_id=lab_id)
        return lesson_progress.lab_progress

    # -------------------------------------------------------------------------
    # Lessons
    # -------------------------------------------------------------------------

    def mark_lesson_started(self, module_id: str, lesson_id: str):
        progress = self.get_progress()
        self._ensure_lesson(progress, module_id, lesson_id, utc_now())
        self.save_progress(progress)

    def mark_lesson_completed(self, module_id: str, lesson_id: str):
        progress = self.get_progress()
        now = utc_now()
        lesson_progress = self._ensure_lesson(progress, module_id, lesson_id, now)
        lesson_progress.is_completed = True
        lesson_progress.completed_at = _advance(lesson_progress.completed_at, now)
        self.save_progress(progress)

    def mark_section_completed(self, module_id: str, lesson_id: str, section_id: str):
        progress = self.get_progress()
        lesson_progress = self._ensure_lesson(progress, module_id, lesson_id, utc_now())
        if section_id not in lesson_progress.completed_sections:
            lesson_progress.completed_sections.append(section_id)
        self.save_progress(progress)

    def get_lesson_progress(self, module_id: str, lesson_id: str) -> Optional[LessonProgress]:
        module_progress = self.get_progress().module_progress.get(module_id)
        if module_progress is None:
            return None
        return module_progress.lesson_progress.get(lesson_id)

    def is_lesson_completed(self, module_id: str, lesson_id: str) -> bool:
        lesson_progress = self.get_lesson_progress(module_id, lesson_id)
        return bool(lesson_progress and lesson_progress.is_completed)

    def get_completed_lesson_ids(self, module_id: str) -> set[str]:
        module_progress = self.get_progress().module_progress.get(module_id)
        return module_progress.completed_lesson_ids if module_progress else set()

    # -------------------------------------------------------------------------
    # Labs
    # -------------------------------------------------------------------------

    def record_lab_attempt(self, module_id: str, lesson_id: str, lab_id: str, submission: str):
        """Count one lab submission without completing the lab."""
        progress = self.get_progress()
        lesson_progress = self._ensure_lesson(progress, module_id, lesson_id, utc_now())
        lab_progress = self._ensure_lab(lesson_progress, lab_id)
        lab_progress.attempts_count += 1
        lab_progress.last_submission = submission
        self.save_progress(progress)

    def record_hint_used(self, module_id: str, lesson_id: str, lab_id: str, hint: str):
        progress = self.get_progress()
        lesson_progress = self._ensure_lesson(progress, module_id, lesson_id, utc_now())
        lab_progress = self._ensure_lab(lesson_progress, lab_id)
        if hint not in lab_progress.hints_used:
            lab_progress.hints_used.append(hint)
        self.save_progress(progress)

    def mark_lab_completed(
        self,
        module_id: str,
        lesson_id: str,
        lab_id: str,
        submission: Optional[str] = None,
    ):
        """Complete a lab; the completing run counts as an attempt."""
        progress = self.get_progress()
        now = utc_now()
        lesson_progress = self._ensure_lesson(progress, module_id, lesson_id, now)
        lab_progress = self._ensure_lab(lesson_progress, lab_id)
        lab_progress.is_completed = True
        lab_progress.completed_at = _advance(lab_progress.completed_at, now)
        lab_progress.attempts_count += 1
        if submission is not None:
            lab_progress.last_submission = submission
        self.save_progress(progress)

    # -------------------------------------------------------------------------
    # Quizzes
    # -------------------------------------------------------------------------

    def save_quiz_result(
        self,
        module_id: str,
        lesson_id: str,
        quiz_id: str,
        score: int,
        passed: bool,
        answers: Optional[dict[str, str]] = None,
    ):
        """
        Record one quiz attempt.

        Keeps the best score so far, counts the attempt, and completes the
        lesson if this attempt passed or an earlier one already did.
        """
        progress = self.get_progress()
        now = utc_now()
        lesson_progress = self._ensure_lesson(progress, module_id, lesson_id, now)
        previous = lesson_progress.quiz_progress
        already_passed = previous.is_passed if previous else False

        lesson_progress.quiz_progress = QuizProgress(
            quiz_id=quiz_id,
            is_passed=passed or already_passed,
            best_score=max(score, previous.best_score if previous else 0),
            attempts_count=(previous.attempts_count if previous else 0) + 1,
            last_attempt_at=now,
            last_answers=answers or {},
        )

        if passed or (already_passed and not lesson_progress.is_completed):
            lesson_progress.is_completed = True
            lesson_progress.completed_at = _advance(lesson_progress.completed_at, now)

        self.save_progress(progress)

    # -------------------------------------------------------------------------
    # Modules, achievements, settings
    # -------------------------------------------------------------------------

    def mark_module_completed(self, module_id: str):
        progress = self.get_progress()
        now = utc_now()
        module_progress = self._ensure_module(progress, module_id, now)
        module_progress.is_completed = True
        module_progress.completed_at = _advance(module_progress.completed_at, now)
        self.save_progress(progress)

    def add_study_time(self, module_id: str, minutes: int):
        """Add study time to a module's total."""
        if minutes <= 0:
            return
        progress = self.get_progress()
        module_progress = self._ensure_module(progress, module_id, utc_now())
        module_progress.total_time_spent_minutes += minutes
        self.save_progress(progress)

    def award_achievement(self, achievement: Achievement) -> bool:
        """Add an achievement once. Returns False if it was already earned."""
        progress = self.get_progress()
        if any(existing.id == achievement.id for existing in progress.achievements):
            return False
        progress.achievements.append(achievement)
        self.save_progress(progress)
        return True

    def update_settings(self, settings: UserSettings):
        progress = self.get_progress()
        progress.settings = settings
        self.save_progress(progress)

    # -------------------------------------------------------------------------
    # Statistics
    # -------------------------------------------------------------------------

    def get_overall_progress_percentage(self, catalog: ContentCatalog) -> int:
        """
        Completed lessons as a whole-number percentage of the catalog.

        Only lessons that exist in the given catalog count, so stale entries
        for removed lessons can't push the figure past 100.

        Returns:
            0-100, rounded down; 0 when the catalog has no lessons
        """
        total_lessons = catalog.total_lessons
        if total_lessons == 0:
            return 0

        progress = self.get_progress()
        completed = 0
        for module in catalog.list_modules():
            module_progress = progress.module_progress.get(module.id)
            if module_progress is None:
                continue
            lesson_ids = {lesson.id for lesson in module.lessons}
            completed += len(module_progress.completed_lesson_ids & lesson_ids)

        return completed * 100 // total_lessons
