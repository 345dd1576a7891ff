"""
ProgressTracker tests.
"""

import logging

from ailearning.classroom import ContentCatalog, ProgressTracker, StorageError
from ailearning.classroom.storage import LocalProgressStore
from ailearning.schemas import Achievement, Identity, Lesson, Module, UserSettings


class FailingStore(LocalProgressStore):
    """Local store whose every operation fails."""

    def load(self, identity):
        raise StorageError("load failed")

    def save(self, identity, progress):
        raise StorageError("save failed")

    def delete(self, identity):
        raise StorageError("delete failed")


class TestStoreSelection:
    """Authentication state picks the backend."""

    def test_anonymous_uses_local(self, local_store, cloud_store):
        tracker = ProgressTracker(local_store=local_store, cloud_store=cloud_store)
        assert tracker.store is local_store

    def test_authenticated_uses_cloud(self, local_store, cloud_store, alice):
        tracker = ProgressTracker(alice, local_store=local_store, cloud_store=cloud_store)
        assert tracker.store is cloud_store

    def test_authenticated_without_cloud_falls_back(self, local_store, alice, caplog):
        with caplog.at_level(logging.WARNING):
            tracker = ProgressTracker(alice, local_store=local_store)
        assert tracker.store is local_store
        assert "stays on this device" in caplog.text

    def test_authenticated_record_lands_in_cloud(self, local_store, cloud_store, alice):
        tracker = ProgressTracker(alice, local_store=local_store, cloud_store=cloud_store)
        tracker.mark_lesson_completed("intro", "a")
        assert cloud_store.load(alice).completed_lesson_count() == 1
        assert local_store.load(Identity.anonymous()) is None


class TestWholeRecord:
    """Loading, saving and resetting the record."""

    def test_first_access_creates_record(self, local_store):
        tracker = ProgressTracker(local_store=local_store)
        progress = tracker.get_progress()
        assert progress.module_progress == {}
        assert tracker.get_progress() is progress

    def test_new_record_uses_identity(self, local_store, cloud_store, alice):
        tracker = ProgressTracker(alice, local_store=local_store, cloud_store=cloud_store)
        progress = tracker.get_progress()
        assert progress.user_id == "alice-id"
        assert progress.settings.display_name == "Alice"

    def test_reload_from_store(self, local_store):
        ProgressTracker(local_store=local_store).mark_lesson_completed("intro", "a")
        assert ProgressTracker(local_store=local_store).is_lesson_completed("intro", "a")

    def test_save_stamps_last_activity(self, local_store):
        tracker = ProgressTracker(local_store=local_store)
        progress = tracker.get_progress()
        before = progress.last_activity_at
        tracker.save_progress(progress)
        assert progress.last_activity_at >= before

    def test_reset(self, local_store):
        tracker = ProgressTracker(local_store=local_store)
        tracker.mark_lesson_completed("intro", "a")
        tracker.reset_progress()
        assert not tracker.is_lesson_completed("intro", "a")
        assert local_store.load(Identity.anonymous()) is None

    def test_load_failure_gives_fresh_record(self, tmp_path, caplog):
        tracker = ProgressTracker(local_store=FailingStore(tmp_path / "x.json"))
        with caplog.at_level(logging.ERROR):
            progress = tracker.get_progress()
        assert progress.module_progress == {}
        assert "load failed" in caplog.text

    def test_save_failure_keeps_memory_state(self, tmp_path, caplog):
        tracker = ProgressTracker(local_store=FailingStore(tmp_path / "x.json"))
        with caplog.at_level(logging.ERROR):
            tracker.mark_lesson_completed("intro", "a")
        assert tracker.is_lesson_completed("intro", "a")
        assert "save failed" in caplog.text

    def test_reset_failure_is_logged(self, tmp_path, caplog):
        tracker = ProgressTracker(local_store=FailingStore(tmp_path / "x.json"))
        with caplog.at_level(logging.ERROR):
            tracker.reset_progress()
        assert "delete failed" in caplog.text


class TestLessons:
    """Lesson and section tracking."""

    def test_start_creates_module_and_lesson(self, local_store):
        tracker = ProgressTracker(local_store=local_store)
        tracker.mark_lesson_started("intro", "a")
        module_progress = tracker.get_progress().module_progress["intro"]
        assert module_progress.is_started
        assert module_progress.started_at is not None
        lesson_progress = tracker.get_lesson_progress("intro", "a")
        assert lesson_progress.is_started
        assert not lesson_progress.is_completed

    def test_start_is_idempotent(self, local_store):
        tracker = ProgressTracker(local_store=local_store)
        tracker.mark_lesson_started("intro", "a")
        started_at = tracker.get_lesson_progress("intro", "a").started_at
        tracker.mark_lesson_started("intro", "a")
        assert tracker.get_lesson_progress("intro", "a").started_at == started_at

    def test_complete_without_start(self, local_store):
        tracker = ProgressTracker(local_store=local_store)
        tracker.mark_lesson_completed("intro", "b")
        lesson_progress = tracker.get_lesson_progress("intro", "b")
        assert lesson_progress.is_started
        assert lesson_progress.is_completed
        assert lesson_progress.completed_at >= lesson_progress.started_at
        assert tracker.get_progress().module_progress["intro"].is_started

    def test_completed_at_never_moves_back(self, local_store):
        tracker = ProgressTracker(local_store=local_store)
        tracker.mark_lesson_completed("intro", "a")
        first = tracker.get_lesson_progress("intro", "a").completed_at
        tracker.mark_lesson_completed("intro", "a")
        assert tracker.get_lesson_progress("intro", "a").completed_at >= first

    def test_sections_recorded_once(self, local_store):
        tracker = ProgressTracker(local_store=local_store)
        tracker.mark_section_completed("intro", "a", "s1")
        tracker.mark_section_completed("intro", "a", "s1")
        tracker.mark_section_completed("intro", "a", "s2")
        assert tracker.get_lesson_progress("intro", "a").completed_sections == ["s1", "s2"]

    def test_completed_lesson_ids(self, local_store):
        tracker = ProgressTracker(local_store=local_store)
        tracker.mark_lesson_completed("intro", "a")
        tracker.mark_lesson_started("intro", "b")
        assert tracker.get_completed_lesson_ids("intro") == {"a"}
        assert tracker.get_completed_lesson_ids("missing") == set()

    def test_unknown_lesson(self, local_store):
        tracker = ProgressTracker(local_store=local_store)
        assert tracker.get_lesson_progress("intro", "a") is None
        assert not tracker.is_lesson_completed("intro", "a")


class TestLabs:
    """Lab attempts, hints and completion."""

    def test_attempts_counted(self, local_store):
        tracker = ProgressTracker(local_store=local_store)
        tracker.record_lab_attempt("middle", "d", "d-lab", "first try")
        tracker.record_lab_attempt("middle", "d", "d-lab", "second try")
        lab_progress = tracker.get_lesson_progress("middle", "d").lab_progress
        assert lab_progress.attempts_count == 2
        assert lab_progress.last_submission == "second try"
        assert not lab_progress.is_completed

    def test_completion_counts_as_attempt(self, local_store):
        tracker = ProgressTracker(local_store=local_store)
        tracker.record_lab_attempt("middle", "d", "d-lab", "try")
        tracker.mark_lab_completed("middle", "d", "d-lab", submission="final")
        lab_progress = tracker.get_lesson_progress("middle", "d").lab_progress
        assert lab_progress.is_completed
        assert lab_progress.completed_at is not None
        assert lab_progress.attempts_count == 2
        assert lab_progress.last_submission == "final"

    def test_lab_completion_implies_started(self, local_store):
        tracker = ProgressTracker(local_store=local_store)
        tracker.mark_lab_completed("middle", "d", "d-lab")
        assert tracker.get_lesson_progress("middle", "d").is_started
        assert tracker.get_progress().module_progress["middle"].is_started

    def test_hints_recorded_once(self, local_store):
        tracker = ProgressTracker(local_store=local_store)
        tracker.record_hint_used("middle", "d", "d-lab", "hint one")
        tracker.record_hint_used("middle", "d", "d-lab", "hint one")
        assert tracker.get_lesson_progress("middle", "d").lab_progress.hints_used == ["hint one"]


class TestQuizzes:
    """Quiz attempts and lesson completion."""

    def test_failed_attempt(self, local_store):
        tracker = ProgressTracker(local_store=local_store)
        tracker.save_quiz_result("middle", "c", "basics-quiz", 33, False)
        lesson_progress = tracker.get_lesson_progress("middle", "c")
        assert lesson_progress.quiz_progress.attempts_count == 1
        assert lesson_progress.quiz_progress.best_score == 33
        assert not lesson_progress.quiz_progress.is_passed
        assert not lesson_progress.is_completed

    def test_pass_completes_lesson(self, local_store):
        tracker = ProgressTracker(local_store=local_store)
        tracker.save_quiz_result("middle", "c", "basics-quiz", 100, True, {"q1": "b"})
        lesson_progress = tracker.get_lesson_progress("middle", "c")
        assert lesson_progress.is_completed
        assert lesson_progress.quiz_progress.is_passed
        assert lesson_progress.quiz_progress.last_answers == {"q1": "b"}

    def test_best_score_and_attempts_accumulate(self, local_store):
        tracker = ProgressTracker(local_store=local_store)
        tracker.save_quiz_result("middle", "c", "basics-quiz", 66, False)
        tracker.save_quiz_result("middle", "c", "basics-quiz", 100, True)
        tracker.save_quiz_result("middle", "c", "basics-quiz", 33, False)
        quiz_progress = tracker.get_lesson_progress("middle", "c").quiz_progress
        assert quiz_progress.attempts_count == 3
        assert quiz_progress.best_score == 100
        assert quiz_progress.is_passed

    def test_fail_then_pass(self, local_store):
        tracker = ProgressTracker(local_store=local_store)
        tracker.save_quiz_result("middle", "c", "basics-quiz", 60, False)
        tracker.save_quiz_result("middle", "c", "basics-quiz", 80, True)
        lesson_progress = tracker.get_lesson_progress("middle", "c")
        assert lesson_progress.quiz_progress.best_score == 80
        assert lesson_progress.quiz_progress.is_passed
        assert lesson_progress.quiz_progress.attempts_count == 2
        assert lesson_progress.is_completed

    def test_later_failure_keeps_completion(self, local_store):
        tracker = ProgressTracker(local_store=local_store)
        tracker.save_quiz_result("middle", "c", "basics-quiz", 100, True)
        tracker.save_quiz_result("middle", "c", "basics-quiz", 0, False)
        assert tracker.is_lesson_completed("middle", "c")


class TestModulesAndExtras:
    """Module completion, study time, achievements and settings."""

    def test_mark_module_completed(self, local_store):
        tracker = ProgressTracker(local_store=local_store)
        tracker.mark_module_completed("intro")
        module_progress = tracker.get_progress().module_progress["intro"]
        assert module_progress.is_started
        assert module_progress.is_completed
        assert module_progress.completed_at is not None

    def test_study_time(self, local_store):
        tracker = ProgressTracker(local_store=local_store)
        tracker.add_study_time("intro", 10)
        tracker.add_study_time("intro", 5)
        tracker.add_study_time("intro", 0)
        tracker.add_study_time("intro", -3)
        assert tracker.get_progress().module_progress["intro"].total_time_spent_minutes == 15

    def test_achievements_awarded_once(self, local_store):
        tracker = ProgressTracker(local_store=local_store)
        assert tracker.award_achievement(Achievement(id="first", title="First"))
        assert not tracker.award_achievement(Achievement(id="first", title="First again"))
        assert [a.title for a in tracker.get_progress().achievements] == ["First"]

    def test_update_settings(self, local_store):
        tracker = ProgressTracker(local_store=local_store)
        tracker.update_settings(UserSettings(display_name="Ada", theme="dark"))
        reloaded = ProgressTracker(local_store=local_store).get_progress()
        assert reloaded.settings.display_name == "Ada"
        assert reloaded.settings.theme == "dark"


class TestOverallPercentage:
    """Whole-number completion percentage."""

    def test_zero_when_nothing_done(self, local_store, catalog):
        assert ProgressTracker(local_store=local_store).get_overall_progress_percentage(catalog) == 0

    def test_floors(self, local_store, catalog):
        tracker = ProgressTracker(local_store=local_store)
        tracker.mark_lesson_completed("intro", "a")
        assert tracker.get_overall_progress_percentage(catalog) == 20
        tracker.mark_lesson_completed("intro", "b")
        tracker.mark_lesson_completed("middle", "c")
        tracker.mark_lesson_completed("middle", "d")
        tracker.mark_lesson_completed("final", "e")
        assert tracker.get_overall_progress_percentage(catalog) == 100

    def test_floor_with_three_lessons(self, local_store):
        small = ContentCatalog([Module(id="m", title="M", lessons=[
            Lesson(id=lid, module_id="m", title=lid, order=idx) for idx, lid in enumerate("xyz")
        ])])
        tracker = ProgressTracker(local_store=local_store)
        tracker.mark_lesson_completed("m", "x")
        assert tracker.get_overall_progress_percentage(small) == 33
        tracker.mark_lesson_completed("m", "y")
        assert tracker.get_overall_progress_percentage(small) == 66

    def test_unknown_lessons_ignored(self, local_store, catalog):
        tracker = ProgressTracker(local_store=local_store)
        tracker.mark_lesson_completed("intro", "removed-lesson")
        tracker.mark_lesson_completed("gone", "x")
        assert tracker.get_overall_progress_percentage(catalog) == 0

    def test_empty_catalog(self, local_store):
        assert ProgressTracker(local_store=local_store).get_overall_progress_percentage(ContentCatalog([])) == 0

    def test_three_of_ten(self, local_store):
        ten = ContentCatalog([Module(id="m", title="M", lessons=[
            Lesson(id=f"l{idx}", module_id="m", title=f"L{idx}", order=idx) for idx in range(10)
        ])])
        tracker = ProgressTracker(local_store=local_store)
        for idx in range(3):
            tracker.mark_lesson_completed("m", f"l{idx}")
        assert tracker.get_overall_progress_percentage(ten) == 30
