"""
AI Learning Lab Viewer - HTML fragments for quizzes and lab results.
"""

from .quiz import (
    QuestionResult,
    QuizResult,
    grade_quiz,
    is_answer_correct,
    get_quiz_css,
    render_question_feedback,
    render_quiz_score,
    render_quiz_feedback,
)

from .lab import (
    get_lab_css,
    format_token_usage,
    format_execution_time,
    render_lab_result,
    render_hints,
)

__all__ = [
    # Quiz
    "QuestionResult",
    "QuizResult",
    "grade_quiz",
    "is_answer_correct",
    "get_quiz_css",
    "render_question_feedback",
    "render_quiz_score",
    "render_quiz_feedback",
    # Lab
    "get_lab_css",
    "format_token_usage",
    "format_execution_time",
    "render_lab_result",
    "render_hints",
]
