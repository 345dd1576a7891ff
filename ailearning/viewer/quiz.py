"""
Quiz renderer - Grading and feedback display for lesson quizzes.

Provides:
- Answer grading into a whole-number percentage and pass flag
- Per-question feedback with explanations
- Score display
"""

import html
from dataclasses import dataclass, field
from typing import Mapping, Optional, Union

from ailearning.schemas import QuestionType, Quiz, QuizQuestion

Answer = Union[str, list[str]]


@dataclass
class QuestionResult:
    """Grading outcome for one question."""
    question: QuizQuestion
    selected: list[str]
    is_correct: bool
    points_earned: int


@dataclass
class QuizResult:
    """Grading outcome for a whole quiz attempt."""
    quiz_id: str
    score: int                  # 0-100, rounded down
    passed: bool
    points_earned: int
    total_points: int
    questions: list[QuestionResult] = field(default_factory=list)

    @property
    def correct_count(self) -> int:
        return sum(1 for result in self.questions if result.is_correct)

    def answers_for_storage(self) -> dict[str, str]:
        """Flatten answers to question_id -> comma-joined option ids."""
        return {result.question.id: ",".join(result.selected) for result in self.questions}


def _as_list(answer: Optional[Answer]) -> list[str]:
    if answer is None:
        return []
    if isinstance(answer, str):
        return [answer] if answer else []
    return [item for item in answer if item]


def is_answer_correct(question: QuizQuestion, answer: Optional[Answer]) -> bool:
    """
    Check one answer.

    Choice questions need exactly the set of correct option ids. Fill-in-blank
    questions accept the text of any correct option, ignoring case and
    surrounding whitespace.
    """
    selected = _as_list(answer)
    if question.type == QuestionType.FILL_IN_BLANK:
        accepted = {option.text.strip().lower() for option in question.options if option.is_correct}
        return len(selected) == 1 and selected[0].strip().lower() in accepted

    correct = question.correct_option_ids
    return bool(correct) and set(selected) == correct


def grade_quiz(quiz: Quiz, answers: Mapping[str, Answer]) -> QuizResult:
    """
    Grade a quiz attempt.

    Args:
        quiz: Quiz definition
        answers: question_id -> selected option id(s) or typed text

    Returns:
        QuizResult; a quiz worth no points scores 100
    """
    results = []
    earned = 0
    for question in quiz.questions:
        answer = answers.get(question.id)
        correct = is_answer_correct(question, answer)
        points = question.points if correct else 0
        earned += points
        results.append(QuestionResult(
            question=question,
            selected=_as_list(answer),
            is_correct=correct,
            points_earned=points,
        ))

    total = quiz.total_points
    score = earned * 100 // total if total else 100
    return QuizResult(
        quiz_id=quiz.id,
        score=score,
        passed=score >= quiz.passing_score,
        points_earned=earned,
        total_points=total,
        questions=results,
    )


# -----------------------------------------------------------------------------
# HTML
# -----------------------------------------------------------------------------

def get_quiz_css() -> str:
    """Get CSS styles for quiz display."""
    return """
    <style>
    .quiz-feedback {
        border-radius: 8px;
        padding: 0.8em 1em;
        margin: 0.6em 0;
        line-height: 1.5;
    }
    .quiz-feedback.correct {
        background: #e8f5e9;
        border-left: 4px solid #388E3C;
    }
    .quiz-feedback.incorrect {
        background: #ffebee;
        border-left: 4px solid #D32F2F;
    }
    .quiz-feedback-title {
        font-weight: 600;
        margin-bottom: 0.3em;
    }
    .quiz-explanation {
        color: #555;
        font-size: 0.95em;
    }
    .quiz-score-box {
        border-radius: 8px;
        padding: 1em;
        margin-top: 1.5em;
        text-align: center;
    }
    .quiz-score-box.passed {
        background: #e8f5e9;
    }
    .quiz-score-box.failed {
        background: #fff3e0;
    }
    .quiz-score-value {
        font-size: 2em;
        font-weight: 700;
        color: #333;
    }
    .quiz-score-label {
        color: #666;
        font-size: 0.9em;
    }
    </style>
    """


def render_question_feedback(result: QuestionResult) -> str:
    """Render right/wrong feedback plus the explanation for one question."""
    state = "correct" if result.is_correct else "incorrect"
    parts = [f'<div class="quiz-feedback {state}">']
    parts.append(f'<div class="quiz-feedback-title">{"Correct" if result.is_correct else "Not quite"}: '
                 f'{html.escape(result.question.question)}</div>')

    if not result.is_correct:
        correct_texts = [option.text for option in result.question.options if option.is_correct]
        if correct_texts:
            parts.append(f'<div>Answer: {html.escape(", ".join(correct_texts))}</div>')

    if result.question.explanation:
        parts.append(f'<div class="quiz-explanation">{html.escape(result.question.explanation)}</div>')

    parts.append('</div>')
    return ''.join(parts)


def render_quiz_score(result: QuizResult, passing_score: int) -> str:
    """Render quiz score display."""
    state = "passed" if result.passed else "failed"
    verdict = "Passed" if result.passed else f"{passing_score}% needed to pass"
    return f"""
    <div class="quiz-score-box {state}">
        <div class="quiz-score-value">{result.score}%</div>
        <div class="quiz-score-label">{result.correct_count} of {len(result.questions)} correct &middot; {verdict}</div>
    </div>
    """


def render_quiz_feedback(result: QuizResult, passing_score: int) -> str:
    """Render every question's feedback followed by the score."""
    parts = [get_quiz_css()]
    for question_result in result.questions:
        parts.append(render_question_feedback(question_result))
    parts.append(render_quiz_score(result, passing_score))
    return ''.join(parts)
