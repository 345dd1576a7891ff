"""
AI Learning Lab - Interactive Generative AI course

Streamlit application with lessons, quizzes and hands-on labs against
Azure OpenAI. Progress is kept per learner: on this device for anonymous
learners, in the shared progress database for signed-in learners.

The device store is a JSON file on the machine running Streamlit, so the
app assumes a local, single-learner run. On a shared deployment every
anonymous visitor reads and writes the same record; enable sign-in
(AILEARNING_AUTH_ENABLED) and AILEARNING_CLOUD_DB to keep learners apart.

Usage:
    streamlit run app.py
"""

import logging

import streamlit as st

from ailearning.classroom import (
    CloudProgressStore,
    LocalProgressStore,
    ModuleAvailability,
    Navigator,
    ProgressTracker,
    StorageError,
    get_catalog,
)
from ailearning.config import load_settings
from ailearning.llm import ChatCompletionClient, get_parameter
from ailearning.schemas import ContentType, Identity, QuestionType
from ailearning.viewer import (
    get_lab_css,
    grade_quiz,
    render_hints,
    render_lab_result,
    render_quiz_feedback,
)

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# Configuration
# -----------------------------------------------------------------------------

LOCAL_STORAGE_FILE = "local_storage.json"
VIEW_MODES = ["learn", "leaderboard", "settings"]

st.set_page_config(
    page_title="AI Learning Lab",
    page_icon="🤖",
    layout="wide",
    initial_sidebar_state="expanded",
)


# -----------------------------------------------------------------------------
# Session State Initialization
# -----------------------------------------------------------------------------

def current_identity(auth_enabled: bool) -> Identity:
    """Identity from Streamlit's login when authentication is enabled."""
    if not auth_enabled or not st.user.is_logged_in:
        return Identity.anonymous()
    email = st.user.get("email") or ""
    return Identity(
        is_authenticated=True,
        user_id=st.user.get("sub") or email,
        email=email,
        display_name=st.user.get("name") or "",
    )


def init_session_state():
    """Initialize session state variables."""
    if "settings" not in st.session_state:
        st.session_state.settings = load_settings()
    settings = st.session_state.settings

    if "catalog" not in st.session_state:
        st.session_state.catalog = get_catalog()

    if "cloud_store" not in st.session_state:
        st.session_state.cloud_store = None
        if settings.cloud_db_path:
            try:
                st.session_state.cloud_store = CloudProgressStore(settings.cloud_db_path)
            except StorageError as e:
                logger.error(f"Durable progress store unavailable, using local storage: {e}")

    identity = current_identity(settings.auth_enabled)
    if st.session_state.get("identity") != identity:
        logger.info(f"Progress session for {identity.email or 'anonymous learner'}")
        st.session_state.identity = identity
        st.session_state.progress = ProgressTracker(
            identity=identity,
            local_store=LocalProgressStore(settings.progress_dir / LOCAL_STORAGE_FILE),
            cloud_store=st.session_state.cloud_store,
        )
        st.session_state.navigator = Navigator(st.session_state.catalog, st.session_state.progress)
        st.session_state.current = None

    if "client" not in st.session_state:
        st.session_state.client = ChatCompletionClient(
            settings.azure_openai,
            timeout=settings.request_timeout,
        )

    if st.session_state.get("current") is None:
        lesson = st.session_state.navigator.get_recommended_lesson()
        st.session_state.current = (lesson.module_id, lesson.id) if lesson else None

    if "view_mode" not in st.session_state:
        st.session_state.view_mode = "learn"

    if "lab_results" not in st.session_state:
        st.session_state.lab_results = {}  # lab_id -> LabExecutionResult

    if "hints_revealed" not in st.session_state:
        st.session_state.hints_revealed = {}  # lab_id -> count

    if "quiz_results" not in st.session_state:
        st.session_state.quiz_results = {}  # quiz_id -> QuizResult


# -----------------------------------------------------------------------------
# Sidebar
# -----------------------------------------------------------------------------

def render_sidebar():
    """Render the sidebar with account, progress and course tree."""
    st.sidebar.title("🤖 AI Learning Lab")

    settings = st.session_state.settings
    identity = st.session_state.identity
    if settings.auth_enabled:
        if identity.is_authenticated:
            st.sidebar.caption(f"Signed in as {identity.display_name or identity.email}")
            if st.sidebar.button("Sign out", use_container_width=True):
                st.logout()
        elif st.sidebar.button("Sign in to sync progress", use_container_width=True):
            st.login()

    nav = st.session_state.navigator
    stats = nav.get_progress_summary()
    st.sidebar.markdown(f"""
    **Progress:** {stats['completed']}/{stats['total_lessons']} lessons ({stats['completion_percent']}%)
    """)
    st.sidebar.progress(stats['completion_percent'] / 100)

    st.sidebar.divider()

    view_mode = st.sidebar.radio(
        "Select view",
        ["Learn", "Leaderboard", "Settings"],
        index=VIEW_MODES.index(st.session_state.view_mode),
        horizontal=True,
        label_visibility="collapsed",
    )
    st.session_state.view_mode = view_mode.lower()

    if st.session_state.view_mode == "learn":
        render_course_tree()


def render_course_tree():
    """Render modules and lessons with status indicators."""
    nav = st.session_state.navigator

    st.sidebar.divider()
    st.sidebar.subheader("Course")

    current_module = st.session_state.current[0] if st.session_state.current else None
    for nav_module in nav.get_navigation_tree():
        module = nav_module.module
        locked = nav_module.availability == ModuleAvailability.LOCKED
        label = f"**{module.title}** ({nav_module.completed_count}/{nav_module.total_count})"
        if locked:
            label = f"🔒 {label}"

        with st.sidebar.expander(label, expanded=module.id == current_module):
            if locked:
                st.caption("Complete first: " + ", ".join(nav_module.missing_prerequisites))
            for nav_lesson in nav_module.lessons:
                lesson = nav_lesson.lesson
                indicator = nav.get_status_indicator(module.id, lesson.id)
                if st.button(
                    f"{indicator} {lesson.title}",
                    key=f"lesson_{module.id}_{lesson.id}",
                    disabled=locked,
                    use_container_width=True,
                ):
                    select_lesson(module.id, lesson.id)


def select_lesson(module_id: str, lesson_id: str):
    """Select a lesson and update state."""
    if st.session_state.navigator.start_lesson(module_id, lesson_id):
        st.session_state.current = (module_id, lesson_id)
    st.rerun()


# -----------------------------------------------------------------------------
# Main Content: Lesson View
# -----------------------------------------------------------------------------

def render_lesson_view():
    """Render the current lesson with its lab and quiz."""
    if not st.session_state.current:
        st.info("Select a lesson from the sidebar to begin.")
        return

    module_id, lesson_id = st.session_state.current
    lesson = st.session_state.catalog.get_lesson(module_id, lesson_id)
    if not lesson:
        st.error(f"Lesson not found: {module_id}/{lesson_id}")
        return

    render_navigation_bar(module_id, lesson_id)

    st.title(lesson.title)
    if lesson.description:
        st.caption(f"{lesson.description} · ~{lesson.estimated_minutes} min")

    for section in lesson.sections:
        if section.type in (ContentType.TEXT, ContentType.CODE, ContentType.DIAGRAM):
            st.markdown(section.content)
        else:
            st.info(f"{section.title}: {section.type.value} content is not supported here.")

    if lesson.lab:
        render_lab_section(module_id, lesson_id, lesson.lab)

    if lesson.quiz:
        render_quiz_section(module_id, lesson_id, lesson.quiz)

    render_completion_section(module_id, lesson_id)


def render_navigation_bar(module_id: str, lesson_id: str):
    """Render position within the module and a next button."""
    nav = st.session_state.navigator
    pos, total = nav.get_lesson_position(module_id, lesson_id)
    next_lesson = nav.get_next_lesson(module_id, lesson_id)

    col1, col2 = st.columns([3, 1])
    with col1:
        module = st.session_state.catalog.get_module(module_id)
        st.markdown(f"{module.title} · Lesson {pos} of {total}")
    with col2:
        if next_lesson and st.button("Next →", use_container_width=True):
            select_lesson(next_lesson.module_id, next_lesson.id)

    st.divider()


def render_lab_section(module_id: str, lesson_id: str, lab):
    """Render lab instructions, the request form and the latest result."""
    client = st.session_state.client
    progress = st.session_state.progress

    st.divider()
    st.subheader(f"🧪 {lab.title}")
    st.markdown(get_lab_css(), unsafe_allow_html=True)
    if lab.instructions:
        st.markdown(lab.instructions)

    if not client.is_configured:
        st.warning("Azure OpenAI is not configured. Open Settings to see which values are missing.")

    with st.expander("System prompt"):
        st.code(lab.system_prompt or "(none)", language=None)

    user_message = st.text_area("User message", value=lab.starter_code, key=f"lab_input_{lab.id}", height=150)

    col1, col2 = st.columns(2)
    with col1:
        temperature = st.slider(
            "Temperature", 0.0, 2.0,
            value=float(get_parameter(lab.parameters, "temperature")),
            step=0.1,
            key=f"lab_temperature_{lab.id}",
        )
    with col2:
        max_tokens = st.number_input(
            "Max tokens", min_value=1, max_value=4000,
            value=int(get_parameter(lab.parameters, "max_tokens")),
            key=f"lab_max_tokens_{lab.id}",
        )

    if st.button("Send Request", type="primary", key=f"lab_send_{lab.id}"):
        with st.spinner("Waiting for the model..."):
            result = client.run_lab(
                lab,
                user_message,
                overrides={"temperature": temperature, "max_tokens": max_tokens},
            )
        if result.is_success:
            progress.mark_lab_completed(module_id, lesson_id, lab.id, submission=user_message)
        else:
            progress.record_lab_attempt(module_id, lesson_id, lab.id, submission=user_message)
        st.session_state.lab_results[lab.id] = result

    result = st.session_state.lab_results.get(lab.id)
    if result is not None:
        st.markdown(render_lab_result(result), unsafe_allow_html=True)

    if lab.hints:
        revealed = st.session_state.hints_revealed.get(lab.id, 0)
        if revealed:
            st.markdown(render_hints(lab, revealed), unsafe_allow_html=True)
        if revealed < len(lab.hints) and st.button("Show a hint", key=f"lab_hint_{lab.id}"):
            hint = lab.hints[revealed]
            progress.record_hint_used(module_id, lesson_id, lab.id, hint.content)
            st.session_state.hints_revealed[lab.id] = revealed + 1
            st.rerun()


def render_quiz_section(module_id: str, lesson_id: str, quiz):
    """Render quiz questions, grade on submit and record the attempt."""
    st.divider()
    st.subheader(quiz.title or "Quiz")

    quiz_progress = None
    lesson_progress = st.session_state.progress.get_lesson_progress(module_id, lesson_id)
    if lesson_progress:
        quiz_progress = lesson_progress.quiz_progress
    if quiz_progress:
        st.caption(
            f"Best score {quiz_progress.best_score}% over {quiz_progress.attempts_count} attempt(s)"
            + (" · passed" if quiz_progress.is_passed else "")
        )

    with st.form(key=f"quiz_{quiz.id}"):
        answers = {}
        for idx, question in enumerate(quiz.questions):
            label = f"**{idx + 1}. {question.question}**"
            option_text = {option.id: option.text for option in question.options}
            key = f"quiz_{quiz.id}_{question.id}"
            if question.type == QuestionType.MULTIPLE_CHOICE:
                answers[question.id] = st.multiselect(
                    label, list(option_text), format_func=option_text.get, key=key,
                )
            elif question.type == QuestionType.FILL_IN_BLANK:
                answers[question.id] = st.text_input(label, key=key)
            else:
                answers[question.id] = st.radio(
                    label, list(option_text), format_func=option_text.get, index=None, key=key,
                )
        submitted = st.form_submit_button("Submit answers")

    if submitted:
        result = grade_quiz(quiz, {qid: answer for qid, answer in answers.items() if answer})
        st.session_state.progress.save_quiz_result(
            module_id, lesson_id, quiz.id, result.score, result.passed, result.answers_for_storage(),
        )
        st.session_state.quiz_results[quiz.id] = result

    result = st.session_state.quiz_results.get(quiz.id)
    if result is not None:
        st.markdown(render_quiz_feedback(result, quiz.passing_score), unsafe_allow_html=True)


def render_completion_section(module_id: str, lesson_id: str):
    """Render lesson completion section."""
    progress = st.session_state.progress
    nav = st.session_state.navigator

    st.divider()

    if progress.is_lesson_completed(module_id, lesson_id):
        st.success("Lesson completed!")
    elif st.button("Mark lesson as complete", type="primary", use_container_width=True):
        next_lesson = nav.complete_lesson(module_id, lesson_id)
        if next_lesson:
            nav.start_lesson(next_lesson.module_id, next_lesson.id)
            st.session_state.current = (next_lesson.module_id, next_lesson.id)
        st.rerun()


# -----------------------------------------------------------------------------
# Leaderboard View
# -----------------------------------------------------------------------------

def render_leaderboard_view():
    """Render the leaderboard of signed-in learners."""
    st.title("🏆 Leaderboard")

    cloud_store = st.session_state.cloud_store
    if cloud_store is None:
        st.info("The leaderboard needs a shared progress database (AILEARNING_CLOUD_DB).")
        return

    entries = cloud_store.get_leaderboard(top=10)
    if not entries:
        st.info("No signed-in learners yet.")
        return

    st.table([
        {
            "Rank": rank,
            "Learner": entry.display_name or entry.email,
            "Lessons completed": entry.completed_lessons,
            "Last active": entry.last_activity_at.strftime("%Y-%m-%d %H:%M"),
        }
        for rank, entry in enumerate(entries, start=1)
    ])


# -----------------------------------------------------------------------------
# Settings View
# -----------------------------------------------------------------------------

def render_settings_view():
    """Render configuration status and learner preferences."""
    st.title("⚙️ Settings")

    config = st.session_state.settings.azure_openai
    st.subheader("Azure OpenAI")
    st.markdown(f"""
    - **Endpoint:** {config.endpoint or "_not set_ (AZURE_OPENAI_ENDPOINT)"}
    - **Deployment:** {config.deployment_name or "_not set_ (AZURE_OPENAI_DEPLOYMENT_NAME)"}
    - **API key:** {"set" if config.api_key else "_not set_ (AZURE_OPENAI_API_KEY)"}
    - **API version:** {config.api_version}
    """)

    progress = st.session_state.progress
    user_settings = progress.get_progress().settings

    st.subheader("Profile")
    with st.form(key="profile"):
        display_name = st.text_input("Display name", value=user_settings.display_name)
        themes = ["auto", "light", "dark"]
        theme = st.selectbox(
            "Theme", themes,
            index=themes.index(user_settings.theme) if user_settings.theme in themes else 0,
        )
        if st.form_submit_button("Save"):
            progress.update_settings(
                user_settings.model_copy(update={"display_name": display_name, "theme": theme})
            )
            st.success("Settings saved.")

    st.subheader("Progress")
    st.caption(f"Stored in: {progress.store.name} storage")
    if st.button("Reset all progress"):
        progress.reset_progress()
        st.session_state.current = None
        st.session_state.lab_results = {}
        st.session_state.hints_revealed = {}
        st.session_state.quiz_results = {}
        st.rerun()


# -----------------------------------------------------------------------------
# Main App
# -----------------------------------------------------------------------------

def main():
    """Main application entry point."""
    init_session_state()
    render_sidebar()

    if st.session_state.view_mode == "learn":
        render_lesson_view()
    elif st.session_state.view_mode == "leaderboard":
        render_leaderboard_view()
    elif st.session_state.view_mode == "settings":
        render_settings_view()


if __name__ == "__main__":
    main()
