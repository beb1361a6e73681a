import streamlit as st

from config import load_settings
from controller import StudyController, Tab
from focus_timer import PHASE_LABELS, FocusTimer
from gateway import AIGateway
from intake import ACCEPTED_EXTENSIONS, ContentIntake, UnsupportedFileError
from logger import setup_logger
from models import MODEL_MAPPING, get_model
from roadmap import priority_badge, step_type_icon
from schemas import ExamSimulation, RoadmapResponse
from session_store import SessionStore

logger = setup_logger(__name__)

settings = load_settings()

st.set_page_config(
    page_title="Roadmap Architect",
    page_icon="🌸",
    layout="centered",
    initial_sidebar_state="expanded",
)

DARK_THEME_CSS = """
<style>
.stApp, [data-testid="stSidebar"], [data-testid="stHeader"] {
    background-color: #111827;
    color: #F3F4F6;
}
.stApp p, .stApp label, .stApp h1, .stApp h2, .stApp h3, .stApp h4, .stApp li {
    color: #F3F4F6;
}
</style>
"""


@st.cache_resource
def get_session_store() -> SessionStore:
    """The single session store shared by the whole process."""
    return SessionStore.from_data_dir(settings.data_dir)


def _build_gateway(model_alias: str) -> AIGateway:
    return AIGateway(get_model(model_alias, timeout=settings.request_timeout))


def initialize_session_state():
    """Initialize session state variables"""
    if "model_alias" not in st.session_state:
        if settings.model_alias in MODEL_MAPPING:
            st.session_state.model_alias = settings.model_alias
        else:
            logger.warning("Unknown model %s, using default", settings.model_alias)
            st.session_state.model_alias = next(iter(MODEL_MAPPING))
    if "controller" not in st.session_state:
        try:
            gateway = _build_gateway(st.session_state.model_alias)
        except KeyError as e:
            st.error(f"Missing API key: set the {e} environment variable.")
            st.stop()
        st.session_state.controller = StudyController(gateway, get_session_store())
    if "intake" not in st.session_state:
        st.session_state.intake = ContentIntake(max_bytes=settings.max_upload_bytes)
    if "focus_timer" not in st.session_state:
        st.session_state.focus_timer = FocusTimer()
    if "upload_error" not in st.session_state:
        st.session_state.upload_error = None


def handle_model_change():
    controller: StudyController = st.session_state.controller
    alias = st.session_state.model_select
    try:
        controller.gateway = _build_gateway(alias)
    except KeyError as e:
        logger.error("Cannot switch to %s, missing API key %s", alias, e)
        st.session_state.model_select = st.session_state.model_alias
        st.toast(f"Missing API key: set the {e} environment variable.", icon="⚠️")
        return
    st.session_state.model_alias = alias
    logger.info("Switched model to %s", alias)


def handle_file_change(widget_key: str):
    intake: ContentIntake = st.session_state.intake
    uploaded = st.session_state.get(widget_key)
    st.session_state.upload_error = None
    if uploaded is None:
        intake.clear_file()
        return
    try:
        intake.set_file(uploaded)
    except UnsupportedFileError as e:
        logger.warning("Rejected upload: %s", e)
        st.session_state.upload_error = str(e)


def handle_step_toggle(step: int):
    st.session_state.controller.toggle_step(step)


@st.dialog("Sign in")
def auth_dialog(controller: StudyController):
    with st.form("auth_form"):
        name = st.text_input("Name")
        email = st.text_input("Email")
        if st.form_submit_button("Sign in", type="primary"):
            if name.strip() and email.strip():
                controller.login(email, name)
                st.rerun()
            else:
                st.warning("Please enter your name and email.")


def render_sidebar(controller: StudyController, session: SessionStore):
    with st.sidebar:
        user = controller.user
        if user is not None:
            st.markdown(
                f'<img src="{user.avatar}" width="64" alt="avatar"/>',
                unsafe_allow_html=True,
            )
            st.write(f"**{user.name}**")
            st.caption(user.email)
            if st.button("Log out", disabled=controller.is_busy):
                controller.logout()
                st.rerun()
        elif st.button("👤 Sign in", type="primary"):
            controller.open_auth_prompt()
            st.rerun()

        theme_label = "☀️ Light mode" if session.is_dark else "🌙 Dark mode"
        if st.button(theme_label):
            session.toggle_theme()
            st.rerun()

        st.header("⚙️ Settings")
        aliases = list(MODEL_MAPPING.keys())
        st.selectbox(
            "Model",
            aliases,
            index=aliases.index(st.session_state.model_alias),
            key="model_select",
            on_change=handle_model_change,
            help="Model used to build the roadmap and the mock exam",
            disabled=controller.is_busy,
        )


def render_intake(controller: StudyController, intake: ContentIntake):
    st.header("Ready to plan your revision?")
    st.markdown("Upload your course and let the AI lay out your path to success.")

    col1, col2 = st.columns(2)
    with col1:
        # Streamlit drops widget state while the roadmap is shown
        if "course_text" not in st.session_state:
            st.session_state.course_text = intake.text
        text = st.text_area(
            "✍️ Course text",
            key="course_text",
            placeholder="Paste your course content here...",
            height=220,
        )
        intake.set_text(text)

    with col2:
        widget_key = f"course_file_{intake.revision}"
        st.file_uploader(
            "📄 Document",
            type=ACCEPTED_EXTENSIONS,
            key=widget_key,
            on_change=handle_file_change,
            args=(widget_key,),
            help=f"A PDF or a photo, max {settings.max_upload_mb}MB",
        )
        if intake.file is not None:
            icon = "🖼️" if intake.file.is_image else "📄"
            st.write(f"{icon} **{intake.file.name}**")
            if intake.file.exceeds_soft_limit:
                st.warning(
                    f"This file is larger than {settings.max_upload_mb}MB, "
                    "the analysis may fail."
                )
            if st.button("Remove"):
                intake.clear_file()
                st.rerun()
        if st.session_state.upload_error:
            st.error(st.session_state.upload_error)

    if st.button(
        "Launch the Architect 🌸",
        type="primary",
        use_container_width=True,
        disabled=controller.is_busy or not intake.can_submit(),
    ):
        with st.spinner("Analyzing your course..."):
            controller.submit(intake)
        st.rerun()

    if controller.error:
        st.error(controller.error)


def render_tabs(controller: StudyController):
    col1, col2 = st.columns(2)
    with col1:
        if st.button(
            "My Roadmap",
            use_container_width=True,
            type="primary" if controller.active_tab == Tab.ROADMAP else "secondary",
            disabled=controller.is_busy,
        ):
            controller.select_tab(Tab.ROADMAP)
            st.rerun()
    with col2:
        if st.button(
            "Mock Exam",
            use_container_width=True,
            type="primary" if controller.active_tab == Tab.EXAM else "secondary",
            disabled=controller.is_busy,
        ):
            with st.spinner("Writing your mock exam..."):
                controller.select_tab(Tab.EXAM)
            st.rerun()


def render_roadmap(controller: StudyController, roadmap: RoadmapResponse):
    st.caption(priority_badge(roadmap.priority))
    st.title(roadmap.exam_name)

    progress = controller.progress
    st.progress(progress / 100, text=f"Progress: {progress}%")

    st.info(f"💡 **Strategic advice**\n\n*{roadmap.expert_advice}*")

    for step in roadmap.planning:
        with st.container(border=True):
            st.checkbox(
                f"{step_type_icon(step.type)} **Step {step.step}: {step.title}**",
                value=controller.is_step_completed(step.step),
                key=f"step_{id(roadmap)}_{step.step}",
                on_change=handle_step_toggle,
                args=(step.step,),
            )
            st.write(step.description)
            st.caption(f"{step.type} · ⏱️ {step.estimated_duration}")


def render_exam(exam: ExamSimulation):
    st.title(exam.title)
    for question in exam.questions:
        with st.container(border=True):
            st.markdown(f"#### {question.id}. {question.question}")
            if question.is_multiple_choice:
                for option in question.options:
                    st.markdown(f"- {option}")
            with st.expander("Show answer"):
                st.success(f"**Answer:** {question.answer}")
                st.write(question.explanation)


@st.fragment(run_every=1)
def render_focus_timer():
    timer: FocusTimer = st.session_state.focus_timer
    if timer.poll():
        st.toast(f"{PHASE_LABELS[timer.phase]} finished!", icon="⏰")
        st.balloons()

    st.subheader(f"⏰ {PHASE_LABELS[timer.phase]}")
    st.metric("Time left", timer.format_remaining())
    st.caption(f"Focus sessions done: {timer.completed_focus_sessions}")

    col1, col2, col3 = st.columns(3)
    with col1:
        if timer.is_running:
            if st.button("Pause", key="timer_pause"):
                timer.pause()
                st.rerun(scope="fragment")
        elif st.button("Start", key="timer_start"):
            timer.start()
            st.rerun(scope="fragment")
    with col2:
        if st.button("Reset", key="timer_reset"):
            timer.reset()
            st.rerun(scope="fragment")
    with col3:
        if st.button("Next", key="timer_next"):
            timer.next_phase()
            st.rerun(scope="fragment")


def main():
    """Main Streamlit app"""
    initialize_session_state()
    session = get_session_store()
    controller: StudyController = st.session_state.controller
    intake: ContentIntake = st.session_state.intake

    if session.is_dark:
        st.markdown(DARK_THEME_CSS, unsafe_allow_html=True)

    render_sidebar(controller, session)

    if controller.auth_prompt_open:
        controller.close_auth_prompt()
        auth_dialog(controller)

    if controller.roadmap is None:
        render_intake(controller, intake)
        return

    render_tabs(controller)
    if controller.error:
        st.error(controller.error)

    if controller.active_tab == Tab.EXAM and controller.exam is not None:
        render_exam(controller.exam)
    else:
        render_roadmap(controller, controller.roadmap)
        with st.sidebar:
            render_focus_timer()

    if st.button("⬅️ New analysis", disabled=controller.is_busy):
        controller.discard()
        st.rerun()


if __name__ == "__main__":
    main()
