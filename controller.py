"""
Study session controller.

Owns the transient state of the app (roadmap, mock exam, completed steps,
error, active tab) and moves between the states below. It knows nothing of
Streamlit so every transition can be driven directly.

    IDLE --submit--> GENERATING --ok--> ROADMAP_READY <--tab--> EXAM_READY
                          |                   |                     ^
                          +--fail--> IDLE     +--> EXAM_GENERATING -+
"""

from enum import Enum

from gateway import AIGateway, GatewayError
from intake import ContentIntake
from logger import setup_logger
from roadmap import CompletedSteps, compute_progress
from schemas import ExamSimulation, RoadmapResponse, User
from session_store import SessionStore

logger = setup_logger(__name__)

ANALYSIS_FAILED_MESSAGE = "An error occurred during the analysis."
EXAM_FAILED_MESSAGE = "Unable to generate the mock exam."


class AppState(str, Enum):
    IDLE = "IDLE"
    GENERATING = "GENERATING"
    ROADMAP_READY = "ROADMAP_READY"
    EXAM_GENERATING = "EXAM_GENERATING"
    EXAM_READY = "EXAM_READY"


class Tab(str, Enum):
    ROADMAP = "roadmap"
    EXAM = "exam"


class StudyController:
    """State machine behind the study planner UI."""

    def __init__(self, gateway: AIGateway, session: SessionStore):
        self.gateway = gateway
        self.session = session
        self.state = AppState.IDLE
        self.roadmap: RoadmapResponse | None = None
        self.exam: ExamSimulation | None = None
        self.completed = CompletedSteps()
        self.error: str | None = None
        self.active_tab = Tab.ROADMAP
        self.auth_prompt_open = False
        # Bumped whenever the current roadmap is abandoned; results carrying
        # an older epoch are dropped.
        self._epoch = 0

    @property
    def user(self) -> User | None:
        return self.session.user

    @property
    def is_busy(self) -> bool:
        return self.state in (AppState.GENERATING, AppState.EXAM_GENERATING)

    @property
    def progress(self) -> int:
        return compute_progress(self.roadmap, self.completed)

    def _reset_plan(self) -> None:
        self.roadmap = None
        self.exam = None
        self.completed.clear()
        self.active_tab = Tab.ROADMAP

    def _roadmap_state(self) -> AppState:
        if self.roadmap is None:
            return AppState.IDLE
        if self.active_tab == Tab.EXAM and self.exam is not None:
            return AppState.EXAM_READY
        return AppState.ROADMAP_READY

    # Authentication

    def open_auth_prompt(self) -> None:
        self.auth_prompt_open = True

    def close_auth_prompt(self) -> None:
        self.auth_prompt_open = False

    def login(self, email: str, name: str) -> User:
        user = self.session.login(email, name)
        self.auth_prompt_open = False
        return user

    def logout(self) -> None:
        self.session.logout()
        self.discard()

    # Roadmap

    def submit(self, intake: ContentIntake) -> bool:
        """
        Generate a roadmap from the pending intake.

        Returns:
            bool: True if a new roadmap is now shown.
        """
        if not self.session.is_authenticated:
            logger.info("Submit without a user, asking to sign in")
            self.open_auth_prompt()
            return False
        if self.is_busy or not intake.can_submit():
            return False

        self._epoch += 1
        epoch = self._epoch
        self.error = None
        self.state = AppState.GENERATING

        text = intake.text
        file = intake.take_file()
        try:
            roadmap = self.gateway.analyze_course_content(text, file)
        except GatewayError as e:
            if epoch != self._epoch:
                logger.info("Ignoring failure of an abandoned analysis")
                return False
            logger.warning("Analysis failed: %s", e.message)
            self._reset_plan()
            self.error = ANALYSIS_FAILED_MESSAGE
            self.state = AppState.IDLE
            return False

        if epoch != self._epoch:
            logger.info("Dropping roadmap of an abandoned analysis")
            return False

        self.roadmap = roadmap
        self.exam = None
        self.completed.clear()
        self.active_tab = Tab.ROADMAP
        self.state = AppState.ROADMAP_READY
        return True

    def toggle_step(self, step: int) -> bool:
        if self.roadmap is None or step not in self.roadmap.step_numbers:
            logger.warning("Toggle of unknown step %s ignored", step)
            return False
        return self.completed.toggle(step)

    def is_step_completed(self, step: int) -> bool:
        return self.completed.is_completed(step)

    def discard(self) -> None:
        """Drop the roadmap and everything derived from it."""
        self._epoch += 1
        self._reset_plan()
        self.error = None
        self.state = AppState.IDLE

    # Exam

    def select_tab(self, tab: Tab | str) -> bool:
        """
        Switch tabs. Opening the exam tab generates the exam the first time.

        Returns:
            bool: True if the requested tab is now active.
        """
        tab = Tab(tab)
        if self.roadmap is None or self.is_busy:
            return False
        if tab == Tab.ROADMAP or self.exam is not None:
            self.active_tab = tab
            self.state = self._roadmap_state()
            return True
        return self.request_exam()

    def request_exam(self) -> bool:
        if self.roadmap is None or self.is_busy:
            return False

        epoch = self._epoch
        self.error = None
        self.state = AppState.EXAM_GENERATING
        try:
            exam = self.gateway.generate_exam_simulation(self.roadmap)
        except GatewayError as e:
            if epoch != self._epoch:
                logger.info("Ignoring failure of an abandoned exam request")
                return False
            logger.warning("Exam generation failed: %s", e.message)
            self.error = EXAM_FAILED_MESSAGE
            self.state = self._roadmap_state()
            return False

        if epoch != self._epoch:
            logger.info("Dropping exam of an abandoned roadmap")
            return False

        self.exam = exam
        self.active_tab = Tab.EXAM
        self.state = AppState.EXAM_READY
        return True
