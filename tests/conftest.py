import pytest

from gateway import ExamGenerationError, AnalysisError
from intake import ContentIntake
from models import ModelProvider
from schemas import (
    ExamQuestion,
    ExamSimulation,
    Priority,
    RoadmapResponse,
    RoadmapStep,
)
from session_store import SessionStore


class FakeModel(ModelProvider):
    """Returns canned replies and records every request."""

    model_name = "fake-model"

    def __init__(self, replies=None, error: Exception | None = None):
        self.replies = list(replies or [])
        self.error = error
        self.calls = []

    def generate_with_schema(
        self, prompt, schema, system_prompt=None, attachment=None
    ):
        self.calls.append(
            {
                "prompt": prompt,
                "schema": schema,
                "system_prompt": system_prompt,
                "attachment": attachment,
            }
        )
        if self.error is not None:
            raise self.error
        return self.replies.pop(0)


class FakeGateway:
    """Stands in for AIGateway in controller tests."""

    def __init__(self, roadmap=None, exam=None, analysis_error=None, exam_error=None):
        self.roadmap = roadmap
        self.exam = exam
        self.analysis_error = analysis_error
        self.exam_error = exam_error
        self.analyze_calls = []
        self.exam_calls = []
        self.on_analyze = None
        self.on_exam = None

    def analyze_course_content(self, text, file=None):
        self.analyze_calls.append((text, file))
        if self.on_analyze is not None:
            self.on_analyze()
        if self.analysis_error is not None:
            raise self.analysis_error
        return self.roadmap

    def generate_exam_simulation(self, roadmap):
        self.exam_calls.append(roadmap)
        if self.on_exam is not None:
            self.on_exam()
        if self.exam_error is not None:
            raise self.exam_error
        return self.exam


def build_roadmap(n_steps: int = 3, exam_name: str = "Plant Biology") -> RoadmapResponse:
    return RoadmapResponse(
        exam_name=exam_name,
        priority=Priority.HIGH,
        planning=[
            RoadmapStep(
                step=i,
                type="Theory" if i % 2 else "Practice",
                title=f"Step {i}",
                description=f"Work on part {i}",
                estimated_duration="1h",
            )
            for i in range(1, n_steps + 1)
        ],
        expert_advice="Start early.",
    )


def build_exam(n_questions: int = 5) -> ExamSimulation:
    return ExamSimulation(
        title="Mock exam",
        questions=[
            ExamQuestion(
                id=i,
                question=f"Question {i}?",
                options=["A", "B", "C", "D"] if i % 2 else None,
                answer="A",
                explanation="Because.",
            )
            for i in range(1, n_questions + 1)
        ],
    )


@pytest.fixture
def roadmap():
    return build_roadmap(3)


@pytest.fixture
def exam():
    return build_exam(5)


@pytest.fixture
def session(tmp_path):
    return SessionStore.from_data_dir(tmp_path)


@pytest.fixture
def signed_in_session(session):
    session.login("ada@example.com", "Ada")
    return session


@pytest.fixture
def intake():
    return ContentIntake()


@pytest.fixture
def analysis_error():
    return AnalysisError("The course analysis failed.")


@pytest.fixture
def exam_error():
    return ExamGenerationError("The mock exam generation failed.")
