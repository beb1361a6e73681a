from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, model_validator


class Priority(str, Enum):
    """How urgent the revision of an exam is"""

    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class StepType(str, Enum):
    """Known kinds of roadmap step"""

    THEORY = "Theory"
    PRACTICE = "Practice"


class RoadmapStep(BaseModel):
    """One unit of the study plan"""

    step: int = Field(..., description="Step number, unique within the roadmap")
    type: str = Field(..., description="Either 'Theory' or 'Practice'")
    title: str = Field(..., description="Short title of the step")
    description: str = Field(..., description="What to study or practice")
    estimated_duration: str = Field(
        ..., description="Estimated time to complete, e.g. '2h' or '45 min'"
    )

    class Config:
        frozen = True


class RoadmapResponse(BaseModel):
    """Revision roadmap generated from course material"""

    exam_name: str = Field(..., description="Name of the exam or course")
    priority: Priority = Field(..., description="Priority level: High, Medium or Low")
    planning: List[RoadmapStep] = Field(
        ..., description="Steps in recommended study order"
    )
    expert_advice: str = Field(..., description="One strategic piece of advice")

    class Config:
        use_enum_values = True

    @model_validator(mode="after")
    def _unique_step_numbers(self) -> "RoadmapResponse":
        numbers = [s.step for s in self.planning]
        if len(numbers) != len(set(numbers)):
            raise ValueError(f"duplicate step numbers in planning: {numbers}")
        return self

    @property
    def step_numbers(self) -> list[int]:
        return [s.step for s in self.planning]


class ExamQuestion(BaseModel):
    """A question of the mock exam"""

    id: int = Field(..., description="Question number")
    question: str = Field(..., description="Question text")
    options: Optional[List[str]] = Field(
        ..., description="Choices for a multiple-choice question, null otherwise"
    )
    answer: str = Field(..., description="The correct answer")
    explanation: str = Field(..., description="Why the answer is correct")

    @property
    def is_multiple_choice(self) -> bool:
        return bool(self.options)


class ExamSimulation(BaseModel):
    """Mock exam derived from a roadmap"""

    title: str = Field(..., description="Title of the mock exam")
    questions: List[ExamQuestion] = Field(..., description="Questions in order")


class User(BaseModel):
    """Locally signed-in user"""

    id: str
    email: str
    name: str
    avatar: str


class EncodedFile(BaseModel):
    """A document or image encoded for transport"""

    data: str = Field(..., description="Base64 encoded bytes")
    mime_type: str

    @property
    def is_image(self) -> bool:
        return self.mime_type.startswith("image/")

    @property
    def is_pdf(self) -> bool:
        return self.mime_type == "application/pdf"
