import logging
from textwrap import dedent

from models import ModelProvider
from schemas import EncodedFile, ExamSimulation, RoadmapResponse

logger = logging.getLogger(__name__)


class GatewayError(Exception):
    """A model call failed. `message` is safe to show to the user."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class AnalysisError(GatewayError):
    """Course analysis failed."""


class ExamGenerationError(GatewayError):
    """Mock exam generation failed."""


class SchemaViolationError(GatewayError):
    """The model reply did not match the expected schema."""


ROADMAP_SYSTEM_PROMPT = """
You are an expert study planner who turns course material into a revision roadmap.

Read the course content (pasted text and/or the attached document) and produce:
1. "exam_name": the name of the exam or course being revised
2. "priority": how urgent the revision is, exactly one of "High", "Medium", "Low"
3. "planning": an ordered list of steps, in the order the student should study them.
   Each step has:
   - "step": its number, starting at 1, unique
   - "type": "Theory" for learning material, "Practice" for exercises
   - "title": a short title
   - "description": what to study or practice, concretely
   - "estimated_duration": a realistic duration such as "45 min" or "2h"
4. "expert_advice": one strategic piece of advice for this exam

Alternate theory and practice where it helps retention.
Answer in the language of the course material.
"""

EXAM_SYSTEM_PROMPT = """
You are an examiner who writes mock exams from a revision roadmap.

Write a mock exam that covers every step of the roadmap. Return:
- "title": the title of the mock exam
- "questions": a list of questions, each with
  - "id": question number starting at 1
  - "question": the question text
  - "options": 4 choices for a multiple-choice question, or null for an open question
  - "answer": the correct answer (for multiple choice, the text of the correct option)
  - "explanation": a short explanation of the correct answer

Mix multiple-choice and open questions, from easy recall to applied problems.
Answer in the language of the roadmap.
"""


class AIGateway:
    """The two one-shot model calls of the app."""

    def __init__(self, model: ModelProvider):
        self.model = model

    def analyze_course_content(
        self, text: str, file: EncodedFile | None = None
    ) -> RoadmapResponse:
        """
        Build a revision roadmap from course material.

        Args:
            text: Pasted course content, may be empty when a file is given.
            file: Encoded image or PDF of the course.

        Returns:
            RoadmapResponse: the validated roadmap.

        Raises:
            ValueError: if neither text nor file is provided.
            SchemaViolationError: if the reply does not match the roadmap schema.
            AnalysisError: for any other failure.
        """
        if not text.strip() and file is None:
            raise ValueError("course text or a file is required")

        if text.strip():
            prompt = f"Course content:\n---\n{text.strip()}\n---"
        else:
            prompt = "The course content is in the attached document."
        if file is not None and text.strip():
            prompt += "\n\nThe attached document is part of the same course."

        logger.info(
            "Analyzing course content (%d chars, file: %s) with %s",
            len(text),
            file.mime_type if file else "none",
            self.model.model_name,
        )
        try:
            roadmap = self.model.generate_with_schema(
                prompt,
                RoadmapResponse,
                system_prompt=dedent(ROADMAP_SYSTEM_PROMPT),
                attachment=file,
            )
        except Exception as e:
            logger.error("Error analyzing course content: %s", e, exc_info=True)
            raise AnalysisError("The course analysis failed.") from e

        if roadmap is None:
            logger.error("Roadmap reply did not match the schema")
            raise SchemaViolationError("The model returned a malformed roadmap.")

        logger.info(
            "Generated roadmap '%s' with %d steps", roadmap.exam_name, len(roadmap.planning)
        )
        return roadmap

    def generate_exam_simulation(self, roadmap: RoadmapResponse) -> ExamSimulation:
        """Generate a mock exam covering the given roadmap."""
        roadmap_json = roadmap.model_dump_json(indent=2)
        prompt = f"Roadmap:\n---\n{roadmap_json}\n---"

        logger.info("Generating mock exam for '%s'", roadmap.exam_name)
        try:
            exam = self.model.generate_with_schema(
                prompt, ExamSimulation, system_prompt=dedent(EXAM_SYSTEM_PROMPT)
            )
        except Exception as e:
            logger.error("Error generating mock exam: %s", e, exc_info=True)
            raise ExamGenerationError("The mock exam generation failed.") from e

        if exam is None:
            logger.error("Exam reply did not match the schema")
            raise SchemaViolationError("The model returned a malformed exam.")

        logger.info("Generated mock exam with %d questions", len(exam.questions))
        return exam
