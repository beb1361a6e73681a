from pathlib import Path

import pytest
import streamlit as st
from streamlit.testing.v1 import AppTest

from tests.conftest import FakeGateway, build_exam, build_roadmap

APP_PATH = str(Path(__file__).parent.parent / "streamlit_app.py")
COURSE_TEXT = "Photosynthesis basics"


def click(at: AppTest, label: str) -> AppTest:
    next(b for b in at.button if b.label == label).click()
    return at.run()


@pytest.fixture
def app(tmp_path, monkeypatch):
    monkeypatch.setenv("STUDY_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("GEMINI_API_KEY", "test-gemini")
    monkeypatch.delenv("STUDY_MODEL", raising=False)
    st.cache_resource.clear()

    at = AppTest.from_file(APP_PATH, default_timeout=30)
    at.run()
    assert not at.exception
    at.session_state["controller"].gateway = FakeGateway(
        roadmap=build_roadmap(3), exam=build_exam(5)
    )
    yield at
    st.cache_resource.clear()


@pytest.fixture
def signed_in_app(app):
    app.session_state["controller"].login("ada@example.com", "Ada")
    return app.run()


def submit_course(at: AppTest) -> AppTest:
    at.text_area(key="course_text").input(COURSE_TEXT).run()
    return click(at, "Launch the Architect 🌸")


def test_submit_without_user_asks_to_sign_in(app):
    submit_course(app)

    labels = [t.label for t in app.text_input]
    assert "Name" in labels
    assert "Email" in labels
    assert app.session_state["controller"].gateway.analyze_calls == []


def test_roadmap_steps_track_progress(signed_in_app):
    at = submit_course(signed_in_app)
    controller = at.session_state["controller"]

    assert controller.gateway.analyze_calls == [(COURSE_TEXT, None)]
    assert len(at.checkbox) == 3

    at.checkbox[0].check().run()

    assert controller.progress == 33
    assert at.checkbox[0].value


def test_mock_exam_shows_every_question(signed_in_app):
    at = click(submit_course(signed_in_app), "Mock Exam")

    assert not at.exception
    assert len(at.expander) == 5
    assert at.title[0].value == "Mock exam"


def test_switching_tabs_reuses_the_exam(signed_in_app):
    at = click(submit_course(signed_in_app), "Mock Exam")
    at = click(at, "My Roadmap")
    assert len(at.checkbox) == 3

    at = click(at, "Mock Exam")

    assert len(at.expander) == 5
    assert len(at.session_state["controller"].gateway.exam_calls) == 1


def test_new_analysis_keeps_pasted_text(signed_in_app):
    at = submit_course(signed_in_app)
    assert len(at.checkbox) == 3

    at = click(at, "⬅️ New analysis")

    assert at.session_state["controller"].roadmap is None
    assert at.text_area(key="course_text").value == COURSE_TEXT
