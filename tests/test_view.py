from __future__ import annotations

import asyncio
from collections import defaultdict

import pytest

from fixtures import FakeGenerator, question_json
from medquiz import config as config_mod
from medquiz.catalog import default_catalog
from medquiz.controller import AnswerOutcome, Phase
from medquiz.session import Question, QuizResults, QuizSession
from medquiz.view import app as view_mod
from medquiz.view.app import QuizApp, SetupPreset


QUESTION = Question(
    text="Q?",
    options=("w", "x", "y", "z"),
    correct_index=2,
)


class StubWidget:
    def __init__(self, *args, **kwargs):
        self.args = args
        self.id = kwargs.get("id")
        self.value = kwargs.get("value")
        self.disabled = kwargs.get("disabled", False)
        self.text = ""
        self.label = args[0] if args else ""
        self.display = True
        self.classes = set()
        self.options = []

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        return False

    def update(self, text: str) -> None:
        self.text = text

    def add_class(self, *names: str) -> None:
        self.classes.update(names)

    def remove_class(self, *names: str) -> None:
        self.classes.difference_update(names)

    def set_options(self, options) -> None:
        self.options = list(options)


def _outcome(selected, *, is_last=False):
    return AnswerOutcome(
        question=QUESTION,
        selected_index=selected,
        is_correct=selected == QUESTION.correct_index,
        timed_out=selected is None,
        is_last=is_last,
    )


@pytest.fixture
def quiz_config():
    return config_mod.load_config(env={}).quiz


@pytest.fixture
def harness(monkeypatch, quiz_config):
    """Build a QuizApp whose widgets and workers are plain stubs."""

    def build(responses=(), preset=None):
        app = QuizApp(
            QuizSession(FakeGenerator(responses)),
            catalog=default_catalog(),
            quiz_config=quiz_config,
            preset=preset,
        )
        widgets = defaultdict(StubWidget)
        workers = []
        monkeypatch.setattr(
            app, "query_one", lambda selector, _type=None: widgets[selector]
        )
        monkeypatch.setattr(app, "run_worker", workers.append)
        return app, widgets, workers

    return build


def _drain(workers) -> None:
    while workers:
        asyncio.run(workers.pop(0))


def test_choice_labels():
    assert view_mod.time_choice_label(0) == "No time limit"
    assert view_mod.time_choice_label(30) == "30 seconds"
    assert view_mod.question_choice_label(0) == "Unlimited questions"
    assert view_mod.question_choice_label(10) == "10 questions"
    assert view_mod.choice_options([0, 5], view_mod.question_choice_label) == [
        ("Unlimited questions", 0),
        ("5 questions", 5),
    ]
    assert view_mod.option_label(3, "Aspirin") == "D) Aspirin"


def test_option_marks_and_next_label():
    assert view_mod.option_marks(_outcome(2)) == {2: "correct"}
    assert view_mod.option_marks(_outcome(0)) == {2: "correct", 0: "wrong"}
    assert view_mod.option_marks(_outcome(None)) == {2: "correct"}
    assert view_mod.next_label(_outcome(0)) == "Next Question"
    assert view_mod.next_label(_outcome(0, is_last=True)) == "Show Results"


def test_format_results():
    text = view_mod.format_results(QuizResults(3, 2, 1, 67))

    assert text.splitlines() == [
        "Quiz Results",
        "Total attempted: 3",
        "Correct answers: 2",
        "Wrong answers:   1",
        "Score:           67%",
    ]


def test_setup_preset_complete():
    assert SetupPreset("Cardiology", "Arrhythmias").complete
    assert not SetupPreset("Cardiology").complete
    assert not SetupPreset().complete


def test_compose_applies_preset_limits(monkeypatch, harness):
    for name in ("Vertical", "Static", "Button", "Select", "Input", "Footer"):
        monkeypatch.setattr(view_mod, name, StubWidget)
    app, _, _ = harness(preset=SetupPreset(time_limit=60, question_limit=7))

    widgets = {widget.id: widget for widget in app.compose()}

    assert widgets["time-select"].value == 60
    # 7 is not an offered choice, so the configured default wins.
    assert widgets["questions-select"].value == 0
    assert widgets["subtopic-select"].disabled is True
    subjects = widgets["subject-select"].args[0]
    assert ("Cardiology", "Cardiology") in subjects
    assert "option-3" in widgets


def test_subject_change_populates_sub_topics(harness):
    app, widgets, _ = harness()

    app._populate_sub_topics("Cardiology")

    select = widgets["#subtopic-select"]
    assert ("Arrhythmias", "Arrhythmias") in select.options
    assert select.disabled is False

    app._populate_sub_topics(None)
    assert select.options == []
    assert select.disabled is True


def test_mount_with_complete_preset_starts_quiz(harness):
    app, widgets, workers = harness(
        [question_json(text="Preset question?")],
        preset=SetupPreset("Cardiology", "Arrhythmias", 0, 5),
    )
    widgets["#time-select"].value = 0
    widgets["#questions-select"].value = 5

    app.on_mount()

    assert widgets["#subject-select"].value == "Cardiology"
    assert widgets["#subtopic-select"].value == "Arrhythmias"
    _drain(workers)
    assert app.controller.phase is Phase.AWAITING_ANSWER
    assert widgets["#question-text"].text == "Preset question?"
    assert widgets["#progress"].text == "Question 1 / 5"


def test_mount_without_preset_stays_on_setup(harness):
    app, _, workers = harness()

    app.on_mount()

    assert workers == []
    assert app.controller.phase is Phase.SETUP


def test_full_run_through_app_actions(harness):
    app, widgets, workers = harness(
        [question_json(correct=2), "Because warfarin", "Doubt cleared"]
    )
    widgets["#subject-select"].value = "Cardiology"
    widgets["#subtopic-select"].value = "Arrhythmias"
    widgets["#time-select"].value = 0
    widgets["#questions-select"].value = 1

    app.action_start()
    _drain(workers)

    assert widgets["#quiz"].display is True
    assert widgets["#setup"].display is False
    assert widgets["#option-0"].label == "A) Beta blocker"
    assert widgets["#next"].display is False

    app.action_next()
    assert workers == []

    app.action_select_option(0)
    _drain(workers)

    assert widgets["#option-0"].classes == {"wrong"}
    assert widgets["#option-2"].classes == {"correct"}
    assert all(widgets[f"#option-{i}"].disabled for i in range(4))
    assert widgets["#next"].label == "Show Results"
    assert widgets["#explanation-text"].text == (
        "Explanation\n\nBecause warfarin"
    )

    app.action_select_option(1)
    assert workers == []

    widgets["#doubt-input"].value = "  Why warfarin?  "
    app._submit_doubt()
    assert widgets["#ask-doubt"].label == "Getting answer..."
    assert widgets["#ask-doubt"].disabled is True
    _drain(workers)
    assert widgets["#doubt-answer"].text == (
        "Answer to your doubt:\nDoubt cleared"
    )
    assert widgets["#ask-doubt"].label == "Ask Doubt"
    assert widgets["#ask-doubt"].disabled is False

    app.action_next()
    _drain(workers)

    assert app.controller.phase is Phase.RESULTS
    assert widgets["#results"].display is True
    assert "Score:           0%" in widgets["#results-text"].text

    app.action_restart()
    assert app.controller.phase is Phase.SETUP
    assert widgets["#setup"].display is True
    assert widgets["#results"].display is False


def test_blank_doubt_is_not_submitted(harness):
    app, widgets, workers = harness()
    app.controller.phase = Phase.ANSWERED
    widgets["#doubt-input"].value = "   "

    app._submit_doubt()

    assert workers == []


def test_timeout_marks_answer(harness):
    app, widgets, _ = harness()

    app.render_answer(_outcome(None))

    assert widgets["#timer"].text == "Time's up!"
    assert widgets["#option-2"].classes == {"correct"}
    assert widgets["#explanation-text"].text == "Loading explanation..."
    assert widgets["#explanation"].display is True


def test_render_question_clears_previous_marks(harness):
    app, widgets, _ = harness()
    widgets["#option-1"].add_class("wrong")
    widgets["#option-1"].disabled = True

    app.render_question(QUESTION, app.controller.session.progress())

    assert widgets["#option-1"].classes == set()
    assert widgets["#option-1"].disabled is False
    assert widgets["#option-1"].label == "B) x"
    assert widgets["#progress"].text == "Question 1 / ∞"

    app.render_timer(12)
    assert widgets["#timer"].text == "Time left: 12s"
