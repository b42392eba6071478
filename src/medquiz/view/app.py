"""Textual front end for a quiz run.

``QuizApp`` is the presentation layer: it composes the setup, question,
explanation and results panels, forwards user events to the
:class:`SessionController`, and implements the controller's ``QuizView``
rendering calls.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from textual.app import App, ComposeResult
from textual.containers import Vertical
from textual.widgets import Button, Footer, Input, Select, Static

from ..catalog import SubjectCatalog
from ..config import QuizConfig
from ..controller import AnswerOutcome, Phase, SessionController
from ..session import OPTION_COUNT, Progress, Question, QuizResults, QuizSession

OPTION_KEYS = "abcd"


@dataclass(frozen=True)
class SetupPreset:
    """Selections to apply when the app opens (for example from the CLI)."""

    subject: Optional[str] = None
    sub_topic: Optional[str] = None
    time_limit: Optional[int] = None
    question_limit: Optional[int] = None

    @property
    def complete(self) -> bool:
        return bool(self.subject and self.sub_topic)


def time_choice_label(seconds: int) -> str:
    return "No time limit" if seconds == 0 else f"{seconds} seconds"


def question_choice_label(count: int) -> str:
    return "Unlimited questions" if count == 0 else f"{count} questions"


def choice_options(
    values: Iterable[int], label
) -> List[Tuple[str, int]]:
    return [(label(value), value) for value in values]


def option_label(index: int, text: str) -> str:
    return f"{OPTION_KEYS[index].upper()}) {text}"


def option_marks(outcome: AnswerOutcome) -> dict[int, str]:
    """Map option index to the CSS class it gets once answered."""

    marks = {outcome.question.correct_index: "correct"}
    if outcome.selected_index is not None and not outcome.is_correct:
        marks[outcome.selected_index] = "wrong"
    return marks


def next_label(outcome: AnswerOutcome) -> str:
    return "Show Results" if outcome.is_last else "Next Question"


def format_results(results: QuizResults) -> str:
    return "\n".join(
        [
            "Quiz Results",
            f"Total attempted: {results.total}",
            f"Correct answers: {results.correct}",
            f"Wrong answers:   {results.wrong}",
            f"Score:           {results.percentage}%",
        ]
    )


def _int_value(value: object) -> Optional[int]:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    return None


def _str_value(value: object) -> Optional[str]:
    return value if isinstance(value, str) else None


class QuizApp(App):
    TITLE = "medquiz"
    CSS = """
#quiz, #results, #explanation, #loader { display: none; }
#question-text { margin: 1 0; text-style: bold; }
#options Button { width: 100%; margin-bottom: 1; }
#options Button.correct { background: $success; }
#options Button.wrong { background: $error; }
#timer { color: $warning; }
#explanation { border: round $accent; padding: 0 1; margin-top: 1; }
#doubt-answer { margin-top: 1; }
"""
    BINDINGS = [
        ("a", "select_option(0)", "Option A"),
        ("b", "select_option(1)", "Option B"),
        ("c", "select_option(2)", "Option C"),
        ("d", "select_option(3)", "Option D"),
        ("n", "next", "Next"),
        ("r", "restart", "Restart"),
        ("q", "quit", "Quit"),
    ]

    def __init__(
        self,
        session: QuizSession,
        *,
        catalog: SubjectCatalog,
        quiz_config: QuizConfig,
        preset: Optional[SetupPreset] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        super().__init__()
        self.catalog = catalog
        self.quiz_config = quiz_config
        self.preset = preset or SetupPreset()
        self.controller = SessionController(
            session,
            self,
            catalog=catalog,
            tick_seconds=quiz_config.tick_seconds,
            logger=logger,
        )
        self._sub_topics_for: Optional[str] = None

    def compose(self) -> ComposeResult:
        config = self.quiz_config
        time_default = self.preset.time_limit
        if time_default not in config.time_limit_choices:
            time_default = config.time_limit_seconds
        count_default = self.preset.question_limit
        if count_default not in config.question_limit_choices:
            count_default = config.question_limit
        with Vertical(id="setup"):
            yield Static("Medical MCQ Practice", id="title")
            yield Select(
                [(name, name) for name in self.catalog.subjects()],
                prompt="Choose a subject...",
                id="subject-select",
            )
            yield Select(
                [],
                prompt="Choose a sub-topic...",
                id="subtopic-select",
                disabled=True,
            )
            yield Select(
                choice_options(config.time_limit_choices, time_choice_label),
                value=time_default,
                allow_blank=False,
                id="time-select",
            )
            yield Select(
                choice_options(
                    config.question_limit_choices, question_choice_label
                ),
                value=count_default,
                allow_blank=False,
                id="questions-select",
            )
            yield Button("Start Quiz", id="start-quiz", variant="primary")
        yield Static("Generating...", id="loader")
        with Vertical(id="quiz"):
            yield Static("", id="progress")
            yield Static("", id="timer")
            yield Static("", id="question-text")
            with Vertical(id="options"):
                for index in range(OPTION_COUNT):
                    yield Button("", id=f"option-{index}", classes="option")
            yield Button("Next Question", id="next")
            with Vertical(id="explanation"):
                yield Static("", id="explanation-text")
                yield Input(
                    placeholder=(
                        "Type your doubt here related to this question..."
                    ),
                    id="doubt-input",
                )
                yield Button("Ask Doubt", id="ask-doubt")
                yield Static("", id="doubt-answer")
        with Vertical(id="results"):
            yield Static("", id="results-text")
            yield Button("Restart Quiz", id="restart", variant="primary")
        yield Footer()

    def on_mount(self) -> None:
        preset = self.preset
        if preset.subject and preset.subject in self.catalog.subjects():
            self.query_one("#subject-select", Select).value = preset.subject
            self._populate_sub_topics(preset.subject)
            if preset.sub_topic in self.catalog.sub_topics(preset.subject):
                self.query_one(
                    "#subtopic-select", Select
                ).value = preset.sub_topic
        if preset.complete:
            self.run_worker(
                self.controller.start(
                    preset.subject,
                    preset.sub_topic,
                    self._selected_int("#time-select"),
                    self._selected_int("#questions-select"),
                )
            )

    # Event handlers

    def on_select_changed(self, event: Select.Changed) -> None:
        if event.select.id == "subject-select":
            self._populate_sub_topics(_str_value(event.value))

    def on_button_pressed(self, event: Button.Pressed) -> None:
        bid = event.button.id or ""
        if bid == "start-quiz":
            self.action_start()
        elif bid.startswith("option-"):
            self.action_select_option(int(bid.rsplit("-", 1)[-1]))
        elif bid == "next":
            self.action_next()
        elif bid == "restart":
            self.action_restart()
        elif bid == "ask-doubt":
            self._submit_doubt()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id == "doubt-input":
            self._submit_doubt()

    def action_start(self) -> None:
        self.run_worker(
            self.controller.start(
                _str_value(self.query_one("#subject-select", Select).value),
                _str_value(self.query_one("#subtopic-select", Select).value),
                self._selected_int("#time-select"),
                self._selected_int("#questions-select"),
            )
        )

    def action_select_option(self, index: int) -> None:
        if self.controller.phase is Phase.AWAITING_ANSWER:
            self.run_worker(self.controller.select_answer(index))

    def action_next(self) -> None:
        if self.controller.phase is Phase.ANSWERED:
            self.run_worker(self.controller.load_next_question())

    def action_restart(self) -> None:
        self.controller.restart()

    def _submit_doubt(self) -> None:
        field = self.query_one("#doubt-input", Input)
        text = field.value.strip()
        if not text or self.controller.phase is not Phase.ANSWERED:
            return
        button = self.query_one("#ask-doubt", Button)
        button.disabled = True
        button.label = "Getting answer..."
        self.run_worker(self._ask_doubt(text))

    async def _ask_doubt(self, text: str) -> None:
        try:
            await self.controller.ask_doubt(text)
        finally:
            button = self.query_one("#ask-doubt", Button)
            button.disabled = False
            button.label = "Ask Doubt"

    def _populate_sub_topics(self, subject: Optional[str]) -> None:
        if subject == self._sub_topics_for:
            return
        self._sub_topics_for = subject
        topics = self.catalog.sub_topics(subject)
        select = self.query_one("#subtopic-select", Select)
        select.set_options([(topic, topic) for topic in topics])
        select.disabled = not topics

    def _selected_int(self, selector: str) -> Optional[int]:
        return _int_value(self.query_one(selector, Select).value)

    def _show_panels(self, *visible: str) -> None:
        for panel in ("#setup", "#loader", "#quiz", "#results"):
            self.query_one(panel).display = panel in visible

    # QuizView implementation

    def render_setup(self) -> None:
        self._show_panels("#setup")
        self.query_one("#timer", Static).update("")

    def render_loading(self) -> None:
        self._show_panels("#loader")
        self.query_one("#explanation").display = False
        self.query_one("#next").display = False

    def render_question(self, question: Question, progress: Progress) -> None:
        self.query_one("#progress", Static).update(progress.label())
        self.query_one("#timer", Static).update("")
        self.query_one("#question-text", Static).update(question.text)
        for index, text in enumerate(question.options):
            button = self.query_one(f"#option-{index}", Button)
            button.label = option_label(index, text)
            button.disabled = False
            button.remove_class("correct", "wrong")
        self.query_one("#explanation-text", Static).update("")
        self.query_one("#doubt-answer", Static).update("")
        self.query_one("#doubt-input", Input).value = ""
        self.query_one("#explanation").display = False
        self.query_one("#next").display = False
        self._show_panels("#quiz")

    def render_timer(self, remaining: int) -> None:
        self.query_one("#timer", Static).update(f"Time left: {remaining}s")

    def render_answer(self, outcome: AnswerOutcome) -> None:
        marks = option_marks(outcome)
        for index in range(OPTION_COUNT):
            button = self.query_one(f"#option-{index}", Button)
            button.disabled = True
            if index in marks:
                button.add_class(marks[index])
        if outcome.timed_out:
            self.query_one("#timer", Static).update("Time's up!")
        next_button = self.query_one("#next", Button)
        next_button.label = next_label(outcome)
        next_button.display = True
        explanation = self.query_one("#explanation-text", Static)
        explanation.update("Loading explanation...")
        self.query_one("#explanation").display = True

    def render_explanation(self, text: str) -> None:
        self.query_one("#explanation-text", Static).update(
            f"Explanation\n\n{text}"
        )

    def render_doubt_answer(self, text: str) -> None:
        self.query_one("#doubt-answer", Static).update(
            f"Answer to your doubt:\n{text}"
        )

    def render_results(self, results: QuizResults) -> None:
        self.query_one("#results-text", Static).update(
            format_results(results)
        )
        self.query_one("#timer", Static).update("")
        self._show_panels("#results")
