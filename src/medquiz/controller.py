"""Event-driven controller that moves a quiz session between screens.

The controller owns the phase of the run, the per-question countdown and the
bookkeeping that keeps late model responses from leaking into a newer run.
Rendering goes through an injected :class:`QuizView` so the state machine can
be driven without a terminal.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Protocol

from .catalog import SubjectCatalog
from .session import (
    OPTION_COUNT,
    Progress,
    Question,
    QuizResults,
    QuizSession,
)

__all__ = [
    "Phase",
    "AnswerOutcome",
    "QuizView",
    "CountdownTimer",
    "SessionController",
    "MISSING_SELECTION_MESSAGE",
    "INVALID_LIMITS_MESSAGE",
]

MISSING_SELECTION_MESSAGE = "Please select both subject and sub-topic"
INVALID_LIMITS_MESSAGE = (
    "Time limit and question count must be whole numbers of zero or more."
)


class Phase(Enum):
    SETUP = "setup"
    LOADING = "loading"
    AWAITING_ANSWER = "awaiting_answer"
    ANSWERED = "answered"
    RESULTS = "results"


@dataclass(frozen=True)
class AnswerOutcome:
    """What the view needs to mark an answered question.

    ``selected_index`` is None when the countdown ran out. ``is_last`` tells
    the view to offer results instead of another question.
    """

    question: Question
    selected_index: int | None
    is_correct: bool
    timed_out: bool
    is_last: bool


class QuizView(Protocol):
    """Rendering capabilities the controller relies on."""

    def render_setup(self) -> None: ...

    def render_loading(self) -> None: ...

    def render_question(self, question: Question, progress: Progress) -> None:
        ...

    def render_timer(self, remaining: int) -> None: ...

    def render_answer(self, outcome: AnswerOutcome) -> None: ...

    def render_explanation(self, text: str) -> None: ...

    def render_doubt_answer(self, text: str) -> None: ...

    def render_results(self, results: QuizResults) -> None: ...

    def notify(self, message: str) -> None: ...


class CountdownTimer:
    """Cancellable per-question countdown running as an asyncio task."""

    def __init__(
        self,
        seconds: int,
        *,
        on_tick: Callable[[int], None],
        on_expire: Callable[[], Awaitable[object]],
        tick_seconds: float = 1.0,
        logger: logging.Logger | None = None,
    ) -> None:
        self._seconds = seconds
        self._on_tick = on_tick
        self._on_expire = on_expire
        self._tick_seconds = tick_seconds
        self._logger = logger or logging.getLogger(__name__)
        self._task: asyncio.Task | None = None
        self._cancelled = False

    @property
    def active(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def start(self) -> None:
        if self._task is not None:
            raise RuntimeError("Countdown already started.")
        self._task = asyncio.get_running_loop().create_task(self._run())
        self._task.add_done_callback(self._log_failure)

    def _log_failure(self, task: asyncio.Task) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            self._logger.error(
                "Countdown failed",
                exc_info=(type(exc), exc, exc.__traceback__),
                extra={"seconds": self._seconds},
            )

    def cancel(self) -> None:
        self._cancelled = True
        if self._task is not None and not self._task.done():
            self._task.cancel()

    async def _run(self) -> None:
        remaining = self._seconds
        self._on_tick(remaining)
        while remaining > 0:
            await asyncio.sleep(self._tick_seconds)
            if self._cancelled:
                return
            remaining -= 1
            self._on_tick(remaining)
        await self._on_expire()


class SessionController:
    """Drive a :class:`QuizSession` in response to UI events."""

    def __init__(
        self,
        session: QuizSession,
        view: QuizView,
        *,
        catalog: SubjectCatalog | None = None,
        tick_seconds: float = 1.0,
        logger: logging.Logger | None = None,
    ) -> None:
        self.session = session
        self.view = view
        self.catalog = catalog
        self.phase = Phase.SETUP
        self.topic: str | None = None
        self._tick_seconds = tick_seconds
        self._logger = logger or logging.getLogger(__name__)
        self._timer: CountdownTimer | None = None
        # Bumped on start/restart; responses tagged with an older value
        # belong to a superseded run.
        self._generation = 0
        # Bumped per loaded question; stale explanations and doubt answers
        # must not land on a later question.
        self._question_serial = 0

    @property
    def timer(self) -> CountdownTimer | None:
        return self._timer

    async def start(
        self,
        subject: str | None,
        sub_topic: str | None,
        time_limit: int = 0,
        question_limit: int = 0,
    ) -> bool:
        if self.phase is not Phase.SETUP:
            self._reject("start", reason="not in setup")
            return False
        subject = (subject or "").strip()
        sub_topic = (sub_topic or "").strip()
        if not subject or not sub_topic:
            self._reject("start", reason="missing selection")
            self.view.notify(MISSING_SELECTION_MESSAGE)
            return False
        if not _is_limit(time_limit) or not _is_limit(question_limit):
            self._reject("start", reason="invalid limits")
            self.view.notify(INVALID_LIMITS_MESSAGE)
            return False
        if self.catalog is not None and not self.catalog.contains(
            subject, sub_topic
        ):
            self._reject("start", reason="unknown sub-topic")
            self.view.notify(
                f"'{sub_topic}' is not a sub-topic of '{subject}'."
            )
            return False

        self._generation += 1
        self.session.configure(
            time_limit=time_limit, question_limit=question_limit
        )
        self.topic = f"{subject}/{sub_topic}"
        self._logger.info(
            "Quiz started",
            extra={
                "topic": self.topic,
                "time_limit": time_limit,
                "question_limit": question_limit,
            },
        )
        await self._advance()
        return True

    async def load_next_question(self) -> None:
        """Move past the current question; unanswered questions are skipped."""

        if self.phase not in (Phase.ANSWERED, Phase.AWAITING_ANSWER):
            self._reject("load_next_question")
            return
        await self._advance()

    async def _advance(self) -> None:
        self._cancel_timer()
        if self.session.limit_reached():
            self._show_results()
            return

        generation = self._generation
        self.phase = Phase.LOADING
        self.view.render_loading()
        question = await self.session.generate_question(self.topic or "")
        if generation != self._generation or self.phase is not Phase.LOADING:
            self._discard("question", generation)
            return
        if question is None:
            self._show_results()
            return

        self._question_serial += 1
        self.session.state.current_question = question
        self.phase = Phase.AWAITING_ANSWER
        self.view.render_question(question, self.session.progress())
        time_limit = self.session.state.time_limit_seconds
        if time_limit > 0:
            self._timer = CountdownTimer(
                time_limit,
                on_tick=self.view.render_timer,
                on_expire=self._on_timer_expired,
                tick_seconds=self._tick_seconds,
                logger=self._logger,
            )
            self._timer.start()

    async def select_answer(self, index: int) -> AnswerOutcome | None:
        if self.phase is not Phase.AWAITING_ANSWER:
            self._reject("select_answer", index=index)
            return None
        if not isinstance(index, int) or not 0 <= index < OPTION_COUNT:
            self._reject("select_answer", reason="index out of range")
            return None
        self._cancel_timer()
        question = self.session.state.current_question
        assert question is not None
        is_correct = self.session.record_answer(index)
        outcome = AnswerOutcome(
            question=question,
            selected_index=index,
            is_correct=is_correct,
            timed_out=False,
            is_last=self.session.limit_reached(),
        )
        await self._finish_answer(outcome)
        return outcome

    async def _on_timer_expired(self) -> AnswerOutcome | None:
        if self.phase is not Phase.AWAITING_ANSWER:
            return None
        # The expiring timer is the running task; drop it without cancelling.
        self._timer = None
        question = self.session.state.current_question
        assert question is not None
        self.session.record_timeout()
        outcome = AnswerOutcome(
            question=question,
            selected_index=None,
            is_correct=False,
            timed_out=True,
            is_last=self.session.limit_reached(),
        )
        self._logger.info("Question timed out", extra={"topic": self.topic})
        await self._finish_answer(outcome)
        return outcome

    async def _finish_answer(self, outcome: AnswerOutcome) -> None:
        self.phase = Phase.ANSWERED
        state = self.session.state
        self._logger.info(
            "Answer recorded",
            extra={
                "correct": outcome.is_correct,
                "timed_out": outcome.timed_out,
                "answered": state.questions_answered,
                "score": state.score,
            },
        )
        self.view.render_answer(outcome)
        generation, serial = self._generation, self._question_serial
        explanation = await self.session.get_explanation(outcome.question)
        if self._is_stale(generation, serial):
            self._discard("explanation", generation)
            return
        self.view.render_explanation(explanation)

    async def ask_doubt(self, text: str | None) -> str | None:
        doubt = (text or "").strip()
        if self.phase is not Phase.ANSWERED or not doubt:
            self._reject("ask_doubt")
            return None
        question = self.session.state.current_question
        assert question is not None
        generation, serial = self._generation, self._question_serial
        answer = await self.session.ask_doubt(doubt, question)
        if self._is_stale(generation, serial):
            self._discard("doubt", generation)
            return None
        self.view.render_doubt_answer(answer)
        return answer

    def restart(self) -> None:
        self._cancel_timer()
        self._generation += 1
        self.session.reset()
        self.topic = None
        self.phase = Phase.SETUP
        self._logger.info("Quiz restarted")
        self.view.render_setup()

    def _show_results(self) -> None:
        self.phase = Phase.RESULTS
        results = self.session.get_results()
        self._logger.info(
            "Quiz finished",
            extra={
                "total": results.total,
                "correct": results.correct,
                "percentage": results.percentage,
            },
        )
        self.view.render_results(results)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _is_stale(self, generation: int, serial: int) -> bool:
        return (
            generation != self._generation
            or serial != self._question_serial
        )

    def _discard(self, kind: str, generation: int) -> None:
        self._logger.info(
            "Discarded stale response",
            extra={
                "kind": kind,
                "generation": generation,
                "current_generation": self._generation,
            },
        )

    def _reject(self, event: str, **details: object) -> None:
        self._logger.debug(
            "Rejected event",
            extra={"event": event, "phase": self.phase.value, **details},
        )


def _is_limit(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0
