"""Quiz session state plus the generation calls that feed it.

``QuizSession`` keeps the score counters for one run and wraps the three
text-generation requests a run makes: new questions, explanations of an
answered question, and answers to free-form doubts. Every request path
absorbs failures and substitutes a fixed, user-visible fallback so callers
never see an exception from the model.
"""

from __future__ import annotations

import json
import logging
import math
import re
from dataclasses import dataclass, field
from typing import Any

from . import prompts
from .client import RequestError, TextGenerator

__all__ = [
    "OPTION_COUNT",
    "Question",
    "QuestionParseError",
    "QuizResults",
    "Progress",
    "SessionState",
    "QuizSession",
    "FALLBACK_QUESTION",
    "EXPLANATION_FAILURE",
    "DOUBT_FAILURE",
    "parse_question",
]

OPTION_COUNT = 4

EXPLANATION_FAILURE = "Failed to load explanation."
DOUBT_FAILURE = "Failed to get answer. Please try again."


class QuestionParseError(ValueError):
    """Raised when a model response does not describe a valid question."""


@dataclass(frozen=True)
class Question:
    """One multiple-choice item with exactly four options."""

    text: str
    options: tuple[str, ...]
    correct_index: int

    def __post_init__(self) -> None:
        if len(self.options) != OPTION_COUNT:
            raise QuestionParseError(
                f"Expected {OPTION_COUNT} options, got {len(self.options)}."
            )
        if not 0 <= self.correct_index < OPTION_COUNT:
            raise QuestionParseError(
                f"correct_index {self.correct_index} is out of range."
            )

    @property
    def correct_option(self) -> str:
        return self.options[self.correct_index]


FALLBACK_QUESTION = Question(
    text="Failed to load question. Please try again.",
    options=("Error",) * OPTION_COUNT,
    correct_index=0,
)


@dataclass(frozen=True)
class QuizResults:
    total: int
    correct: int
    wrong: int
    percentage: int


@dataclass(frozen=True)
class Progress:
    """Position of the current question; ``total`` is None when unlimited."""

    current: int
    total: int | None

    def label(self) -> str:
        total = "∞" if self.total is None else str(self.total)
        return f"Question {self.current} / {total}"


@dataclass
class SessionState:
    score: int = 0
    questions_answered: int = 0
    wrong_answers: int = 0
    question_limit: int = 0
    time_limit_seconds: int = 0
    current_question: Question | None = field(default=None)


def _extract_json_object(content: str) -> Any:
    fenced = re.search(
        r"```(?:json)?\s*(.+?)```", content, re.DOTALL | re.IGNORECASE
    )
    payload = fenced.group(1) if fenced else content
    start, end = payload.find("{"), payload.rfind("}")
    if start != -1 and end > start:
        payload = payload[start : end + 1]
    try:
        return json.loads(payload)
    except json.JSONDecodeError as exc:
        raise QuestionParseError(f"Response is not valid JSON: {exc}") from exc
    except RecursionError as exc:
        raise QuestionParseError("Response JSON is nested too deeply.") from exc


def _resolve_correct_index(raw: Any) -> int:
    if isinstance(raw, bool):
        raise QuestionParseError("correctIndex must be an integer.")
    if isinstance(raw, int):
        return raw
    if isinstance(raw, str) and raw.strip().isdigit():
        return int(raw.strip())
    raise QuestionParseError("correctIndex must be an integer.")


def parse_question(content: str) -> Question:
    """Parse a model response into a :class:`Question`.

    The response must be a JSON object with ``question``, ``options`` (four
    non-empty strings) and a zero-based ``correctIndex``. A surrounding
    Markdown code fence or leading prose is tolerated.
    """

    data = _extract_json_object(content or "")
    if not isinstance(data, dict):
        raise QuestionParseError("Response must be a JSON object.")
    text = data.get("question")
    if not isinstance(text, str) or not text.strip():
        raise QuestionParseError("Question text is missing.")
    options = data.get("options")
    if not isinstance(options, list):
        raise QuestionParseError("Options must be a list.")
    cleaned = tuple(str(option).strip() for option in options)
    if any(not option for option in cleaned):
        raise QuestionParseError("Options must be non-empty strings.")
    raw_index = data.get("correctIndex", data.get("correct_index"))
    return Question(
        text=text.strip(),
        options=cleaned,
        correct_index=_resolve_correct_index(raw_index),
    )


class QuizSession:
    """Score keeping and generation requests for one quiz run."""

    def __init__(
        self,
        client: TextGenerator,
        *,
        logger: logging.Logger | None = None,
    ) -> None:
        self._client = client
        self._logger = logger or logging.getLogger(__name__)
        self.state = SessionState()

    def configure(self, *, time_limit: int, question_limit: int) -> None:
        self.reset()
        self.state.time_limit_seconds = time_limit
        self.state.question_limit = question_limit

    def reset(self) -> None:
        self.state = SessionState()

    def limit_reached(self) -> bool:
        limit = self.state.question_limit
        return bool(limit) and self.state.questions_answered >= limit

    def progress(self) -> Progress:
        limit = self.state.question_limit
        return Progress(
            current=self.state.questions_answered + 1,
            total=limit or None,
        )

    def record_answer(self, index: int) -> bool:
        """Score ``index`` against the current question; return correctness."""

        question = self.state.current_question
        if question is None:
            raise RuntimeError("No question is loaded.")
        is_correct = index == question.correct_index
        self.state.questions_answered += 1
        if is_correct:
            self.state.score += 1
        else:
            self.state.wrong_answers += 1
        return is_correct

    def record_timeout(self) -> None:
        if self.state.current_question is None:
            raise RuntimeError("No question is loaded.")
        self.state.questions_answered += 1
        self.state.wrong_answers += 1

    async def generate_question(self, topic: str) -> Question | None:
        """Return a fresh question, or None once the limit is reached."""

        if self.limit_reached():
            return None
        prompt = prompts.build_question_prompt(topic)
        try:
            response = await self._client.request(prompt)
            question = parse_question(response)
        except (RequestError, QuestionParseError) as exc:
            self._logger.warning(
                "Question generation failed; using fallback",
                extra={"topic": topic, "error": str(exc)},
            )
            return FALLBACK_QUESTION
        self._logger.info("Generated question", extra={"topic": topic})
        return question

    async def get_explanation(self, question: Question) -> str:
        prompt = prompts.build_explanation_prompt(question)
        try:
            return await self._client.request(prompt)
        except RequestError as exc:
            self._logger.warning(
                "Explanation request failed", extra={"error": str(exc)}
            )
            return EXPLANATION_FAILURE

    async def ask_doubt(self, doubt: str, question: Question) -> str:
        prompt = prompts.build_doubt_prompt(doubt, question)
        try:
            return await self._client.request(prompt)
        except RequestError as exc:
            self._logger.warning(
                "Doubt request failed", extra={"error": str(exc)}
            )
            return DOUBT_FAILURE

    def get_results(self) -> QuizResults:
        total = self.state.questions_answered
        correct = self.state.score
        percentage = math.floor(100 * correct / total + 0.5) if total else 0
        return QuizResults(
            total=total,
            correct=correct,
            wrong=self.state.wrong_answers,
            percentage=percentage,
        )
