"""Fakes for the text-generation client and the quiz view.

``FakeGenerator`` satisfies the ``TextGenerator`` protocol without network
access: queue strings to return, exceptions to raise, or :class:`Gate`
objects that hold the request open until the test releases them.
``RecordingView`` implements every ``QuizView`` call and keeps an ordered log.
"""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass, field
from typing import Any, Callable, List, Sequence, Tuple

DEFAULT_RESPONSE = "Generated explanation"


@dataclass
class Gate:
    """A response that is only delivered after ``release`` is called."""

    text: str
    event: asyncio.Event = field(default_factory=asyncio.Event)

    def release(self) -> None:
        self.event.set()


class FakeGenerator:
    def __init__(self, responses: Sequence[Any] = ()) -> None:
        self.prompts: List[str] = []
        self._responses: List[Any] = list(responses)

    def queue(self, *items: Any) -> None:
        self._responses.extend(items)

    async def request(self, prompt: str) -> str:
        self.prompts.append(prompt)
        item = self._responses.pop(0) if self._responses else DEFAULT_RESPONSE
        if isinstance(item, BaseException):
            raise item
        if isinstance(item, Gate):
            await item.event.wait()
            return item.text
        return item


class RecordingView:
    def __init__(self) -> None:
        self.calls: List[Tuple[str, Tuple[Any, ...]]] = []

    def _record(self, name: str, *args: Any) -> None:
        self.calls.append((name, args))

    def names(self) -> List[str]:
        return [name for name, _ in self.calls]

    def args_for(self, name: str) -> List[Tuple[Any, ...]]:
        return [args for call, args in self.calls if call == name]

    def last(self, name: str) -> Tuple[Any, ...]:
        matches = self.args_for(name)
        assert matches, f"{name} was never rendered"
        return matches[-1]

    def render_setup(self) -> None:
        self._record("render_setup")

    def render_loading(self) -> None:
        self._record("render_loading")

    def render_question(self, question, progress) -> None:
        self._record("render_question", question, progress)

    def render_timer(self, remaining: int) -> None:
        self._record("render_timer", remaining)

    def render_answer(self, outcome) -> None:
        self._record("render_answer", outcome)

    def render_explanation(self, text: str) -> None:
        self._record("render_explanation", text)

    def render_doubt_answer(self, text: str) -> None:
        self._record("render_doubt_answer", text)

    def render_results(self, results) -> None:
        self._record("render_results", results)

    def notify(self, message: str) -> None:
        self._record("notify", message)


def question_json(
    text: str = "Which drug is first-line for stable angina?",
    options: Sequence[str] = (
        "Beta blocker",
        "Digoxin",
        "Warfarin",
        "Furosemide",
    ),
    correct: Any = 0,
) -> str:
    return json.dumps(
        {"question": text, "options": list(options), "correctIndex": correct}
    )


async def wait_until(
    predicate: Callable[[], bool], *, timeout: float = 2.0
) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not reached before timeout")
        await asyncio.sleep(0.005)
