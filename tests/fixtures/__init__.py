"""Shared testing fixtures and fakes for the medquiz test suite."""

from .quiz import (  # noqa: F401
    FakeGenerator,
    Gate,
    RecordingView,
    question_json,
    wait_until,
)

__all__ = [
    "FakeGenerator",
    "Gate",
    "RecordingView",
    "question_json",
    "wait_until",
]
