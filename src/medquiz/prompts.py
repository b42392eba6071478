"""Prompt templates for question generation, explanations and doubts."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover
    from .session import Question

SYSTEM_PROMPT = (
    "You are an expert medical educator preparing students for licensing "
    "examinations. Be accurate and concise."
)


def build_question_prompt(topic: str) -> str:
    return (
        f"Generate a multiple choice question about {topic} with 4 options "
        "and mark the correct answer. Format the response exactly as follows, "
        "with no other text:\n"
        "{\n"
        '    "question": "The question text here",\n'
        '    "options": ["Option 1", "Option 2", "Option 3", "Option 4"],\n'
        '    "correctIndex": correct_option_index_here\n'
        "}\n"
        "correctIndex is the zero-based position (0-3) of the correct option "
        "in the options list."
    )


def build_explanation_prompt(question: "Question") -> str:
    options = question.options
    correct = options[question.correct_index]
    numbered = ", ".join(
        f"{position}. {option}"
        for position, option in enumerate(options, start=1)
    )
    rebuttals = "\n\n".join(
        f"{option}:\n"
        "• Point 1 why it's wrong\n"
        "• Point 2 why it's wrong"
        for index, option in enumerate(options)
        if index != question.correct_index
    )
    return (
        "For this medical question and its options:\n"
        f'Question: "{question.text}"\n'
        f"Options: {numbered}\n"
        f"Correct Answer: {correct}\n\n"
        "Please provide a point-wise explanation in this exact format:\n"
        f"CORRECT ANSWER ({correct}):\n"
        "• Point 1 about why it's correct\n"
        "• Point 2 about why it's correct\n\n"
        "WHY OTHER OPTIONS ARE INCORRECT:\n"
        f"{rebuttals}"
    )


def build_doubt_prompt(doubt: str, question: "Question") -> str:
    return (
        "Regarding this medical question:\n"
        f'"{question.text}"\n\n'
        f'User\'s doubt: "{doubt}"\n\n'
        "Please provide a clear, detailed explanation addressing this "
        "specific doubt in the context of the question.\n"
        "Focus on medical accuracy and explain in a way that's helpful for "
        "medical students."
    )
