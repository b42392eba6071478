from __future__ import annotations

from medquiz import prompts
from medquiz.session import Question


QUESTION = Question(
    text="Drug of choice for absence seizures?",
    options=("Phenytoin", "Ethosuximide", "Carbamazepine", "Phenobarbital"),
    correct_index=1,
)


def test_question_prompt_names_topic_and_json_shape():
    prompt = prompts.build_question_prompt("Pharmacology/CNS Drugs")

    assert "Pharmacology/CNS Drugs" in prompt
    assert '"question"' in prompt
    assert '"options"' in prompt
    assert '"correctIndex"' in prompt
    assert "zero-based" in prompt


def test_explanation_prompt_numbers_options_and_marks_answer():
    prompt = prompts.build_explanation_prompt(QUESTION)

    assert QUESTION.text in prompt
    assert (
        "1. Phenytoin, 2. Ethosuximide, 3. Carbamazepine, 4. Phenobarbital"
        in prompt
    )
    assert "Correct Answer: Ethosuximide" in prompt
    assert "CORRECT ANSWER (Ethosuximide):" in prompt
    assert "WHY OTHER OPTIONS ARE INCORRECT:" in prompt
    rebuttals = prompt.split("WHY OTHER OPTIONS ARE INCORRECT:")[1]
    for wrong in ("Phenytoin", "Carbamazepine", "Phenobarbital"):
        assert f"{wrong}:" in rebuttals
    assert "Ethosuximide:" not in rebuttals


def test_doubt_prompt_quotes_question_and_doubt():
    prompt = prompts.build_doubt_prompt("Why not valproate?", QUESTION)

    assert f'"{QUESTION.text}"' in prompt
    assert '"Why not valproate?"' in prompt
    assert "medical students" in prompt
