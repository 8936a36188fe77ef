"""Prompt template contract: counts, answer index range, bare JSON array, material appended verbatim."""
from app.services.prompt_helpers import QUIZ_PROMPT_TEMPLATE, build_quiz_prompt


def test_prompt_states_the_output_contract():
    prompt = build_quiz_prompt("Some material.")
    assert "exactly 10" in prompt
    assert "exactly 4 options" in prompt
    assert "0, 1, 2, or 3" in prompt
    assert "explanation" in prompt
    assert "JSON array only" in prompt


def test_material_is_embedded_verbatim_after_the_instructions():
    material = 'Braces {like} these and "quotes" stay as-is.\n\nSecond paragraph.'
    prompt = build_quiz_prompt(material)
    assert material in prompt
    prefix = QUIZ_PROMPT_TEMPLATE.split("{material}")[0]
    assert prompt.startswith(prefix.replace("{{", "{").replace("}}", "}"))


def test_prompt_is_deterministic():
    assert build_quiz_prompt("abc") == build_quiz_prompt("abc")
    assert build_quiz_prompt("abc") != build_quiz_prompt("abd")
