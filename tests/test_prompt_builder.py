import pytest

from app.core.exceptions import InvalidInput
from app.services.prompt_builder import build_analysis_prompt


def test_prompt_embeds_trimmed_text():
    prompt = build_analysis_prompt("   I skipped the gym again.  \n")

    assert '"I skipped the gym again."' in prompt
    assert prompt.rstrip().endswith("JSON Response:")


def test_prompt_requests_the_analysis_schema():
    prompt = build_analysis_prompt("Quiet day.")

    for key in ("summary", "sentiment", "sentiment_reasoning", "wrongdoings_and_solutions", "overall_score"):
        assert f'"{key}"' in prompt
    assert "Respond ONLY with valid JSON" in prompt
    assert '"Positive", "Negative", or "Neutral"' in prompt


def test_prompt_is_deterministic():
    assert build_analysis_prompt("Same text") == build_analysis_prompt("Same text")


def test_braces_in_user_text_are_kept_verbatim():
    prompt = build_analysis_prompt("I wrote {notes} today")

    assert '"I wrote {notes} today"' in prompt


@pytest.mark.parametrize("bad_input", ["", "   ", "\n\t", None, 42, ["text"]])
def test_rejects_empty_or_non_string_input(bad_input):
    with pytest.raises(InvalidInput):
        build_analysis_prompt(bad_input)
