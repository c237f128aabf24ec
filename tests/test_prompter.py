from unittest.mock import patch

import pytest

from crimsonhat.prompter import PROMPT_STYLE, Prompter


@pytest.fixture
def real_prompter(log):
    return Prompter(log)


@pytest.mark.parametrize("response", ["", "y", "Y"])
@patch("crimsonhat.prompter.pt_prompt")
def test_affirmative_answers(mock_prompt, real_prompter, response):
    mock_prompt.return_value = response
    assert real_prompter.ask("Update system?") is True


@pytest.mark.parametrize("response", [" ", "\t", "y ", " Y", "  y\t"])
@patch("crimsonhat.prompter.pt_prompt")
def test_surrounding_whitespace_is_ignored(mock_prompt, real_prompter, run_context, response):
    mock_prompt.return_value = response
    assert real_prompter.ask("Update system?") is True
    text = run_context.log_path.read_text(encoding="utf-8")
    assert "[PROMPT] Update system? -> yes" in text


@pytest.mark.parametrize("response", ["n", "N", "no", "yes", " n ", "q"])
@patch("crimsonhat.prompter.pt_prompt")
def test_anything_else_declines(mock_prompt, real_prompter, response):
    mock_prompt.return_value = response
    assert real_prompter.ask("Update system?") is False


@patch("crimsonhat.prompter.pt_prompt", side_effect=EOFError)
def test_closed_stdin_declines(mock_prompt, real_prompter):
    assert real_prompter.ask("Update system?") is False


@patch("crimsonhat.prompter.pt_prompt", return_value="")
def test_prompt_shows_question_and_hint(mock_prompt, real_prompter):
    real_prompter.ask("Install GPU drivers?")

    message = mock_prompt.call_args.args[0]
    assert "".join(text for _, text in message) == "[ ? ] Install GPU drivers? [Y/n]: "
    assert mock_prompt.call_args.kwargs["style"] is PROMPT_STYLE


@patch("crimsonhat.prompter.pt_prompt", return_value="n")
def test_answer_is_recorded_in_log_file(mock_prompt, real_prompter, run_context):
    real_prompter.ask("Clean system?")
    text = run_context.log_path.read_text(encoding="utf-8")
    assert "[PROMPT] Clean system? -> no" in text
