from prompt_toolkit import prompt as pt_prompt
from prompt_toolkit.formatted_text import FormattedText
from prompt_toolkit.styles import Style as PtStyle

from crimsonhat.logger import SEVERITY_FORMATS, RunLogger, Severity
from crimsonhat.ui import NordColors

AFFIRMATIVE = ("", "y", "Y")

PROMPT_STYLE = PtStyle.from_dict(
    {
        "tag": f"bold {NordColors.PURPLE}",
        "yes": f"bold {NordColors.GREEN}",
        "no": f"bold {NordColors.RED}",
    }
)


class Prompter:
    """Blocking yes/no questions. An empty answer means yes."""

    def __init__(self, log: RunLogger) -> None:
        self.log = log

    def message(self, question: str) -> FormattedText:
        tag = SEVERITY_FORMATS[Severity.PROMPT].tag
        return FormattedText(
            [
                ("class:tag", tag),
                ("", f" {question} ["),
                ("class:yes", "Y"),
                ("", "/"),
                ("class:no", "n"),
                ("", "]: "),
            ]
        )

    def ask(self, question: str) -> bool:
        try:
            response = pt_prompt(self.message(question), style=PROMPT_STYLE)
        except EOFError:
            # EOF declines.
            response = "n"
        answer = response.strip(" \t\n") in AFFIRMATIVE
        self.log.record(Severity.PROMPT, f"{question} -> {'yes' if answer else 'no'}")
        return answer
