from typing import List, Optional, Sequence

from rich.console import Console

from crimsonhat.config import Config
from crimsonhat.errors import PrerequisiteError
from crimsonhat.host import Host
from crimsonhat.logger import RunLogger
from crimsonhat.prompter import Prompter
from crimsonhat.steps import STEP_CLASSES, Step, StepOutcome, StepResult
from crimsonhat.summary import SummaryReporter
from crimsonhat.ui import create_header, print_section


class Optimizer:
    """Runs the fixed checklist, then the summary.

    Prerequisite failures end the run with status 1 before any step starts.
    Step failures are logged and the next step runs regardless.
    """

    def __init__(
        self,
        config: Config,
        host: Host,
        log: RunLogger,
        prompter: Prompter,
        console: Console,
        steps: Optional[Sequence[Step]] = None,
    ) -> None:
        self.config = config
        self.host = host
        self.log = log
        self.prompter = prompter
        self.console = console
        self.steps: List[Step] = list(
            steps
            if steps is not None
            else (cls(config, host, log, prompter) for cls in STEP_CLASSES)
        )
        self.summary = SummaryReporter(config, host, log, console)
        self.results: List[StepResult] = []

    def check_prerequisites(self) -> None:
        if self.host.is_root():
            raise PrerequisiteError("Do not run as root.")
        if not self.host.validate_sudo():
            raise PrerequisiteError("Use sudo.")
        if not self.host.command_exists("dnf"):
            raise PrerequisiteError("DNF not found. Are you running Fedora?")

    def show_banner(self) -> None:
        self.console.print(create_header())
        self.console.print()

    def run_step(self, step: Step) -> StepResult:
        print_section(self.console, step.title)
        try:
            result = step.run()
        except Exception as e:
            # Steps report their own failures; this only catches bugs.
            self.log.exception(f"{step.title} crashed: {e}")
            result = step.result(StepOutcome.FAILED, str(e))
        return result

    def run(self) -> int:
        self.show_banner()
        try:
            self.check_prerequisites()
        except PrerequisiteError as e:
            self.log.log_error(str(e))
            return 1
        self.log.success("Prerequisites checked.")
        self.log.notice(f"Log file: {self.log.log_path}")
        self.console.print()

        self.results = [self.run_step(step) for step in self.steps]
        self.log.success("System Optimized.")
        self.summary.report(self.results)
        return 0
