from typing import Optional, Sequence

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from crimsonhat.config import Config
from crimsonhat.errors import CommandError
from crimsonhat.host import Host
from crimsonhat.logger import RunLogger
from crimsonhat.steps import StepOutcome, StepResult
from crimsonhat.ui import NordColors

OUTCOME_STYLES = {
    StepOutcome.SKIPPED: "debug",
    StepOutcome.SATISFIED: "notice",
    StepOutcome.SUCCEEDED: "success",
    StepOutcome.FAILED: "error",
}


class SummaryReporter:
    def __init__(self, config: Config, host: Host, log: RunLogger, console: Console) -> None:
        self.config = config
        self.host = host
        self.log = log
        self.console = console

    def status_table(self, results: Sequence[StepResult]) -> Table:
        table = Table(show_header=True, header_style=f"bold {NordColors.FROST_3}", expand=True)
        table.add_column("Step", style="bold")
        table.add_column("Outcome")
        table.add_column("Detail", style=NordColors.SNOW_STORM_1)
        for result in results:
            style = OUTCOME_STYLES[result.outcome]
            table.add_row(
                result.title,
                Text(result.outcome.value.upper(), style=style),
                result.detail,
            )
        return table

    def fedora_version(self) -> str:
        try:
            return self.host.fedora_release() or "Unknown"
        except CommandError:
            return "Unknown"

    def report(self, results: Sequence[StepResult]) -> bool:
        """Print the summary. Returns whether a reboot is required."""
        self.console.print()
        self.console.print(
            Panel(
                Text("SUMM4RY", justify="center", style=f"bold {NordColors.FROST_2}"),
                border_style=NordColors.FROST_1,
            )
        )
        self.log.success("System optimization complete.")
        self.console.print()

        self.log.notice("Changes made:")
        for change in self.config.CHANGES:
            self.console.print(f"  • {change}")
        self.console.print()
        self.console.print(self.status_table(results))
        self.console.print()

        self.log.notice("System Information:")
        self.console.print(f"  • OS: Fedora {self.fedora_version()}")
        self.console.print(f"  • Kernel: linux {self.host.kernel_release()}")
        self.console.print(f"  • Desktop: {self.host.desktop_name()}")
        self.console.print(f"  • Started: {self.log.started_at:%Y-%m-%d %H:%M:%S}")
        self.console.print()
        self.log.info(f"Log file saved: {self.log.log_path}")
        self.console.print()

        return self.advise_reboot(results)

    def advise_reboot(self, results: Sequence[StepResult]) -> bool:
        flagged = [r.title for r in results if r.reboot_required]
        advisory: Optional[bool] = self.host.reboot_required()
        if flagged or advisory:
            self.log.warn("System reboot is REQUIRED to apply all changes.")
            return True
        if advisory is None:
            self.log.notice("Could not determine whether a reboot is needed. Reboot recommended.")
        else:
            self.log.notice("No reboot needed, but recommended for best results.")
        return False
