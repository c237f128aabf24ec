"""Run logging: colored console lines plus a plain per-run log file.

Every line the tool emits goes through :class:`RunLogger`. The console gets a
Nord-colored severity tag, the log file gets
``[YYYY-MM-DD HH:MM:SS] [LEVEL] message``.
"""

import datetime
import enum
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

from rich.console import Console
from rich.text import Text

from crimsonhat.config import Config
from crimsonhat.ui import NordColors

LOGGER_NAME = "crimsonhat"
FILE_FORMAT = "[%(asctime)s] [%(severity)s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class Severity(enum.Enum):
    INFO = "INFO"
    SUCCESS = "SUCCESS"
    NOTICE = "NOTICE"
    WARN = "WARN"
    ERROR = "ERROR"
    PROMPT = "PROMPT"


@dataclass(frozen=True)
class SeverityFormat:
    tag: str
    style: str
    level: int


SEVERITY_FORMATS: Dict[Severity, SeverityFormat] = {
    Severity.INFO: SeverityFormat("[ - ]", NordColors.FROST_3, logging.INFO),
    Severity.SUCCESS: SeverityFormat("[ + ]", NordColors.GREEN, logging.INFO),
    Severity.NOTICE: SeverityFormat("[ # ]", NordColors.FROST_1, logging.INFO),
    Severity.WARN: SeverityFormat("[ * ]", NordColors.YELLOW, logging.WARNING),
    Severity.ERROR: SeverityFormat("[ ! ]", NordColors.RED, logging.ERROR),
    Severity.PROMPT: SeverityFormat("[ ? ]", NordColors.PURPLE, logging.INFO),
}


@dataclass(frozen=True)
class RunContext:
    """The per-invocation log file. Created once at start-up."""

    log_path: Path
    started_at: datetime.datetime

    @classmethod
    def create(
        cls, config: Config, now: Optional[datetime.datetime] = None
    ) -> "RunContext":
        now = now or datetime.datetime.now()
        name = f"{config.APP_SLUG}_{now.strftime('%Y%m%d_%H%M%S')}.log"
        return cls(log_path=Path(config.LOG_DIR) / name, started_at=now)


class _SeverityFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "severity"):
            record.severity = record.levelname
        return True


class BestEffortFileHandler(logging.FileHandler):
    """Append-only file handler whose open and write failures never reach the run."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            super().emit(record)
        except OSError:
            pass

    def handleError(self, record: logging.LogRecord) -> None:
        pass


def setup_logger(context: RunContext) -> logging.Logger:
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG)
    logger.propagate = False
    for h in logger.handlers[:]:
        logger.removeHandler(h)
        h.close()

    # delay=True: nothing touches the disk until the first record.
    file_handler = BestEffortFileHandler(
        context.log_path, mode="a", encoding="utf-8", delay=True
    )
    file_handler.setLevel(logging.INFO)
    file_handler.addFilter(_SeverityFilter())
    file_handler.setFormatter(logging.Formatter(FILE_FORMAT, DATE_FORMAT))
    logger.addHandler(file_handler)
    return logger


class RunLogger:
    def __init__(
        self,
        context: RunContext,
        console: Console,
        err_console: Console,
        formats: Dict[Severity, SeverityFormat] = SEVERITY_FORMATS,
    ) -> None:
        self.context = context
        self.console = console
        self.err_console = err_console
        self.formats = formats
        self.logger = setup_logger(context)

    @property
    def log_path(self) -> Path:
        return self.context.log_path

    @property
    def started_at(self) -> datetime.datetime:
        return self.context.started_at

    def _line(self, severity: Severity, message: str) -> Text:
        fmt = self.formats[severity]
        return Text.assemble((fmt.tag, fmt.style), " ", message)

    def record(self, severity: Severity, message: str) -> None:
        """Write to the log file only."""
        fmt = self.formats[severity]
        self.logger.log(fmt.level, message, extra={"severity": severity.value})

    def log(self, severity: Severity, message: str) -> None:
        self.console.print(self._line(severity, message))
        self.record(severity, message)

    def log_error(self, message: str) -> None:
        self.err_console.print(self._line(Severity.ERROR, message))
        self.record(Severity.ERROR, message)

    def info(self, message: str) -> None:
        self.log(Severity.INFO, message)

    def success(self, message: str) -> None:
        self.log(Severity.SUCCESS, message)

    def notice(self, message: str) -> None:
        self.log(Severity.NOTICE, message)

    def warn(self, message: str) -> None:
        self.log(Severity.WARN, message)

    def prompt(self, message: str) -> None:
        self.log(Severity.PROMPT, message)

    def exception(self, message: str) -> None:
        """Log an error and keep the traceback in the file."""
        self.err_console.print(self._line(Severity.ERROR, message))
        self.logger.error(message, exc_info=True, extra={"severity": Severity.ERROR.value})

    def close(self) -> None:
        for h in self.logger.handlers[:]:
            h.flush()
            h.close()
