import datetime
import io
import subprocess
from dataclasses import replace
from typing import Dict, List, Optional, Sequence, Set

import pytest
from rich.console import Console

from crimsonhat.config import Config
from crimsonhat.errors import CommandError
from crimsonhat.host import Host
from crimsonhat.logger import RunContext, RunLogger
from crimsonhat.ui import nord_theme


def buffer_console() -> Console:
    return Console(
        file=io.StringIO(), theme=nord_theme, width=120, color_system=None, soft_wrap=True
    )


def package_name(arg: str) -> str:
    """Map a dnf install argument (name or release URL) to the rpm it registers."""
    if arg.endswith(".rpm"):
        base = arg.rsplit("/", 1)[-1][: -len(".noarch.rpm")]
        return base.rsplit("-", 1)[0]
    return arg


class FakeHost(Host):
    """In-memory Fedora box. Only ``run`` is simulated; the rest is the real Host."""

    def __init__(self) -> None:
        super().__init__(buffer_console())
        self.files: Dict[str, str] = {}
        self.packages: Set[str] = set()
        self.processes: Set[str] = set()
        self.gsettings: Dict[str, str] = {}
        self.lspci = ""
        self.lsblk = "NAME ROTA\n"
        self.release = "40"
        self.restart_code = 0
        self.root = False
        self.sudo_ok = True
        self.missing: Set[str] = set()
        self.fail: Set[str] = set()
        self.commands: List[str] = []

    def run(
        self,
        cmd: Sequence[str],
        sudo: bool = False,
        quiet: bool = False,
        check: bool = True,
        input_text: Optional[str] = None,
        description: Optional[str] = None,
    ) -> subprocess.CompletedProcess:
        argv = list(cmd)
        line = " ".join(argv)
        if argv[0] in self.missing:
            raise CommandError(argv)
        self.commands.append(line)
        if any(line.startswith(prefix) for prefix in self.fail):
            code, out = 1, ""
        else:
            code, out = self._simulate(argv, input_text or "")
        if check and code != 0:
            raise CommandError((["sudo"] if sudo else []) + argv, code, "simulated failure")
        return subprocess.CompletedProcess(argv, code, out, "")

    def _simulate(self, argv: List[str], input_text: str):
        name, args = argv[0], argv[1:]
        if name == "rpm" and args[0] == "-q":
            return (0 if args[1] in self.packages else 1), ""
        if name == "rpm" and args[0] == "-E":
            return 0, f"{self.release}\n"
        if name == "dnf" and args[0] == "install":
            for arg in args[1:]:
                if not arg.startswith("-"):
                    self.packages.add(package_name(arg))
            return 0, ""
        if name == "tee":
            if args[0] == "-a":
                self.files[args[1]] = self.files.get(args[1], "") + input_text
            else:
                self.files[args[0]] = input_text
            return 0, input_text
        if name == "cp":
            if args[0] not in self.files:
                return 1, ""
            self.files[args[1]] = self.files[args[0]]
            return 0, ""
        if name == "lspci":
            return 0, self.lspci
        if name == "lsblk":
            return 0, self.lsblk
        if name == "needs-restarting":
            return self.restart_code, ""
        if name == "pgrep":
            return (0 if args[-1] in self.processes else 1), ""
        if name == "gsettings":
            key = f"{args[1]} {args[2]}"
            if args[0] == "get":
                if key not in self.gsettings:
                    return 1, ""
                return 0, f"{self.gsettings[key]}\n"
            self.gsettings[key] = args[3]
            return 0, ""
        if name == "sudo":
            return (0 if self.sudo_ok else 1), ""
        return 0, ""

    def read_text(self, path: str) -> Optional[str]:
        return self.files.get(path)

    def exists(self, path: str) -> bool:
        return path in self.files

    def is_root(self) -> bool:
        return self.root

    def command_exists(self, name: str) -> bool:
        return name not in self.missing

    def kernel_release(self) -> str:
        return "6.9.4-200.fc40.x86_64"

    def ran(self, prefix: str) -> List[str]:
        return [c for c in self.commands if c.startswith(prefix)]


class FakePrompter:
    """Answers questions from a script; anything unscripted gets ``default``."""

    def __init__(self, answers: Optional[Dict[str, bool]] = None, default: bool = True) -> None:
        self.answers = answers or {}
        self.default = default
        self.asked: List[str] = []

    def ask(self, question: str) -> bool:
        self.asked.append(question)
        return self.answers.get(question, self.default)


@pytest.fixture
def config(tmp_path) -> Config:
    return replace(Config(), LOG_DIR=str(tmp_path))


@pytest.fixture
def host() -> FakeHost:
    return FakeHost()


@pytest.fixture
def prompter() -> FakePrompter:
    return FakePrompter()


@pytest.fixture
def run_context(tmp_path) -> RunContext:
    return RunContext(
        log_path=tmp_path / "crimsonhat_20240501_120000.log",
        started_at=datetime.datetime(2024, 5, 1, 12, 0, 0),
    )


@pytest.fixture
def log(run_context):
    run_log = RunLogger(run_context, buffer_console(), buffer_console())
    yield run_log
    run_log.close()


def output(console: Console) -> str:
    return console.file.getvalue()
