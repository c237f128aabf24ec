import sys

import click

from crimsonhat.config import Config
from crimsonhat.host import Host
from crimsonhat.logger import RunContext, RunLogger
from crimsonhat.orchestrator import Optimizer
from crimsonhat.prompter import Prompter
from crimsonhat.ui import make_console


def build_optimizer(config: Config) -> Optimizer:
    console = make_console()
    err_console = make_console(stderr=True)
    context = RunContext.create(config)
    log = RunLogger(context, console, err_console)
    host = Host(console)
    prompter = Prompter(log)
    return Optimizer(config, host, log, prompter, console)


@click.command()
def main() -> None:
    """Interactively tune a fresh Fedora install.

    Updates packages, tunes DNF, enables RPM Fusion, installs codecs and GPU
    drivers, tunes the primary disk and GNOME, then prints a summary.
    """
    optimizer = build_optimizer(Config())
    try:
        code = optimizer.run()
    except KeyboardInterrupt:
        optimizer.log.warn("Operation cancelled by user.")
        code = 130
    finally:
        optimizer.log.close()
    sys.exit(code)
