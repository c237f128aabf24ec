"""Checklist steps.

Each step is prompted, then checked, then (only if needed) applied:
``Prompted -> {Skipped | Checking}``, ``Checking -> {Satisfied | Mutating}``,
``Mutating -> {Succeeded | Failed}``. A failing step never raises; it returns
a FAILED result and the run moves on.
"""

import enum
from dataclasses import dataclass
from typing import Iterable, List, Optional

from crimsonhat import checks
from crimsonhat.checks import DiskDescriptor
from crimsonhat.config import Config
from crimsonhat.errors import CommandError, NonFatalError
from crimsonhat.host import Host
from crimsonhat.logger import RunLogger
from crimsonhat.prompter import Prompter


class StepOutcome(enum.Enum):
    SKIPPED = "skipped"
    SATISFIED = "already satisfied"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class StepResult:
    step: str
    title: str
    outcome: StepOutcome
    detail: str = ""
    reboot_required: bool = False

    @property
    def failed(self) -> bool:
        return self.outcome is StepOutcome.FAILED


def combine(outcomes: Iterable[StepOutcome]) -> StepOutcome:
    """Fold several sub-outcomes into one: any failure wins, then any change."""
    seen = list(outcomes)
    if StepOutcome.FAILED in seen:
        return StepOutcome.FAILED
    if StepOutcome.SUCCEEDED in seen:
        return StepOutcome.SUCCEEDED
    if StepOutcome.SATISFIED in seen:
        return StepOutcome.SATISFIED
    return StepOutcome.SKIPPED


class Step:
    key: str = ""
    title: str = ""
    question: str = ""
    skip_message: str = ""

    def __init__(self, config: Config, host: Host, log: RunLogger, prompter: Prompter) -> None:
        self.config = config
        self.host = host
        self.log = log
        self.prompter = prompter

    def run(self) -> StepResult:
        if not self.prompter.ask(self.question):
            self.log.notice(self.skip_message)
            return self.result(StepOutcome.SKIPPED, "declined")
        return self.apply()

    def apply(self) -> StepResult:
        raise NotImplementedError

    def result(
        self, outcome: StepOutcome, detail: str = "", reboot_required: bool = False
    ) -> StepResult:
        return StepResult(self.key, self.title, outcome, detail, reboot_required)


# ----------------------------------------------------------------
# System update
# ----------------------------------------------------------------
class SystemUpdateStep(Step):
    key = "update"
    title = "System update"

    def run(self) -> StepResult:
        outcomes: List[StepOutcome] = []

        if self.prompter.ask("Update system?"):
            self.log.info("Updating system.")
            try:
                self.host.dnf(["upgrade", "-y"], quiet=False)
                self.log.success("System updated successfully.")
                outcomes.append(StepOutcome.SUCCEEDED)
            except CommandError as e:
                self.log.log_error(f"System failed to update: {e}")
                outcomes.append(StepOutcome.FAILED)
        else:
            self.log.notice("Skipping system update.")

        if self.prompter.ask("Clean system?"):
            try:
                self.host.dnf(["autoremove", "-y"], quiet=False)
                self.log.success("System cleaned successfully.")
                outcomes.append(StepOutcome.SUCCEEDED)
            except CommandError as e:
                self.log.log_error(f"System clean failed: {e}")
                outcomes.append(StepOutcome.FAILED)
        else:
            self.log.notice("Skipping system clean.")

        return self.result(combine(outcomes))


# ----------------------------------------------------------------
# DNF configuration
# ----------------------------------------------------------------
class DnfTuningStep(Step):
    key = "dnf"
    title = "DNF tuning"
    question = "Configure DNF package manager?"
    skip_message = "Skipping DNF configuration."

    def apply(self) -> StepResult:
        conf = self.config.DNF_CONF
        missing = checks.missing_dnf_settings(
            self.host.read_text(conf), self.config.DNF_SETTINGS
        )
        if not missing:
            self.log.success("DNF already configured.")
            return self.result(StepOutcome.SATISFIED)

        self.log.info("Optimizing DNF.")
        for setting in missing:
            try:
                self.host.append_line(conf, setting)
            except CommandError as e:
                self.log.log_error(f"DNF configuration error: {e}")
                return self.result(StepOutcome.FAILED, str(e))
            self.log.success(f"Added {setting} to DNF config.")
        return self.result(StepOutcome.SUCCEEDED, ", ".join(missing))


# ----------------------------------------------------------------
# RPM Fusion repositories
# ----------------------------------------------------------------
class RepositoryStep(Step):
    key = "repos"
    title = "RPM Fusion"
    question = "Install third-party repos?"
    skip_message = "Skipping RPM Fusion third-party repos installation."

    def package_source(self, package: str, release: str) -> str:
        """Release URL for a repo package, or the bare name if the release is unknown."""
        if not release.isdigit():
            return package
        flavor = package.split("-")[1]
        return self.config.RPM_FUSION_URL.format(flavor=flavor, release=release)

    def apply(self) -> StepResult:
        missing = checks.missing_packages(self.host, self.config.RPM_FUSION_PACKAGES)
        if not missing:
            self.log.success("RPM Fusion already installed.")
            return self.result(StepOutcome.SATISFIED)

        self.log.info("Installing RPM Fusion.")
        try:
            release = self.host.fedora_release()
            sources = [self.package_source(pkg, release) for pkg in missing]
            self.host.dnf(["install", "-y", *sources], description="Installing RPM Fusion")
        except CommandError as e:
            self.log.notice(f"RPM installation failed: {e}")
            return self.result(StepOutcome.FAILED, str(e))
        self.log.success("RPM Fusion installed.")
        return self.result(StepOutcome.SUCCEEDED, ", ".join(missing))


# ----------------------------------------------------------------
# Multimedia codecs
# ----------------------------------------------------------------
class CodecStep(Step):
    key = "codecs"
    title = "Multimedia codecs"
    question = "Install multimedia codecs?"
    skip_message = "Skipping multimedia codecs."

    def apply(self) -> StepResult:
        if checks.codecs_installed(self.host, self.config):
            self.log.success("Multimedia codecs already installed.")
            return self.result(StepOutcome.SATISFIED)

        self.log.info("Installing multimedia codecs.")
        args = [
            "install",
            "-y",
            *self.config.CODEC_PACKAGES,
            f"--exclude={self.config.CODEC_EXCLUDE}",
            "--allowerasing",
        ]
        try:
            self.host.dnf(args, description="Multimedia codecs")
        except CommandError as e:
            self.log.warn(f"Failed to install multimedia codecs: {e}")
            return self.result(StepOutcome.FAILED, str(e))
        self.log.success("Multimedia codecs installed.")
        return self.result(StepOutcome.SUCCEEDED)


# ----------------------------------------------------------------
# GPU drivers
# ----------------------------------------------------------------
class GpuDriverStep(Step):
    key = "gpu"
    title = "GPU drivers"
    question = "Install GPU drivers?"
    skip_message = "Skipping GPU optimization."

    def apply(self) -> StepResult:
        try:
            listing = self.host.pci_devices()
        except CommandError as e:
            self.log.warn(f"Could not list PCI devices: {e}")
            return self.result(StepOutcome.FAILED, str(e))

        if not checks.display_controllers(listing, self.config.DISPLAY_CLASSES):
            self.log.warn("No GPU detected. Ensure GPU is connected.")
            return self.result(StepOutcome.FAILED, "no GPU detected")

        vendors = checks.detect_gpu_vendors(
            listing, self.config.GPU_DRIVERS, self.config.DISPLAY_CLASSES
        )
        if not vendors:
            self.log.notice("No supported GPU vendor detected.")
            return self.result(StepOutcome.SKIPPED, "no supported vendor")

        outcomes = []
        reboot = False
        for tag in vendors:
            outcome = self.install_vendor(tag)
            outcomes.append(outcome)
            if outcome is StepOutcome.SUCCEEDED and self.config.GPU_DRIVERS[tag].needs_reboot:
                reboot = True
        return self.result(combine(outcomes), ", ".join(vendors), reboot_required=reboot)

    def install_vendor(self, tag: str) -> StepOutcome:
        driver = self.config.GPU_DRIVERS[tag]
        self.log.notice(f"{driver.label} GPU detected.")

        if checks.gpu_driver_installed(self.host, driver):
            self.log.success(f"{driver.label} drivers already installed.")
            return StepOutcome.SATISFIED

        self.log.info(f"Installing {driver.label} drivers.")
        try:
            self.host.dnf(
                ["install", "-y", *driver.install],
                description=f"Installing {driver.label} drivers.",
            )
        except CommandError as e:
            self.log.warn(f"Failed to install {driver.label} drivers: {e}")
            return StepOutcome.FAILED

        self.log.success(f"{driver.label} drivers installed.")
        if driver.needs_reboot:
            self.log.warn(f"Reboot required for {driver.label} drivers to take effect.")
        return StepOutcome.SUCCEEDED


# ----------------------------------------------------------------
# Disk performance
# ----------------------------------------------------------------
def replace_setting(conf_text: str, key: str, line: str) -> str:
    """Rewrite every active ``key=...`` line of a sysctl.conf body to ``line``."""
    out = []
    for raw in conf_text.splitlines():
        stripped = raw.strip()
        if (
            stripped
            and not stripped.startswith(("#", ";"))
            and stripped.partition("=")[0].strip() == key
        ):
            out.append(line)
        else:
            out.append(raw)
    return "\n".join(out) + "\n"


class DiskTuningStep(Step):
    key = "disk"
    title = "Disk tuning"
    question = "Optimize hard drive performance?"
    skip_message = "Skipping hard drive optimization."

    def detect_disk(self) -> Optional[DiskDescriptor]:
        try:
            return checks.parse_first_disk(self.host.block_devices())
        except CommandError:
            return None

    def apply(self) -> StepResult:
        disk = self.detect_disk()
        if disk is None:
            self.log.warn("Failed to detect disk type. Skipping disk optimization.")
            return self.result(StepOutcome.SKIPPED, "disk type unknown")
        if disk.is_ssd:
            return self.tune_ssd(disk)
        if disk.is_hdd:
            return self.tune_hdd(disk)
        self.log.warn(f"Unrecognized rotational flag '{disk.rotational}' for {disk.name}.")
        return self.result(StepOutcome.SKIPPED, "disk type unknown")

    def tune_ssd(self, disk: DiskDescriptor) -> StepResult:
        conf = self.config.SYSCTL_CONF
        self.log.notice(f"SSD detected ({disk.name}).")
        if checks.swappiness_configured(self.host, self.config):
            self.log.success("SSD already optimized.")
            return self.result(StepOutcome.SATISFIED, disk.name)

        self.log.info("Optimizing SSD.")
        if self.host.exists(conf):
            try:
                backup = self.host.backup_file(conf)
                self.log.info(f"Backed up {conf} to {backup}.")
            except NonFatalError as e:
                self.log.warn(f"{e} Continuing without a backup.")

        try:
            text = self.host.read_text(conf) or ""
            if checks.sysctl_value(text, self.config.SWAPPINESS_KEY) is None:
                self.host.append_line(conf, self.config.swappiness_line)
            else:
                self.host.write_text(
                    conf,
                    replace_setting(text, self.config.SWAPPINESS_KEY, self.config.swappiness_line),
                )
            self.host.reload_sysctl()
        except CommandError as e:
            self.log.warn(f"Failed to optimize SSD: {e}")
            return self.result(StepOutcome.FAILED, str(e))

        self.log.success("SSD optimized.")
        return self.result(StepOutcome.SUCCEEDED, disk.name)

    def tune_hdd(self, disk: DiskDescriptor) -> StepResult:
        target = self.config.HDD_SCHEDULER
        path = self.config.scheduler_path(disk.name)
        self.log.notice(f"HDD detected ({disk.name}).")

        text = self.host.read_text(path)
        if text is None:
            self.log.warn(f"Scheduler configuration not available for {disk.name}.")
            return self.result(StepOutcome.SKIPPED, disk.name)
        if checks.active_scheduler(text) == target:
            self.log.success("HDD already optimized.")
            return self.result(StepOutcome.SATISFIED, disk.name)
        if target not in checks.available_schedulers(text):
            self.log.warn(f"Scheduler '{target}' is not available for {disk.name}.")
            return self.result(StepOutcome.FAILED, disk.name)

        self.log.info("Optimizing HDD.")
        try:
            self.host.write_text(path, f"{target}\n")
        except CommandError as e:
            self.log.warn(f"Failed to optimize HDD: {e}")
            return self.result(StepOutcome.FAILED, str(e))
        self.log.success("HDD optimized.")
        return self.result(StepOutcome.SUCCEEDED, disk.name)


# ----------------------------------------------------------------
# GNOME desktop
# ----------------------------------------------------------------
class DesktopTuningStep(Step):
    key = "desktop"
    title = "Desktop tuning"
    question = "Optimize GNOME?"

    def run(self) -> StepResult:
        if not checks.desktop_running(self.host, self.config):
            self.log.notice("GNOME not detected. Skipping desktop optimization.")
            return self.result(StepOutcome.SKIPPED, "GNOME not running")

        self.log.prompt("GNOME desktop environment detected.")
        if not self.prompter.ask(self.question):
            self.log.info("Skipping GNOME optimization.")
            return self.result(StepOutcome.SKIPPED, "declined")
        return self.apply()

    def apply(self) -> StepResult:
        if checks.animations_disabled(self.host, self.config):
            self.log.success("GNOME already optimized.")
            return self.result(StepOutcome.SATISFIED)

        self.log.info("Optimizing GNOME.")
        try:
            self.host.gsettings_set(
                self.config.GNOME_SCHEMA, self.config.GNOME_ANIMATIONS_KEY, "false"
            )
        except CommandError as e:
            self.log.warn(f"Failed to disable animations: {e}")
            return self.result(StepOutcome.FAILED, str(e))
        self.log.success("GNOME optimized.")
        return self.result(StepOutcome.SUCCEEDED)


STEP_CLASSES = (
    SystemUpdateStep,
    DnfTuningStep,
    RepositoryStep,
    CodecStep,
    GpuDriverStep,
    DiskTuningStep,
    DesktopTuningStep,
)
