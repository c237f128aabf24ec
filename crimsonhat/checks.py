"""Read-only predicates: is a step's goal already met?

Nothing in this module mutates the host. Parsers take raw command output so
they can be exercised without one.
"""

import re
from dataclasses import dataclass
from typing import Iterable, List, Mapping, Optional, Sequence

from crimsonhat.config import Config, GpuDriverSet
from crimsonhat.host import Host

_ACTIVE_SCHEDULER = re.compile(r"\[([^\]]+)\]")


@dataclass(frozen=True)
class DiskDescriptor:
    name: str
    rotational: str

    @property
    def is_ssd(self) -> bool:
        return self.rotational == "0"

    @property
    def is_hdd(self) -> bool:
        return self.rotational == "1"


# ----------------------------------------------------------------
# Packages
# ----------------------------------------------------------------
def missing_packages(host: Host, packages: Iterable[str]) -> List[str]:
    return [pkg for pkg in packages if not host.rpm_installed(pkg)]


def packages_installed(host: Host, packages: Iterable[str]) -> bool:
    # Short-circuits on the first missing package.
    return all(host.rpm_installed(pkg) for pkg in packages)


def repos_installed(host: Host, config: Config) -> bool:
    return packages_installed(host, config.RPM_FUSION_PACKAGES)


def codecs_installed(host: Host, config: Config) -> bool:
    return packages_installed(host, config.CODEC_CHECK)


def gpu_driver_installed(host: Host, driver: GpuDriverSet) -> bool:
    return packages_installed(host, driver.check)


# ----------------------------------------------------------------
# DNF
# ----------------------------------------------------------------
def setting_key(setting: str) -> str:
    return setting.split("=", 1)[0]


def missing_dnf_settings(conf_text: Optional[str], settings: Sequence[str]) -> List[str]:
    """Settings whose key does not start any line of dnf.conf."""
    lines = (conf_text or "").splitlines()
    return [
        setting
        for setting in settings
        if not any(line.startswith(setting_key(setting)) for line in lines)
    ]


def dnf_configured(host: Host, config: Config) -> bool:
    return not missing_dnf_settings(host.read_text(config.DNF_CONF), config.DNF_SETTINGS)


# ----------------------------------------------------------------
# Storage
# ----------------------------------------------------------------
def parse_first_disk(lsblk_output: str) -> Optional[DiskDescriptor]:
    """First device row of ``lsblk -d -o name,rota``, skipping the header."""
    lines = lsblk_output.splitlines()
    if len(lines) < 2:
        return None
    fields = lines[1].split()
    if len(fields) < 2:
        return None
    return DiskDescriptor(name=fields[0], rotational=fields[1])


def sysctl_value(conf_text: Optional[str], key: str) -> Optional[str]:
    """Last effective value of ``key`` in a sysctl.conf body."""
    value = None
    for raw in (conf_text or "").splitlines():
        line = raw.strip()
        if not line or line.startswith(("#", ";")) or "=" not in line:
            continue
        name, _, val = line.partition("=")
        if name.strip() == key:
            value = val.strip()
    return value


def swappiness_configured(host: Host, config: Config) -> bool:
    current = sysctl_value(host.read_text(config.SYSCTL_CONF), config.SWAPPINESS_KEY)
    return current == str(config.SWAPPINESS)


def active_scheduler(scheduler_text: Optional[str]) -> Optional[str]:
    """The bracketed entry of ``/sys/block/<dev>/queue/scheduler``."""
    if not scheduler_text:
        return None
    match = _ACTIVE_SCHEDULER.search(scheduler_text)
    return match.group(1) if match else None


def available_schedulers(scheduler_text: Optional[str]) -> List[str]:
    return [name.strip("[]") for name in (scheduler_text or "").split()]


# ----------------------------------------------------------------
# GPU
# ----------------------------------------------------------------
def display_controllers(lspci_output: str, classes: Sequence[str]) -> List[str]:
    return [
        line
        for line in lspci_output.splitlines()
        if any(cls in line.lower() for cls in classes)
    ]


def detect_gpu_vendors(
    lspci_output: str,
    drivers: Mapping[str, GpuDriverSet],
    classes: Sequence[str],
) -> List[str]:
    """Vendor tags present in the display controller listing, in table order."""
    listing = "\n".join(display_controllers(lspci_output, classes)).lower()
    return [
        tag
        for tag, driver in drivers.items()
        if any(marker in listing for marker in driver.markers)
    ]


# ----------------------------------------------------------------
# Desktop
# ----------------------------------------------------------------
def desktop_running(host: Host, config: Config) -> bool:
    return host.process_running(config.DESKTOP_PROCESS)


def animations_disabled(host: Host, config: Config) -> bool:
    value = host.gsettings_get(config.GNOME_SCHEMA, config.GNOME_ANIMATIONS_KEY)
    return value == "false"
