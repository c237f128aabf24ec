import tempfile
from dataclasses import dataclass, field
from typing import Dict, List, Tuple


@dataclass(frozen=True)
class GpuDriverSet:
    """Driver packages for one GPU vendor.

    ``markers`` are matched case-insensitively against the display
    controller lines of ``lspci``. ``check`` lists the packages that must all
    be registered for the vendor to count as configured.
    """

    label: str
    markers: Tuple[str, ...]
    check: Tuple[str, ...]
    install: Tuple[str, ...]
    needs_reboot: bool = False


@dataclass(frozen=True)
class Config:
    """Paths, package sets and tuning targets for a crimsonhat run."""

    APP_SLUG: str = "crimsonhat"
    LOG_DIR: str = field(default_factory=tempfile.gettempdir)

    # DNF
    DNF_CONF: str = "/etc/dnf/dnf.conf"
    DNF_SETTINGS: Tuple[str, ...] = ("max_parallel_downloads=10", "fastestmirror=True")

    # RPM Fusion
    RPM_FUSION_PACKAGES: Tuple[str, ...] = (
        "rpmfusion-free-release",
        "rpmfusion-nonfree-release",
    )
    RPM_FUSION_URL: str = (
        "https://mirrors.rpmfusion.org/{flavor}/fedora/rpmfusion-{flavor}-release-{release}.noarch.rpm"
    )

    # Multimedia codecs
    CODEC_CHECK: Tuple[str, ...] = (
        "gstreamer1-plugins-base",
        "gstreamer1-plugins-good",
        "gstreamer1-plugin-openh264",
    )
    CODEC_PACKAGES: Tuple[str, ...] = (
        "gstreamer1-plugins-good",
        "gstreamer1-plugins-bad-free",
        "gstreamer1-plugins-base",
        "gstreamer1-plugin-openh264",
        "gstreamer1-libav",
    )
    CODEC_EXCLUDE: str = "gstreamer1-plugins-bad-free-devel"

    # GPU drivers, in detection order
    GPU_DRIVERS: Dict[str, GpuDriverSet] = field(
        default_factory=lambda: {
            "intel": GpuDriverSet(
                label="Intel",
                markers=("intel",),
                check=("intel-media-driver",),
                install=("intel-media-driver",),
            ),
            "nvidia": GpuDriverSet(
                label="NVIDIA",
                markers=("nvidia",),
                check=("akmod-nvidia",),
                install=("akmod-nvidia", "xorg-x11-drv-nvidia-cuda"),
                needs_reboot=True,
            ),
            "amd": GpuDriverSet(
                label="AMD",
                markers=("amd", "radeon"),
                check=(
                    "mesa-vulkan-drivers",
                    "mesa-vdpau-drivers",
                    "mesa-va-drivers",
                    "vulkan-tools",
                ),
                install=(
                    "mesa-vulkan-drivers",
                    "mesa-vdpau-drivers",
                    "mesa-va-drivers",
                    "vulkan-tools",
                ),
            ),
        }
    )
    DISPLAY_CLASSES: Tuple[str, ...] = ("vga", "3d", "display")

    # Storage
    SYSCTL_CONF: str = "/etc/sysctl.conf"
    SWAPPINESS_KEY: str = "vm.swappiness"
    SWAPPINESS: int = 10
    SYSFS_BLOCK: str = "/sys/block"
    HDD_SCHEDULER: str = "bfq"

    # GNOME
    DESKTOP_PROCESS: str = "gnome-shell"
    GNOME_SCHEMA: str = "org.gnome.desktop.interface"
    GNOME_ANIMATIONS_KEY: str = "enable-animations"

    # Summary
    CHANGES: List[str] = field(
        default_factory=lambda: [
            "System packages updated",
            "DNF optimized",
            "RPM Fusion configured",
            "Multimedia codecs installed",
            "GPU drivers configured",
            "System performance optimized",
            "Desktop environment optimized",
        ]
    )

    @property
    def swappiness_line(self) -> str:
        return f"{self.SWAPPINESS_KEY}={self.SWAPPINESS}"

    def scheduler_path(self, device: str) -> str:
        return f"{self.SYSFS_BLOCK}/{device}/queue/scheduler"
