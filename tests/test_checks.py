from crimsonhat import checks
from crimsonhat.checks import DiskDescriptor
from crimsonhat.config import Config

CONFIG = Config(LOG_DIR="/tmp")

HYBRID_LSPCI = """\
00:00.0 Host bridge: Intel Corporation 12th Gen Core Processor Host Bridge
00:02.0 VGA compatible controller: Intel Corporation Alder Lake-P GT2 [Iris Xe Graphics]
01:00.0 3D controller: NVIDIA Corporation GA107M [GeForce RTX 3050 Mobile] (rev a1)
02:00.0 Non-Volatile memory controller: Samsung Electronics Co Ltd NVMe SSD
"""


# ---------------------------------------------------------------------------
# DNF settings
# ---------------------------------------------------------------------------

def test_missing_dnf_settings_on_stock_config():
    stock = "[main]\ngpgcheck=True\ninstallonly_limit=3\n"
    assert checks.missing_dnf_settings(stock, CONFIG.DNF_SETTINGS) == [
        "max_parallel_downloads=10",
        "fastestmirror=True",
    ]


def test_missing_dnf_settings_matches_key_prefix_not_value():
    text = "[main]\nmax_parallel_downloads=5\n"
    assert checks.missing_dnf_settings(text, CONFIG.DNF_SETTINGS) == ["fastestmirror=True"]


def test_missing_dnf_settings_without_file():
    assert checks.missing_dnf_settings(None, CONFIG.DNF_SETTINGS) == list(CONFIG.DNF_SETTINGS)


# ---------------------------------------------------------------------------
# Disk descriptor
# ---------------------------------------------------------------------------

def test_parse_first_disk_takes_first_device_row():
    disk = checks.parse_first_disk("NAME    ROTA\nnvme0n1    0\nsda        1\n")
    assert disk == DiskDescriptor(name="nvme0n1", rotational="0")
    assert disk.is_ssd and not disk.is_hdd


def test_parse_first_disk_without_devices():
    assert checks.parse_first_disk("NAME ROTA\n") is None
    assert checks.parse_first_disk("") is None
    assert checks.parse_first_disk("NAME ROTA\nsda\n") is None


def test_sysctl_value_ignores_comments_and_spacing():
    text = "# vm.swappiness=60\nvm.swappiness = 10\nnet.ipv4.ip_forward=1\n"
    assert checks.sysctl_value(text, "vm.swappiness") == "10"


def test_sysctl_value_last_assignment_wins():
    assert checks.sysctl_value("vm.swappiness=10\nvm.swappiness=60\n", "vm.swappiness") == "60"
    assert checks.sysctl_value("", "vm.swappiness") is None


def test_scheduler_parsing():
    text = "mq-deadline kyber [bfq] none\n"
    assert checks.active_scheduler(text) == "bfq"
    assert checks.available_schedulers(text) == ["mq-deadline", "kyber", "bfq", "none"]
    assert checks.active_scheduler("[none] mq-deadline\n") == "none"
    assert checks.active_scheduler(None) is None


# ---------------------------------------------------------------------------
# GPU inventory
# ---------------------------------------------------------------------------

def test_hybrid_graphics_detects_both_vendors_in_order():
    vendors = checks.detect_gpu_vendors(HYBRID_LSPCI, CONFIG.GPU_DRIVERS, CONFIG.DISPLAY_CLASSES)
    assert vendors == ["intel", "nvidia"]


def test_non_display_devices_are_ignored():
    listing = "00:14.0 USB controller: Advanced Micro Devices, Inc. [AMD] FCH USB\n"
    assert checks.detect_gpu_vendors(listing, CONFIG.GPU_DRIVERS, CONFIG.DISPLAY_CLASSES) == []


def test_radeon_counts_as_amd():
    listing = "03:00.0 VGA compatible controller: ATI Radeon HD 7770\n"
    assert checks.detect_gpu_vendors(listing, CONFIG.GPU_DRIVERS, CONFIG.DISPLAY_CLASSES) == ["amd"]


# ---------------------------------------------------------------------------
# Host-backed predicates
# ---------------------------------------------------------------------------

def test_package_predicates(host):
    host.packages.update(["rpmfusion-free-release"])
    assert not checks.repos_installed(host, CONFIG)
    assert checks.missing_packages(host, CONFIG.RPM_FUSION_PACKAGES) == ["rpmfusion-nonfree-release"]

    host.packages.add("rpmfusion-nonfree-release")
    assert checks.repos_installed(host, CONFIG)


def test_desktop_predicates(host):
    assert not checks.desktop_running(host, CONFIG)
    host.processes.add("gnome-shell")
    assert checks.desktop_running(host, CONFIG)

    assert not checks.animations_disabled(host, CONFIG)
    host.gsettings["org.gnome.desktop.interface enable-animations"] = "false"
    assert checks.animations_disabled(host, CONFIG)


def test_predicates_never_mutate(host):
    host.files[CONFIG.DNF_CONF] = "[main]\n"
    checks.dnf_configured(host, CONFIG)
    checks.swappiness_configured(host, CONFIG)
    checks.codecs_installed(host, CONFIG)
    assert host.files == {CONFIG.DNF_CONF: "[main]\n"}
    assert not host.ran("dnf")
    assert not host.ran("tee")
