"""Interactive post-installation tuning for Fedora workstations."""

APP_NAME: str = "crimsonhat"
APP_SUBTITLE: str = "Fedora Post-Install Optimizer"
VERSION: str = "0.6.0"
