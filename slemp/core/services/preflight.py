"""
Preflight — host checks that run before any mutation.

Root and OS checks raise PreconditionError; resource shortfalls are
only logged.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field

from slemp.adapters.registry import AdapterRegistry
from slemp.adapters.system.host import OsRelease
from slemp.core.config.settings import Settings
from slemp.core.services.wizard import Prompter, ask_yes_no

logger = logging.getLogger(__name__)


class PreconditionError(Exception):
    """The host cannot be provisioned."""


@dataclass
class ServerSpecs:
    distributor: str = ""
    release: str = ""
    kernel: str = ""
    architecture: str = ""
    cpu_cores: int = 0
    ram_total_gb: float = 0.0
    ram_available_gb: float = 0.0
    disk_total_gb: int = 0
    tools: dict[str, bool] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "os": f"{self.distributor} {self.release}".strip(),
            "kernel": self.kernel,
            "architecture": self.architecture,
            "cpu_cores": self.cpu_cores,
            "ram_total_gb": self.ram_total_gb,
            "ram_available_gb": self.ram_available_gb,
            "disk_total_gb": self.disk_total_gb,
            "tools": dict(self.tools),
            "warnings": list(self.warnings),
        }


def check_root(euid: int | None = None) -> None:
    euid = os.geteuid() if euid is None else euid
    if euid != 0:
        raise PreconditionError("This command must be run as root (use sudo)")


def check_os(
    adapters: AdapterRegistry,
    settings: Settings,
    prompter: Prompter | None = None,
    interactive: bool = False,
) -> OsRelease:
    """Require an Ubuntu release file; warn on untested releases.

    Raises:
        PreconditionError: ``/etc/lsb-release`` is missing, or an
            interactive operator declines to continue on an
            unsupported release.
    """
    release = adapters.host.os_release()
    if release is None:
        raise PreconditionError("Cannot determine OS version: /etc/lsb-release not found")

    if release.distributor and release.distributor != "Ubuntu":
        logger.warning("This installer targets Ubuntu, found %s", release.distributor)

    if release.major not in settings.supported_ubuntu:
        logger.warning(
            "Ubuntu %s detected. Tested on Ubuntu %s.",
            release.release or "unknown",
            " and ".join(settings.supported_ubuntu),
        )
        if interactive and prompter is not None:
            if not ask_yes_no(prompter, "Continue anyway? (y/N)", default=False):
                raise PreconditionError("Unsupported Ubuntu release, installation aborted")
    else:
        logger.info("✓ Ubuntu %s detected", release.release)
    return release


def collect_server_specs(adapters: AdapterRegistry, settings: Settings) -> ServerSpecs:
    host = adapters.host
    release = host.os_release()
    memory = host.memory_kb()
    try:
        disk = adapters.fs.disk_total_gb("/")
    except OSError:
        disk = 0

    specs = ServerSpecs(
        distributor=release.distributor if release else "",
        release=release.release if release else "",
        kernel=host.kernel(),
        architecture=host.architecture(),
        cpu_cores=host.cpu_count(),
        ram_total_gb=round(memory.get("MemTotal", 0) / 1024 / 1024, 1),
        ram_available_gb=round(memory.get("MemAvailable", 0) / 1024 / 1024, 1),
        disk_total_gb=disk,
    )

    logger.info("OS: %s %s", specs.distributor, specs.release)
    logger.info("Kernel: %s (%s)", specs.kernel, specs.architecture)
    logger.info("CPU cores: %d", specs.cpu_cores)
    logger.info("RAM: %sGB total, %sGB available", specs.ram_total_gb, specs.ram_available_gb)
    logger.info("Disk: %dGB", specs.disk_total_gb)

    if specs.ram_total_gb < settings.min_ram_gb:
        specs.warnings.append(
            f"Low RAM detected ({specs.ram_total_gb}GB). "
            f"Recommended: {settings.min_ram_gb:g}GB+"
        )
    if specs.disk_total_gb < settings.min_disk_gb:
        specs.warnings.append(
            f"Low disk space ({specs.disk_total_gb}GB). Recommended: {settings.min_disk_gb}GB+"
        )
    for warning in specs.warnings:
        logger.warning(warning)

    specs.tools = adapters.adapter_status()
    missing = sorted(name for name, present in specs.tools.items() if not present)
    if missing:
        logger.info("Not installed yet: %s", ", ".join(missing))
    return specs
