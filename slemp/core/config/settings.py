"""
Host settings — paths and knobs that are not part of a run's answers.

These rarely change between runs (where projects live, which user
owns them, where the lock and recovery files go). They are loaded by
``slemp.core.config.loader.load_settings`` from defaults, an optional
YAML file and ``SLEMP_*`` environment variables.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class Settings(BaseModel):
    """Host-level settings for install and removal runs."""

    project_root: str = "/var/www"
    web_user: str = "www-data"
    web_group: str = "www-data"
    node_version: str = "24.x"

    lock_file: str = "/tmp/lemp_install.lock"
    recovery_file: str = "/tmp/laravel_lemp_config.txt"
    recovery_fallback: str = "/root/laravel_lemp_config.txt"

    # Prefix for every file the tool touches; "/" on a real host.
    filesystem_root: str = "/"

    supported_ubuntu: list[str] = Field(default_factory=lambda: ["22", "24"])
    min_ram_gb: float = 1.0
    min_disk_gb: int = 10

    apt_lock_wait_attempts: int = 60
    apt_lock_wait_interval: float = 5.0
