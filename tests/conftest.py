"""
Shared test fixtures and configuration.

Every test host is sandboxed: commands go to a MockRunner and files
land under ``tmp_path`` through the root-prefixed Filesystem.
"""

from pathlib import Path

import pytest

from slemp.adapters.mock import MockRunner
from slemp.adapters.registry import AdapterRegistry
from slemp.adapters.shell.filesystem import Filesystem
from slemp.core.config.settings import Settings
from slemp.core.models.config import ConfigurationRecord, PhpVersion, QueueDriver
from slemp.core.models.step import StepContext
from slemp.core.reliability.probe import ServiceProbe

PHP_MODULES = "\n".join(
    [
        "[PHP Modules]",
        "bcmath",
        "curl",
        "gd",
        "intl",
        "mbstring",
        "mysqli",
        "mysqlnd",
        "pdo_mysql",
        "redis",
        "xml",
        "zip",
        "",
        "[Zend Modules]",
        "Zend OPcache",
    ]
)


class ScriptedPrompter:
    """Prompter double: answers are consumed in order; "" takes the default."""

    def __init__(self, answers=(), secrets=()):
        self.answers = list(answers)
        self.secrets = list(secrets)
        self.asked: list[str] = []
        self.shown: list[str] = []

    def ask(self, text, default="", show_default=True):
        self.asked.append(text)
        if not self.answers:
            return default
        return self.answers.pop(0) or default

    def ask_secret(self, text):
        self.asked.append(text)
        return self.secrets.pop(0)

    def show(self, text=""):
        self.shown.append(text)


@pytest.fixture
def make_prompter():
    return ScriptedPrompter


@pytest.fixture
def fs(tmp_path: Path) -> Filesystem:
    return Filesystem(tmp_path)


@pytest.fixture
def runner() -> MockRunner:
    """A healthy host: ufw active, redis answering, PHP with every module."""
    r = MockRunner()
    r.set_response("ufw status", "Status: active")
    r.set_response("redis-cli", "PONG")
    for version in ("8.3", "8.4"):
        r.set_response([f"php{version}", "-m"], PHP_MODULES)
        r.set_response([f"php{version}", "-r"], "enabled")
    r.set_response("node --version", "v24.1.0")
    return r


@pytest.fixture
def adapters(runner: MockRunner, fs: Filesystem) -> AdapterRegistry:
    return AdapterRegistry(runner=runner, fs=fs)


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(filesystem_root=str(tmp_path), apt_lock_wait_attempts=2)


@pytest.fixture
def probe() -> ServiceProbe:
    return ServiceProbe(sleep=lambda seconds: None)


@pytest.fixture
def record() -> ConfigurationRecord:
    return ConfigurationRecord(
        project_name="acme",
        domain="acme.com",
        ssl_email="admin@acme.com",
        db_name="acme_db",
        db_user="acme_db_usr",
        db_password="Str0ng!Passw0rd",
        db_root_password="R00t!Passw0rd#2024",
        redis_password="Red1s!Passw0rd",
        php_version=PhpVersion.PHP_83,
        queue_driver=QueueDriver.DATABASE,
    )


@pytest.fixture
def ctx(record, settings, adapters, probe) -> StepContext:
    return StepContext(config=record, settings=settings, adapters=adapters, probe=probe)
