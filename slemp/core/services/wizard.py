"""
Configuration wizard — turns operator answers (or defaults) into a
validated, immutable ConfigurationRecord.

Interactive mode asks each question in turn and re-asks until the
answer validates; Enter accepts the default shown in brackets.
Non-interactive mode asks nothing and derives every value from the
project name, generating the three secrets.

All I/O goes through a :class:`Prompter`, so the wizard itself has
no terminal dependency: the CLI supplies a click-backed prompter and
tests supply a scripted one.
"""

from __future__ import annotations

import logging
from typing import Callable, Protocol

from slemp.adapters.shell.filesystem import Filesystem
from slemp.core.config.settings import Settings
from slemp.core.models.config import (
    DEFAULT_PROJECT_NAME,
    DEFAULT_WORKER_COUNT,
    ConfigurationRecord,
    PhpVersion,
    QueueDriver,
    default_db_name,
    default_db_user,
    default_domain,
    default_email,
)
from slemp.core.persistence.recovery_file import save_recovery_file
from slemp.core.services import validators
from slemp.core.services.passwords import generate_password
from slemp.core.services.validators import PasswordStrength

logger = logging.getLogger(__name__)

DB_PASSWORD_LENGTH = 16
ROOT_PASSWORD_LENGTH = 20
REDIS_PASSWORD_LENGTH = 16

PasswordGenerator = Callable[[int], str]


class Prompter(Protocol):
    """Terminal seam used by the wizard, preflight and removal prompts."""

    def ask(self, text: str, default: str = "", show_default: bool = True) -> str:
        """Ask a question; an empty answer returns ``default``."""
        ...

    def ask_secret(self, text: str) -> str:
        """Ask without echoing the answer."""
        ...

    def show(self, text: str = "") -> None:
        """Print a line of text."""
        ...


class WizardCancelled(Exception):
    """The operator declined the configuration summary."""


# ── Yes / no ────────────────────────────────────────────────────────


def ask_yes_no(prompter: Prompter, text: str, default: bool) -> bool:
    """Loop until the answer starts with Y or N; Enter takes ``default``."""
    fallback = "Y" if default else "N"
    while True:
        answer = (prompter.ask(text, fallback, show_default=False) or fallback).strip()
        if answer[:1] in ("Y", "y"):
            return True
        if answer[:1] in ("N", "n"):
            return False
        logger.error("Please answer Y or N")


# ── Individual questions ────────────────────────────────────────────


def _ask_valid(
    prompter: Prompter,
    text: str,
    default: str,
    check: Callable[[str], bool],
    error: str,
    label: str,
) -> str:
    while True:
        value = (prompter.ask(text, default) or default).strip()
        if check(value):
            logger.info("✓ %s: %s", label, value)
            return value
        logger.error(error)


def _ask_manual_secret(prompter: Prompter, text: str, label: str) -> str:
    while True:
        secret = prompter.ask_secret(text)
        if validators.is_valid_manual_secret(secret):
            logger.info("✓ %s set", label)
            return secret
        logger.error(
            "%s must be at least %d characters long and contain no spaces",
            label,
            validators.MANUAL_PASSWORD_MIN,
        )


def ask_db_password(prompter: Prompter, password_gen: PasswordGenerator) -> str:
    prompter.show("Database Password Options:")
    prompter.show("  1) Generate secure password automatically")
    prompter.show("  2) Enter custom password")
    while True:
        option = (prompter.ask("Choose option", "1") or "1").strip()
        if option == "1":
            logger.info("✓ Generated secure database password")
            return password_gen(DB_PASSWORD_LENGTH)
        if option == "2":
            break
        logger.error("Invalid option. Please choose 1 or 2.")

    while True:
        secret = prompter.ask_secret("Enter database password")
        if not validators.is_valid_manual_secret(secret):
            logger.error(
                "Password must be at least %d characters long and contain no spaces",
                validators.MANUAL_PASSWORD_MIN,
            )
            continue
        strength = validators.password_strength(secret)
        if strength == PasswordStrength.STRONG:
            logger.info("✓ Password strength: STRONG")
            return secret
        if strength == PasswordStrength.MEDIUM:
            logger.warning("Password strength: MEDIUM")
            if ask_yes_no(prompter, "Continue with this password? (y/N)", default=False):
                return secret
            continue
        logger.error("Password too weak. Please use a stronger password.")


def ask_generated_or_manual(
    prompter: Prompter,
    question: str,
    manual_prompt: str,
    label: str,
    length: int,
    password_gen: PasswordGenerator,
) -> str:
    if ask_yes_no(prompter, f"{question} (Y/n)", default=True):
        logger.info("✓ Generated secure %s", label)
        return password_gen(length)
    return _ask_manual_secret(prompter, manual_prompt, label)


def ask_php_version(prompter: Prompter, default: PhpVersion | None) -> PhpVersion:
    prompter.show("PHP Version Selection:")
    prompter.show("  1) PHP 8.3 LTS (Recommended for production)")
    prompter.show("  2) PHP 8.4 (Latest stable)")
    fallback = "2" if default == PhpVersion.PHP_84 else "1"
    options = {"1": PhpVersion.PHP_83, "2": PhpVersion.PHP_84}
    while True:
        option = (prompter.ask("Choose PHP version", fallback) or fallback).strip()
        if option in options:
            logger.info("✓ Selected PHP %s", options[option].value)
            return options[option]
        logger.error("Please choose option 1 or 2")


def ask_queue_driver(prompter: Prompter, default: QueueDriver | None) -> QueueDriver:
    prompter.show("Queue Driver Selection:")
    prompter.show("  1) Database (Simple setup, uses database for queues)")
    prompter.show("  2) Redis (Recommended for performance and scalability)")
    fallback = "2" if default == QueueDriver.REDIS else "1"
    options = {"1": QueueDriver.DATABASE, "2": QueueDriver.REDIS}
    while True:
        option = (prompter.ask("Choose queue driver", fallback) or fallback).strip()
        if option in options:
            logger.info("✓ Selected %s queue driver", options[option].value)
            return options[option]
        logger.error("Please choose option 1 or 2")


# ── Modes ───────────────────────────────────────────────────────────


def run_wizard(
    prompter: Prompter,
    settings: Settings | None = None,
    php_default: PhpVersion | None = None,
    queue_default: QueueDriver | None = None,
    password_gen: PasswordGenerator = generate_password,
) -> ConfigurationRecord:
    """Ask every question and build the record."""
    settings = settings or Settings()

    prompter.show("PROJECT CONFIGURATION")
    project = _ask_valid(
        prompter,
        "Enter project name",
        DEFAULT_PROJECT_NAME,
        validators.is_valid_project_name,
        "Invalid project name. Use only letters, numbers, hyphens, underscores (3-50 chars)",
        "Project name",
    )
    domain = _ask_valid(
        prompter,
        "Enter domain name",
        default_domain(project, interactive=True),
        validators.is_valid_domain,
        "Invalid domain format. Example: example.com or sub.example.com",
        "Domain name",
    )
    email = _ask_valid(
        prompter,
        "Enter email for SSL certificates",
        default_email(domain),
        validators.is_valid_email,
        "Invalid email format",
        "SSL email",
    )

    prompter.show("DATABASE CONFIGURATION")
    db_name = _ask_valid(
        prompter,
        "Enter database name",
        default_db_name(project),
        validators.is_valid_db_name,
        "Invalid database name. Use only letters, numbers, underscores (max 64 chars)",
        "Database name",
    )
    db_user = _ask_valid(
        prompter,
        "Enter database username",
        default_db_user(project),
        validators.is_valid_db_user,
        "Invalid username. Use only letters, numbers, underscores (max 32 chars)",
        "Database user",
    )
    db_password = ask_db_password(prompter, password_gen)
    root_password = ask_generated_or_manual(
        prompter,
        "Generate MariaDB root password automatically?",
        "Enter MariaDB root password",
        "MariaDB root password",
        ROOT_PASSWORD_LENGTH,
        password_gen,
    )

    prompter.show("REDIS CONFIGURATION")
    redis_password = ask_generated_or_manual(
        prompter,
        "Generate Redis password automatically?",
        "Enter Redis password",
        "Redis password",
        REDIS_PASSWORD_LENGTH,
        password_gen,
    )

    prompter.show("ADVANCED CONFIGURATION")
    php_version = ask_php_version(prompter, php_default)
    queue_driver = ask_queue_driver(prompter, queue_default)
    workers = _ask_valid(
        prompter,
        "Number of queue worker processes",
        str(DEFAULT_WORKER_COUNT),
        validators.is_valid_worker_count,
        f"Please enter a number between {validators.WORKERS_MIN} and {validators.WORKERS_MAX}",
        "Queue worker processes",
    )

    return ConfigurationRecord(
        project_name=project,
        domain=domain,
        ssl_email=email,
        db_name=db_name,
        db_user=db_user,
        db_password=db_password,
        db_root_password=root_password,
        redis_password=redis_password,
        php_version=php_version,
        queue_driver=queue_driver,
        worker_count=int(workers),
        interactive=True,
        project_root=settings.project_root,
    )


def build_noninteractive_config(
    settings: Settings | None = None,
    project_name: str = DEFAULT_PROJECT_NAME,
    php_version: PhpVersion | None = None,
    queue_driver: QueueDriver | None = None,
    password_gen: PasswordGenerator = generate_password,
) -> ConfigurationRecord:
    """Defaults for unattended runs; no prompts."""
    settings = settings or Settings()
    domain = default_domain(project_name, interactive=False)
    logger.info("Running in non-interactive mode with default values")
    return ConfigurationRecord(
        project_name=project_name,
        domain=domain,
        ssl_email=default_email(domain),
        db_name=default_db_name(project_name),
        db_user=default_db_user(project_name),
        db_password=password_gen(DB_PASSWORD_LENGTH),
        db_root_password=password_gen(ROOT_PASSWORD_LENGTH),
        redis_password=password_gen(REDIS_PASSWORD_LENGTH),
        php_version=php_version or PhpVersion.PHP_83,
        queue_driver=queue_driver or QueueDriver.DATABASE,
        worker_count=DEFAULT_WORKER_COUNT,
        interactive=False,
        install_ssl=False,
        project_root=settings.project_root,
    )


# ── Summary and confirmation ────────────────────────────────────────


def render_summary(record: ConfigurationRecord, settings: Settings | None = None) -> str:
    node = settings.node_version if settings else ""
    rule = "=" * 45
    return "\n".join([rule, "CONFIGURATION SUMMARY", rule, *record.summary_lines(node), rule])


def confirm_configuration(
    record: ConfigurationRecord,
    prompter: Prompter,
    settings: Settings,
    fs: Filesystem,
) -> ConfigurationRecord:
    """Show the redacted summary, save the recovery file, confirm.

    Returns the record with SSL installation turned off (certificates
    are issued later with ``slemp ssl``).

    Raises:
        WizardCancelled: If an interactive operator declines.
    """
    prompter.show(render_summary(record, settings))
    save_recovery_file(
        record,
        fs,
        settings.recovery_file,
        settings.recovery_fallback,
        node_version=settings.node_version,
    )
    record = record.model_copy(update={"install_ssl": False})

    if not record.interactive:
        return record
    if ask_yes_no(prompter, "Proceed with this configuration? (Y/n)", default=True):
        logger.info("✓ Configuration confirmed. Starting installation...")
        return record

    logger.warning("Installation cancelled by user.")
    logger.info("You can run the command again to reconfigure.")
    raise WizardCancelled("configuration declined")
