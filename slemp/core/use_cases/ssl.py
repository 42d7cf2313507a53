"""
SSL use case — issue a certificate for the site through certbot's
nginx plugin, then validate and reload nginx.

Never part of ``install``: the operator runs it once DNS points at
the host.
"""

from __future__ import annotations

import logging

from slemp.adapters.registry import AdapterRegistry
from slemp.core.config.settings import Settings
from slemp.core.models.step import StepResult
from slemp.core.services import validators
from slemp.core.services.preflight import PreconditionError, check_root
from slemp.core.use_cases.install import default_adapters

logger = logging.getLogger(__name__)


def issue_certificate(
    domain: str,
    email: str,
    settings: Settings,
    adapters: AdapterRegistry | None = None,
    euid: int | None = None,
) -> StepResult:
    if not validators.is_valid_domain(domain):
        return StepResult.failure(f"Invalid domain: {domain}")
    if not validators.is_valid_email(email):
        return StepResult.failure(f"Invalid email: {email}")
    try:
        check_root(euid)
    except PreconditionError as e:
        return StepResult.failure(str(e))

    adapters = adapters or default_adapters(settings)
    if not adapters.certbot.is_available():
        return StepResult.failure("certbot is not installed; run 'slemp install' first")

    logger.info("Requesting certificate for %s...", domain)
    issued = adapters.certbot.issue(domain, email)
    if issued.failed:
        return StepResult.from_receipt(issued, "certbot")

    tested = adapters.nginx.test_config()
    if tested.failed:
        return StepResult.from_receipt(tested, "nginx configuration test")
    reloaded = adapters.systemd.reload("nginx")
    if reloaded.failed:
        return StepResult.from_receipt(reloaded, "nginx reload")

    logger.info("✓ SSL certificate installed for %s", domain)
    return StepResult.success(f"certificate issued for {domain}")
