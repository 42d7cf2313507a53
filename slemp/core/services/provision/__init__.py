"""
Provisioning steps — the fixed install sequence.

    from slemp.core.services.provision import build_install_steps

Order matters: the site config needs Nginx, the pool needs PHP, the
queue workers need Supervisor. Steps marked non-critical only ever
produce warnings.
"""

from __future__ import annotations

from slemp.core.models.step import Step
from slemp.core.services.provision.database import mariadb
from slemp.core.services.provision.php import php_extensions, php_fpm_pool, php_runtime
from slemp.core.services.provision.redis import redis
from slemp.core.services.provision.security import certbot, firewall
from slemp.core.services.provision.services import service_restart
from slemp.core.services.provision.system import system_update
from slemp.core.services.provision.tooling import composer, nodejs
from slemp.core.services.provision.web import nginx, project_scaffold
from slemp.core.services.provision.workers import (
    permission_helper,
    queue_workers,
    scheduler,
    supervisor,
)


def build_install_steps() -> list[Step]:
    return [
        Step("system-update", "Updating system packages", system_update),
        Step("nginx", "Installing Nginx", nginx),
        Step("project-scaffold", "Creating project directory and site", project_scaffold),
        Step("php-runtime", "Installing PHP", php_runtime),
        Step("php-extensions", "Verifying PHP extensions", php_extensions, critical=False),
        Step("php-fpm-pool", "Configuring PHP-FPM pool", php_fpm_pool),
        Step("mariadb", "Installing MariaDB", mariadb),
        Step("composer", "Installing Composer", composer),
        Step("nodejs", "Installing Node.js", nodejs),
        Step("redis", "Installing Redis", redis),
        Step("supervisor", "Installing Supervisor", supervisor),
        Step("queue-workers", "Configuring queue workers", queue_workers),
        Step("permission-helper", "Creating permission helper", permission_helper),
        Step("scheduler", "Registering Laravel scheduler", scheduler),
        Step("firewall", "Configuring firewall", firewall),
        Step("certbot", "Installing Certbot", certbot, critical=False),
        Step("service-restart", "Restarting services", service_restart, critical=False),
    ]


__all__ = ["build_install_steps"]
