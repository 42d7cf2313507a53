"""
Central data registry for the stack catalog and config templates.

Loads ``stack.yml`` once at first access and caches it for the
process lifetime. Steps, verification and removal all read package
lists, extension maps and removal targets from this single source.

Usage::

    from slemp.core.data import DataRegistry

    registry = DataRegistry()
    registry.essentials                    # list[str]
    registry.php_core_packages("8.3")      # ["php8.3-fpm", ...]
    registry.render("nginx_site.conf", project_name="shop", ...)
"""

from __future__ import annotations

import logging
import re
from functools import cached_property
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

_DATA_DIR = Path(__file__).parent
_TEMPLATE_DIR = _DATA_DIR / "templates"
_PLACEHOLDER_RE = re.compile(r"\{([a-z_]+)\}")


def _load_yaml(relative_path: str) -> dict:
    """Load a YAML mapping relative to the data directory."""
    path = _DATA_DIR / relative_path
    if not path.exists():
        logger.warning("Data file not found: %s", path)
        return {}
    with open(path, encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def render_template_text(text: str, **values: Any) -> str:
    """Substitute ``{name}`` placeholders whose name is in ``values``.

    Unknown placeholders are left alone, so nginx ``$uri`` / shell
    ``${VAR}`` syntax survives untouched.
    """

    def _sub(match: re.Match) -> str:
        key = match.group(1)
        return str(values[key]) if key in values else match.group(0)

    return _PLACEHOLDER_RE.sub(_sub, text)


class DataRegistry:
    """Central registry for the stack catalog.

    Each property lazily reads from ``stack.yml`` on first access and
    caches the result for the lifetime of the instance.
    """

    @cached_property
    def catalog(self) -> dict:
        data = _load_yaml("stack.yml")
        logger.debug("Loaded stack catalog sections: %s", list(data.keys()))
        return data

    # ── Install ──────────────────────────────────────────────────

    @cached_property
    def essentials(self) -> list[str]:
        return list(self.catalog.get("essentials", []))

    @property
    def php(self) -> dict:
        return self.catalog.get("php", {})

    def php_core_packages(self, version: str) -> list[str]:
        return [f"php{version}-{ext}" for ext in self.php.get("core", [])]

    def php_optional_packages(self, version: str) -> list[str]:
        return [f"php{version}-{ext}" for ext in self.php.get("optional", [])]

    @cached_property
    def critical_extensions(self) -> list[str]:
        return list(self.php.get("critical", []))

    @cached_property
    def verify_extensions(self) -> list[str]:
        return list(self.php.get("verify", []))

    @property
    def redis(self) -> dict:
        return self.catalog.get("redis", {})

    @cached_property
    def redis_directives(self) -> list[tuple[str, str]]:
        """Ordered ``(directive, value)`` pairs applied to redis.conf."""
        return [(str(k), str(v)) for k, v in self.redis.get("directives", [])]

    @property
    def composer(self) -> dict:
        return self.catalog.get("composer", {})

    @property
    def nodejs(self) -> dict:
        return self.catalog.get("nodejs", {})

    @cached_property
    def certbot_packages(self) -> list[str]:
        return list(self.catalog.get("certbot", {}).get("packages", []))

    @property
    def firewall(self) -> dict:
        return self.catalog.get("firewall", {})

    @cached_property
    def verification_ports(self) -> list[tuple[int, str]]:
        return [(int(p), str(n)) for p, n in self.catalog.get("verification", {}).get("ports", [])]

    # ── Removal ──────────────────────────────────────────────────

    @property
    def removal(self) -> dict:
        return self.catalog.get("removal", {})

    @cached_property
    def removal_families(self) -> list[dict]:
        families = list(self.removal.get("families", []))
        logger.debug("Loaded %d removal families", len(families))
        return families

    # ── Templates ────────────────────────────────────────────────

    def template(self, name: str) -> str:
        """Raw template text from ``templates/``."""
        return (_TEMPLATE_DIR / name).read_text(encoding="utf-8")

    def render(self, name: str, **values: Any) -> str:
        return render_template_text(self.template(name), **values)


_default: DataRegistry | None = None


def get_registry() -> DataRegistry:
    """Process-wide registry (the catalog never changes at runtime)."""
    global _default
    if _default is None:
        _default = DataRegistry()
    return _default
