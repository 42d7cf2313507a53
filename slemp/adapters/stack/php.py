"""
PHP adapter — interpreter, loaded modules and FPM config checks.

Module detection parses ``php -m`` (one module per line) into a set.
Extensions whose module name differs from the package name are
special-cased in :meth:`PhpAdapter.extension_loaded`.
"""

from __future__ import annotations

from slemp.adapters.base import Adapter
from slemp.adapters.shell.command import CommandRunner
from slemp.core.models.receipt import Receipt

# Any one of these satisfies "mysql" support.
MYSQL_MODULES = frozenset({"mysqli", "mysqlnd", "pdo_mysql"})


class PhpAdapter(Adapter):
    """One PHP version's CLI (``php8.3``) and FPM binary (``php-fpm8.3``)."""

    def __init__(self, runner: CommandRunner, version: str):
        super().__init__(runner)
        self.version = version
        self.binary = f"php{version}"

    @property
    def name(self) -> str:
        return f"php{self.version}"

    def version_check(self) -> Receipt:
        return self.runner.run([self.binary, "-v"])

    def modules(self) -> set[str]:
        """Lower-cased names of loaded modules; empty if PHP cannot run."""
        receipt = self.runner.run([self.binary, "-m"])
        if not receipt.ok:
            return set()
        return {
            line.strip().lower()
            for line in receipt.output.splitlines()
            if line.strip() and not line.startswith("[")
        }

    def eval(self, code: str) -> Receipt:
        return self.runner.run([self.binary, "-r", code])

    def extension_loaded(self, ext: str, modules: set[str] | None = None) -> bool:
        """Whether an extension is usable.

        ``mysql`` is satisfied by any MySQL driver module; ``opcache``
        registers as a Zend extension and is asked for by PHP itself.
        """
        ext = ext.lower()
        if ext == "opcache":
            return self.eval("exit(extension_loaded('Zend OPcache') ? 0 : 1);").ok
        if modules is None:
            modules = self.modules()
        if ext == "mysql":
            return bool(modules & MYSQL_MODULES)
        return ext in modules

    def opcache_enabled(self) -> bool:
        receipt = self.eval("echo ini_get('opcache.enable') ? 'enabled' : 'disabled';")
        return receipt.ok and receipt.output.strip() == "enabled"

    def test_pool(self, pool_path: str) -> Receipt:
        """Syntax-check an FPM pool file."""
        return self.runner.run([f"php-fpm{self.version}", "-t", "-y", pool_path])
