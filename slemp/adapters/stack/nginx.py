"""Nginx and Certbot adapters."""

from __future__ import annotations

from slemp.adapters.base import Adapter
from slemp.core.models.receipt import Receipt


class NginxAdapter(Adapter):
    binary = "nginx"

    @property
    def name(self) -> str:
        return "nginx"

    def test_config(self) -> Receipt:
        return self.runner.run(["nginx", "-t"])


class CertbotAdapter(Adapter):
    binary = "certbot"

    @property
    def name(self) -> str:
        return "certbot"

    def version(self) -> str:
        receipt = self.runner.run(["certbot", "--version"])
        return receipt.output.splitlines()[0] if receipt.ok and receipt.output else ""

    def issue(self, domain: str, email: str) -> Receipt:
        """Obtain and install a certificate through the nginx plugin."""
        return self.runner.run(
            [
                "certbot",
                "--nginx",
                "-d",
                domain,
                "--email",
                email,
                "--agree-tos",
                "--non-interactive",
            ],
            timeout=600,
        )
