"""
Recovery file — the one place generated credentials are written in clear.

After the summary, the full configuration (secrets included) is saved
as ``KEY=VALUE`` lines so the operator can recover passwords the
installer generated. The write is atomic with mode 0600. If the
primary location is not writable, a fallback location is tried.
"""

from __future__ import annotations

import logging
from datetime import datetime

from slemp.adapters.shell.filesystem import Filesystem
from slemp.core.models.config import ConfigurationRecord

logger = logging.getLogger(__name__)

RECOVERY_MODE = 0o600


def render_recovery_file(
    record: ConfigurationRecord,
    node_version: str = "",
    generated_at: datetime | None = None,
) -> str:
    stamp = (generated_at or datetime.now()).strftime("%Y-%m-%d %H:%M:%S")
    lines = [
        "# Laravel LEMP Stack Configuration",
        f"# Generated: {stamp}",
        *record.to_recovery_lines(node_version),
    ]
    return "\n".join(lines) + "\n"


def save_recovery_file(
    record: ConfigurationRecord,
    fs: Filesystem,
    primary: str,
    fallback: str | None = None,
    node_version: str = "",
) -> str | None:
    """Write the recovery file.

    Returns:
        The host path written, or None when neither location worked.
    """
    content = render_recovery_file(record, node_version)
    for path in (primary, fallback):
        if not path:
            continue
        try:
            fs.write_text(path, content, mode=RECOVERY_MODE)
        except OSError as e:
            logger.warning("Could not write configuration to %s: %s", path, e)
            continue
        logger.info("Configuration saved to: %s", path)
        return path

    logger.warning("Configuration was not saved; record the credentials above manually")
    return None
