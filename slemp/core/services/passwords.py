"""
Secret generator — random credentials through a layered fallback chain.

Tiers, each tried only when the previous one produced nothing:
    1. os.urandom bytes filtered to the allowed alphabet
    2. ``openssl rand -base64`` filtered to the allowed alphabet
    3. per-character pseudo-random choice

The result is then padded (cycling A–Z) or truncated to the exact
length. Generation degrades, it never raises.
"""

from __future__ import annotations

import logging
import os
import random
import string
import subprocess
from itertools import cycle, islice
from typing import Callable, Sequence

logger = logging.getLogger(__name__)

ALPHABET = string.ascii_letters + string.digits + "!@#$%^&*()_+="
_ALLOWED = frozenset(ALPHABET)
_URANDOM_ROUNDS = 8

Source = Callable[[int], str]


def _filter(text: str) -> str:
    return "".join(c for c in text if c in _ALLOWED)


def urandom_source(length: int) -> str:
    """Cryptographic bytes, keeping only those that map into the alphabet."""
    try:
        collected = ""
        for _ in range(_URANDOM_ROUNDS):
            collected += _filter(os.urandom(length * 4).decode("latin-1"))
            if len(collected) >= length:
                break
        return collected
    except (NotImplementedError, OSError) as e:
        logger.debug("os.urandom unavailable: %s", e)
        return ""


def openssl_source(length: int) -> str:
    """``openssl rand -base64``, filtered to the alphabet."""
    try:
        result = subprocess.run(
            ["openssl", "rand", "-base64", str(length * 2)],
            capture_output=True,
            text=True,
            timeout=10,
        )
    except (OSError, subprocess.SubprocessError) as e:
        logger.debug("openssl unavailable: %s", e)
        return ""
    if result.returncode != 0:
        return ""
    return _filter(result.stdout)


def pseudo_random_source(length: int) -> str:
    """Last resort: non-cryptographic per-character choice."""
    rng = random.Random()
    return "".join(rng.choice(ALPHABET) for _ in range(length))


DEFAULT_SOURCES: tuple[Source, ...] = (urandom_source, openssl_source, pseudo_random_source)


def _fit(candidate: str, length: int) -> str:
    if len(candidate) < length:
        pad = islice(cycle(string.ascii_uppercase), length - len(candidate))
        candidate += "".join(pad)
    return candidate[:length]


def generate_password(length: int = 16, sources: Sequence[Source] | None = None) -> str:
    """Generate a secret of exactly ``length`` characters from ALPHABET.

    Args:
        length: Desired length. Values below 1 return an empty string.
        sources: Entropy tiers to try in order (default: DEFAULT_SOURCES).
    """
    if length < 1:
        return ""

    candidate = ""
    for index, source in enumerate(sources or DEFAULT_SOURCES, start=1):
        try:
            candidate = _filter(source(length) or "")
        except Exception as e:  # a broken tier must not stop the chain
            logger.debug("Password source %d failed: %s", index, e)
            candidate = ""
        if candidate:
            if index > 1:
                logger.debug("Password generated with fallback tier %d", index)
            break

    return _fit(candidate, length)
