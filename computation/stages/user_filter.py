"""
User filter: the optional allow-list of users to recommend for.

File format: one numeric user ID per line, surrounding whitespace ignored,
blank lines skipped. When the filter is enabled, an unreadable file or a
malformed line fails the recommend step.
"""

import logging
from pathlib import Path
from typing import FrozenSet, Union

from computation.errors import UserFilterError

logger = logging.getLogger(__name__)


def load_user_filter(path: Union[Path, str]) -> FrozenSet[int]:
    """Read the allow-list of user IDs."""
    try:
        with open(path, encoding="utf-8") as f:
            lines = f.readlines()
    except OSError as e:
        raise UserFilterError(f"Cannot read users file {path}: {e}") from e

    users = set()
    for lineno, line in enumerate(lines, start=1):
        text = line.strip()
        if not text:
            continue
        try:
            users.add(int(text))
        except ValueError:
            raise UserFilterError(f"{path}:{lineno}: not a user ID: {text!r}") from None
    logger.info("Loaded %d users to recommend for from %s", len(users), path)
    return frozenset(users)
