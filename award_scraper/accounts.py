"""Login credentials per engine, loaded from a plain text file"""

from pathlib import Path
from typing import Dict, List, Tuple

from loguru import logger

from .exceptions import MissingCredentialsError

Credentials = Tuple[str, ...]


def parse_accounts(text: str) -> Dict[str, List[Credentials]]:
    """
    Parse ``ENGINE:username:password`` lines.

    Blank lines and ``#`` comments are skipped. Passwords may contain colons.
    """
    accounts: Dict[str, List[Credentials]] = {}
    for lineno, line in enumerate(text.splitlines(), start=1):
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        parts = line.split(":", 2)
        if len(parts) < 2 or not parts[0] or not parts[1]:
            logger.warning(f"Skipping malformed credentials line {lineno}")
            continue
        engine = parts[0].strip().upper()
        accounts.setdefault(engine, []).append(tuple(x.strip() for x in parts[1:]))
    return accounts


def load_accounts(path: Path) -> Dict[str, List[Credentials]]:
    if not path.exists():
        logger.warning(f"Credentials file not found: {path}")
        return {}
    accounts = parse_accounts(path.read_text(encoding="utf-8"))
    logger.debug(f"Loaded credentials for {len(accounts)} engines from {path}")
    return accounts


def get_credentials(accounts: Dict[str, List[Credentials]], engine: str, index: int = 0) -> Credentials:
    """Pick an account for ``engine``, round-robin by ``index``"""
    available = accounts.get(engine.upper())
    if not available:
        raise MissingCredentialsError(f"MISSING_CREDENTIALS: No accounts configured for {engine.upper()}")
    return available[index % len(available)]
