"""
Environment loading for API keys and service settings during local development.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Dict, Iterable

logger = logging.getLogger(__name__)


def parse_env_file(env_path: Path) -> Dict[str, str]:
    """Parse KEY=value lines, skipping comments, blanks, and `export ` prefixes."""
    values: Dict[str, str] = {}
    for line in env_path.read_text().splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#") or "=" not in stripped:
            continue
        if stripped.startswith("export "):
            stripped = stripped[len("export ") :].strip()
        key, value = stripped.split("=", 1)
        key = key.strip()
        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in {'"', "'"}:
            value = value[1:-1]
        if key:
            values[key] = value
    return values


def load_env_if_present(candidate_paths: Iterable[Path]) -> bool:
    """
    Load the first readable .env-style file into os.environ.

    Variables already present in the environment win over file values.

    Returns:
        True if a file was loaded.
    """
    for env_path in candidate_paths:
        if not env_path.is_file():
            continue
        try:
            values = parse_env_file(env_path)
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Skipping unreadable env file %s: %s", env_path, exc)
            continue
        for key, value in values.items():
            os.environ.setdefault(key, value)
        logger.debug("Loaded %d variables from %s", len(values), env_path)
        return True
    return False


def load_default_env() -> bool:
    """Load from cwd/.env, then the project root .env."""
    candidates = [
        Path.cwd() / ".env",
        Path(__file__).resolve().parents[2] / ".env",
    ]
    return load_env_if_present(candidates)


__all__ = ["load_default_env", "load_env_if_present", "parse_env_file"]
