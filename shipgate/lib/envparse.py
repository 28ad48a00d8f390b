"""
Settings file parser.

Reads KEY=value lines without shell execution. Values that look like shell
expansions are rejected rather than silently passed to the engine.
"""

import os
import re
from pathlib import Path
from typing import Iterable, Mapping

FORBIDDEN_PATTERNS = [
    r'`',           # backticks
    r'\$\(',        # command substitution
    r'\$\{',        # variable expansion
    r';',           # command chaining
    r'&&',          # AND chaining
    r'\|',          # pipe / OR chaining
]

KEY_PATTERN = re.compile(r'^[A-Z][A-Z0-9_]*$')


def parse_env_text(text: str) -> dict[str, str]:
    """
    Parse settings text into a dict.

    Raises:
        ValueError: if a line is malformed or a value contains a forbidden pattern
    """
    result = {}

    for lineno, line in enumerate(text.splitlines(), 1):
        line = line.strip()

        if not line or line.startswith('#'):
            continue

        if line.startswith('export '):
            line = line[len('export '):].lstrip()

        if '=' not in line:
            raise ValueError(f"Line {lineno}: Invalid syntax (no '=')")

        key, _, value = line.partition('=')
        key = key.strip()
        value = value.strip()

        if not KEY_PATTERN.match(key):
            raise ValueError(f"Line {lineno}: Invalid key '{key}'")

        if len(value) >= 2 and value[0] == value[-1] and value[0] in ('"', "'"):
            value = value[1:-1]

        for pattern in FORBIDDEN_PATTERNS:
            if re.search(pattern, value):
                raise ValueError(f"Line {lineno}: Forbidden pattern in value for {key}")

        result[key] = value

    return result


def load_env(filepath: str | Path) -> dict[str, str]:
    """
    Parse a settings file.

    Raises:
        FileNotFoundError: if file doesn't exist
        ValueError: if syntax invalid or forbidden pattern found
    """
    path = Path(filepath)
    if not path.exists():
        raise FileNotFoundError(f"Settings file not found: {filepath}")
    return parse_env_text(path.read_text())


def overlay_environ(
    values: Mapping[str, str],
    keys: Iterable[str],
    environ: Mapping[str, str] | None = None,
) -> dict[str, str]:
    """Return a copy of values with any of keys taken from the process environment."""
    if environ is None:
        environ = os.environ
    merged = dict(values)
    for key in keys:
        if key in environ:
            merged[key] = environ[key]
    return merged
