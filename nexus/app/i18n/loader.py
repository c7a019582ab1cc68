"""
Reply catalogue for the command interface.

messages.txt holds one entry per line:
    en:track:ok| "Now tracking %s on your behalf"
Unknown keys fall back to the default language, then to the key itself.
"""

import re
from pathlib import Path
from typing import Optional

DEFAULT_LANG = "en"

MESSAGES: dict[str, dict[str, str]] = {}

ENTRY_RE = re.compile(r'^(?P<lang>\w+):(?P<key>[^|]+)\|\s*"(?P<text>.*)"$')


def parse_entry(line: str) -> Optional[tuple[str, str, str]]:
    """(lang, key, text) for an entry line, None for blanks, comments and junk."""
    line = line.strip()
    if not line or line.startswith("#"):
        return None

    m = ENTRY_RE.match(line)
    if m is None:
        return None

    text = m["text"].replace("\\n", "\n").strip()
    return m["lang"], m["key"].strip(), text


def load_messages(path: str | Path) -> None:
    path = Path(path)
    if not path.exists():
        raise RuntimeError(f"messages file not found: {path}")

    MESSAGES.clear()
    for raw_line in path.read_text(encoding="utf-8").splitlines():
        entry = parse_entry(raw_line)
        if entry is not None:
            lang, key, text = entry
            MESSAGES.setdefault(lang, {})[key] = text


def t(key: str, lang: Optional[str] = None, *args) -> str:
    text = (
        MESSAGES.get(lang or DEFAULT_LANG, {}).get(key)
        or MESSAGES.get(DEFAULT_LANG, {}).get(key)
        or key
    )
    if not args:
        return text

    try:
        return text % args
    except (TypeError, ValueError):
        return text
