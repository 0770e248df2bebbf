from __future__ import annotations
import re
import chardet  # type: ignore
from pathlib import Path
from typing import List, Optional, Tuple

DEFAULT_LOGGER_NAME = "codeguardian"

BINARY_BYTES = bytes(range(0, 32)) + b"\x7f"
MAX_SNIPPET_CHARS = 500


class UnreadableFile(Exception):
    """Raised by ``read_source`` when a file cannot be decoded as text."""


def is_likely_binary(
    data: bytes, control_threshold: float = 0.30, high_bit_threshold: float = 0.60
) -> bool:
    if not data:
        return False
    total = len(data)
    if 0 in data:
        return True
    control = sum(1 for b in data if b in BINARY_BYTES and b not in (9, 10, 13))
    if (control / total) > control_threshold:
        return True
    high = sum(1 for b in data if b >= 0x80)
    if (high / total) > high_bit_threshold:
        return True
    return False


def decode_bytes(data: bytes) -> Optional[str]:
    """Decode ``data`` using utf-8 first, then the chardet guess."""

    candidates = ["utf-8"]
    enc = chardet.detect(data).get("encoding")
    if enc and enc.lower() not in ("utf-8", "ascii"):
        candidates.append(enc)
    for candidate in candidates:
        try:
            return data.decode(candidate, errors="strict")
        except (LookupError, UnicodeDecodeError):
            continue
    return None


def read_source(path: Path, max_bytes: int = 20_000_000) -> str:
    with path.open("rb") as f:
        head = f.read(min(4096, max_bytes))
        if is_likely_binary(head):
            raise UnreadableFile("binary content")
        rest = f.read(max(0, max_bytes - len(head)))
        data = head + rest
    if is_likely_binary(data):
        raise UnreadableFile("binary content")
    text = decode_bytes(data)
    if text is None:
        raise UnreadableFile("unsupported text encoding")
    return text.lstrip("\ufeff")


def line_starts(text: str) -> List[int]:
    """Offsets at which each line of ``text`` begins."""

    starts = [0]
    for m in re.finditer("\n", text):
        starts.append(m.end())
    return starts


def offset_to_position(starts: List[int], offset: int) -> Tuple[int, int]:
    """Map a character offset to a 1-based (line, column)."""

    lo, hi = 0, len(starts) - 1
    while lo < hi:
        mid = (lo + hi + 1) // 2
        if starts[mid] <= offset:
            lo = mid
        else:
            hi = mid - 1
    return lo + 1, offset - starts[lo] + 1


def extract_context(lines: List[str], line_number: int, radius: int = 1) -> str:
    start = max(0, line_number - 1 - radius)
    end = min(len(lines), line_number + radius)
    out = []
    for idx in range(start, end):
        num = idx + 1
        marker = ">" if num == line_number else " "
        out.append(f"{marker} {num:>4} | {lines[idx]}")
    return "\n".join(out)


def clip(text: str, limit: int = MAX_SNIPPET_CHARS) -> str:
    text = text.strip()
    if len(text) <= limit:
        return text
    return text[: limit - 3] + "..."
