from typing import List, Optional

from .chunk import Chunk
from .errors import InvalidText

FALLBACK_ENCODINGS: List[str] = [
    "utf-8",
    "gb18030",
    "shift_jis",
    "cp1252",
    "latin-1",
]


def render_payload(chunk: Chunk, best_effort: bool = False, encoding: Optional[str] = None) -> str:
    """
    Render a chunk payload as text.

    Strict mode only accepts UTF-8 and raises ``InvalidText`` otherwise. In
    best-effort mode the preferred encoding is tried first, then the fallback
    list, and finally a hex dump.
    """
    try:
        return chunk.data_as_text()
    except InvalidText:
        if not best_effort:
            raise
    candidates = [encoding] if encoding else []
    candidates.extend(FALLBACK_ENCODINGS)
    for enc in dict.fromkeys(c.lower() for c in candidates):
        try:
            return chunk.data.decode(enc)
        except (UnicodeDecodeError, LookupError):
            continue
    return chunk.data.hex()


def describe_chunk(index: int, chunk: Chunk) -> str:
    """One-line summary used by the ``print`` command."""
    ctype = chunk.chunk_type
    kind = "critical" if ctype.is_critical else "ancillary"
    scope = "public" if ctype.is_public else "private"
    copy = "safe-to-copy" if ctype.is_safe_to_copy else "unsafe-to-copy"
    return f"{index:>3}  {ctype}  length={chunk.length:<8} crc={chunk.crc:08x}  {kind}, {scope}, {copy}"
