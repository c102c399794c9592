"""
Chunk-level PNG toolkit: hide, find and remove messages in PNG chunks.
"""

from .chunk import Chunk, crc32
from .chunk_type import ChunkType
from .commands import (
    decode_message,
    encode_message,
    list_chunks,
    load_png,
    remove_chunk,
    verify_image,
)
from .config import PngmeConfig, load_config, save_config
from .errors import (
    BadSignature,
    ChecksumMismatch,
    DecodeError,
    ImageCheckError,
    InvalidLength,
    InvalidText,
    InvalidTypeBytes,
    NoTerminatorError,
    NotFoundError,
    ParseError,
    PngError,
    TooShort,
    TruncatedStream,
    ValidationError,
)
from .png import PNG_SIGNATURE, Png

__version__ = "0.1.0"
