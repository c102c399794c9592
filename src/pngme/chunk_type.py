from dataclasses import dataclass
from typing import Iterable, Union

from .errors import InvalidLength, InvalidTypeBytes

# Bit 5 of each type byte carries one PNG property (lowercase when set).
PROPERTY_BIT = 0x20
TYPE_LENGTH = 4

BytesLike = Union[bytes, bytearray, memoryview, Iterable[int]]


def _is_alpha(byte: int) -> bool:
    return 65 <= byte <= 90 or 97 <= byte <= 122


def _is_upper(byte: int) -> bool:
    return 65 <= byte <= 90


def _is_lower(byte: int) -> bool:
    return 97 <= byte <= 122


@dataclass(frozen=True, order=True)
class ChunkType:
    """
    A validated four-letter PNG chunk type.

    The case of each letter encodes a property: critical/ancillary,
    public/private, reserved, safe/unsafe to copy. Equality and ordering use
    the raw bytes, so ``IEND`` and ``iend`` are different types.
    """

    raw: bytes

    def __post_init__(self) -> None:
        if len(self.raw) != TYPE_LENGTH:
            raise InvalidLength(f"Chunk type must be {TYPE_LENGTH} bytes, got {len(self.raw)}.")
        if not all(_is_alpha(b) for b in self.raw):
            raise InvalidTypeBytes(f"Chunk type {self.raw!r} contains non-alphabetic bytes.")

    @classmethod
    def from_bytes(cls, data: BytesLike) -> "ChunkType":
        try:
            raw = bytes(data)
        except (TypeError, ValueError) as exc:
            raise InvalidTypeBytes(f"Chunk type bytes out of range: {data!r}") from exc
        return cls(raw)

    @classmethod
    def from_text(cls, text: str) -> "ChunkType":
        raw = text.encode("utf-8")
        if len(raw) != TYPE_LENGTH:
            raise InvalidLength(f"Chunk type {text!r} must be exactly {TYPE_LENGTH} ASCII letters.")
        return cls.from_bytes(raw)

    @classmethod
    def normalize(cls, data: BytesLike) -> "ChunkType":
        """
        Build a type from raw bytes, replacing any non-letter with ``X`` or
        ``x`` so that the byte's property bit survives.
        """
        raw = bytes(data)
        if len(raw) != TYPE_LENGTH:
            raise InvalidLength(f"Chunk type must be {TYPE_LENGTH} bytes, got {len(raw)}.")
        fixed = bytes(
            b if _is_alpha(b) else (ord("x") if b & PROPERTY_BIT else ord("X"))
            for b in raw
        )
        return cls(fixed)

    def to_text(self) -> str:
        return self.raw.decode("ascii")

    def __str__(self) -> str:
        return self.to_text()

    def __bytes__(self) -> bytes:
        return self.raw

    @property
    def is_critical(self) -> bool:
        return _is_upper(self.raw[0])

    @property
    def is_public(self) -> bool:
        return _is_upper(self.raw[1])

    @property
    def is_reserved_bit_valid(self) -> bool:
        return _is_upper(self.raw[2])

    @property
    def is_safe_to_copy(self) -> bool:
        return _is_lower(self.raw[3])

    @property
    def is_valid(self) -> bool:
        return self.is_reserved_bit_valid and all(_is_alpha(b) for b in self.raw)


TypeLike = Union[ChunkType, str, bytes]


def as_chunk_type(value: TypeLike) -> ChunkType:
    """Accept a ChunkType, a 4-letter string or 4 raw bytes."""
    if isinstance(value, ChunkType):
        return value
    if isinstance(value, str):
        return ChunkType.from_text(value)
    return ChunkType.from_bytes(value)
