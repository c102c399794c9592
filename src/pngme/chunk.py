import struct
import zlib
from dataclasses import dataclass, field

from .chunk_type import ChunkType
from .errors import ChecksumMismatch, InvalidText, InvalidTypeBytes, TooShort

_LENGTH = struct.Struct(">I")
_HEADER = struct.Struct(">I4s")
_CRC = struct.Struct(">I")

# length + type + crc, with an empty payload
MIN_CHUNK_SIZE = _HEADER.size + _CRC.size


def crc32(chunk_type: bytes, data: bytes) -> int:
    """CRC-32/ISO-HDLC over type bytes followed by payload, as PNG defines it."""
    return zlib.crc32(data, zlib.crc32(chunk_type)) & 0xFFFFFFFF


def declared_length(buffer: bytes, offset: int = 0) -> int:
    """Read the big-endian payload length that starts a chunk record."""
    return _LENGTH.unpack_from(buffer, offset)[0]


@dataclass(frozen=True)
class Chunk:
    """
    One PNG chunk: type, opaque payload and the CRC over both.

    The CRC is always computed from ``chunk_type`` and ``data``, never taken
    from the caller, so a constructed chunk is consistent by definition.
    """

    chunk_type: ChunkType
    data: bytes = b""
    crc: int = field(init=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "data", bytes(self.data))
        object.__setattr__(self, "crc", crc32(self.chunk_type.raw, self.data))

    @property
    def length(self) -> int:
        return len(self.data)

    @classmethod
    def parse(cls, buffer: bytes, lenient: bool = True) -> "Chunk":
        """
        Parse the chunk record at the start of ``buffer``.

        The stored CRC is checked against the raw type bytes before the type
        is validated. With ``lenient`` set, non-letter type bytes are replaced
        by placeholders (see ``ChunkType.normalize``) instead of rejected, and
        the returned chunk carries the CRC of the normalized type.
        """
        buffer = bytes(buffer)
        if len(buffer) < MIN_CHUNK_SIZE:
            raise TooShort(f"Chunk needs at least {MIN_CHUNK_SIZE} bytes, got {len(buffer)}.")
        length, raw_type = _HEADER.unpack_from(buffer, 0)
        end = _HEADER.size + length
        if len(buffer) < end + _CRC.size:
            raise TooShort(
                f"Chunk declares {length} data bytes but only {len(buffer) - MIN_CHUNK_SIZE} are available."
            )
        data = buffer[_HEADER.size : end]
        (stored_crc,) = _CRC.unpack_from(buffer, end)
        actual_crc = crc32(raw_type, data)
        if stored_crc != actual_crc:
            raise ChecksumMismatch(stored_crc, actual_crc)
        try:
            chunk_type = ChunkType.from_bytes(raw_type)
        except InvalidTypeBytes:
            if not lenient:
                raise
            chunk_type = ChunkType.normalize(raw_type)
        return cls(chunk_type, data)

    def as_bytes(self) -> bytes:
        return (
            _HEADER.pack(self.length, self.chunk_type.raw)
            + self.data
            + _CRC.pack(self.crc)
        )

    def data_as_text(self) -> str:
        try:
            return self.data.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise InvalidText(f"{self.chunk_type} payload is not valid UTF-8: {exc.reason}") from exc

    def __str__(self) -> str:
        return "\n".join(
            [
                "Chunk {",
                f"  Length: {self.length}",
                f"  Type: {self.chunk_type}",
                f"  Data: {self.length} bytes",
                f"  Crc: {self.crc}",
                "}",
            ]
        )
