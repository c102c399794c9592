from typing import Iterable, Iterator, List, Optional, Tuple

from .chunk import MIN_CHUNK_SIZE, Chunk, declared_length
from .chunk_type import ChunkType, TypeLike, as_chunk_type
from .errors import BadSignature, NoTerminatorError, NotFoundError, TruncatedStream

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"
TERMINATOR_TYPE = ChunkType(b"IEND")


class Png:
    """
    The ordered chunk sequence of one PNG file.

    Order is kept exactly as parsed; message chunks are always inserted just
    before ``IEND`` so the terminator stays last.
    """

    SIGNATURE = PNG_SIGNATURE

    def __init__(self, chunks: Optional[Iterable[Chunk]] = None) -> None:
        self._chunks: List[Chunk] = list(chunks or [])

    @classmethod
    def from_chunks(cls, chunks: Iterable[Chunk]) -> "Png":
        return cls(chunks)

    @classmethod
    def parse(cls, buffer: bytes, lenient: bool = True) -> "Png":
        """
        Parse a complete PNG byte stream.

        Chunks are framed by their length prefix only. The whole buffer must
        be consumed; a header or declared length running past the end raises
        ``TruncatedStream``.
        """
        buffer = bytes(buffer)
        if buffer[: len(PNG_SIGNATURE)] != PNG_SIGNATURE:
            raise BadSignature("Not a PNG file: signature mismatch.")
        chunks: List[Chunk] = []
        offset = len(PNG_SIGNATURE)
        total = len(buffer)
        while offset < total:
            if offset + 8 > total:
                raise TruncatedStream(f"Incomplete chunk header at offset {offset}.")
            end = offset + MIN_CHUNK_SIZE + declared_length(buffer, offset)
            if end > total:
                raise TruncatedStream(
                    f"Chunk at offset {offset} runs past end of data ({end} > {total})."
                )
            chunks.append(Chunk.parse(buffer[offset:end], lenient=lenient))
            offset = end
        return cls(chunks)

    @property
    def header(self) -> bytes:
        return PNG_SIGNATURE

    @property
    def chunks(self) -> Tuple[Chunk, ...]:
        return tuple(self._chunks)

    def chunk_types(self) -> List[str]:
        return [str(chunk.chunk_type) for chunk in self._chunks]

    def _index_of(self, chunk_type: ChunkType) -> Optional[int]:
        for idx, chunk in enumerate(self._chunks):
            if chunk.chunk_type == chunk_type:
                return idx
        return None

    def insert_message_chunk(self, chunk: Chunk) -> None:
        idx = self._index_of(TERMINATOR_TYPE)
        if idx is None:
            raise NoTerminatorError("PNG has no IEND chunk to insert before.")
        self._chunks.insert(idx, chunk)

    def find_first_by_type(self, chunk_type: TypeLike) -> Optional[Chunk]:
        idx = self._index_of(as_chunk_type(chunk_type))
        return None if idx is None else self._chunks[idx]

    def remove_first_by_type(self, chunk_type: TypeLike) -> Chunk:
        wanted = as_chunk_type(chunk_type)
        idx = self._index_of(wanted)
        if idx is None:
            raise NotFoundError(f"No chunk of type {wanted} found.")
        return self._chunks.pop(idx)

    def as_bytes(self) -> bytes:
        return PNG_SIGNATURE + b"".join(chunk.as_bytes() for chunk in self._chunks)

    def __len__(self) -> int:
        return len(self._chunks)

    def __iter__(self) -> Iterator[Chunk]:
        return iter(self.chunks)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Png):
            return NotImplemented
        return self._chunks == other._chunks

    def __repr__(self) -> str:
        return f"Png(chunks={self.chunk_types()!r})"

    def __str__(self) -> str:
        return "\n".join(str(chunk) for chunk in self._chunks)
