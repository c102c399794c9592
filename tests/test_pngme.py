import struct
import unittest
import zlib

from pngme import (
    PNG_SIGNATURE,
    BadSignature,
    ChecksumMismatch,
    Chunk,
    ChunkType,
    InvalidLength,
    InvalidText,
    InvalidTypeBytes,
    NoTerminatorError,
    NotFoundError,
    ParseError,
    Png,
    TooShort,
    TruncatedStream,
)

MESSAGE = "This is where your secret message will be!"
MESSAGE_CRC = 2882656334


def raw_chunk(chunk_type: bytes, data: bytes, crc: int = None) -> bytes:
    if crc is None:
        crc = zlib.crc32(chunk_type + data) & 0xFFFFFFFF
    return struct.pack(">I", len(data)) + chunk_type + data + struct.pack(">I", crc)


def chunk_from_strings(chunk_type: str, data: str) -> Chunk:
    return Chunk(ChunkType.from_text(chunk_type), data.encode("utf-8"))


def testing_png() -> Png:
    return Png.from_chunks(
        [
            chunk_from_strings("FrSt", "I am the first chunk"),
            chunk_from_strings("miDl", "I am another chunk"),
            chunk_from_strings("LASt", "I am the last chunk"),
            Chunk(ChunkType.from_text("IEND"), b""),
        ]
    )


class TestChunkType(unittest.TestCase):
    def test_from_bytes_and_text(self) -> None:
        from_bytes = ChunkType.from_bytes([82, 117, 83, 116])
        self.assertEqual(from_bytes.raw, bytes([82, 117, 83, 116]))
        self.assertEqual(from_bytes, ChunkType.from_text("RuSt"))
        self.assertEqual(str(from_bytes), "RuSt")
        self.assertEqual(from_bytes.to_text(), "RuSt")
        self.assertEqual(bytes(from_bytes), b"RuSt")

    def test_property_bits(self) -> None:
        rust = ChunkType.from_text("RuSt")
        self.assertTrue(rust.is_critical)
        self.assertFalse(rust.is_public)
        self.assertTrue(rust.is_reserved_bit_valid)
        self.assertTrue(rust.is_safe_to_copy)
        self.assertTrue(rust.is_valid)

        self.assertFalse(ChunkType.from_text("ruSt").is_critical)
        self.assertTrue(ChunkType.from_text("RUSt").is_public)
        self.assertFalse(ChunkType.from_text("RuST").is_safe_to_copy)

    def test_reserved_bit_makes_type_invalid(self) -> None:
        rust = ChunkType.from_text("Rust")
        self.assertFalse(rust.is_reserved_bit_valid)
        self.assertFalse(rust.is_valid)

    def test_rejects_non_alphabetic(self) -> None:
        with self.assertRaises(InvalidTypeBytes):
            ChunkType.from_bytes([82, 117, 49, 116])
        with self.assertRaises(InvalidTypeBytes):
            ChunkType.from_text("Ru1t")
        with self.assertRaises(InvalidTypeBytes):
            ChunkType.from_bytes(b"R\x00St")

    def test_rejects_wrong_length(self) -> None:
        for text in ["", "abc", "abcde", "abcé"]:
            with self.subTest(text=text):
                with self.assertRaises(InvalidLength):
                    ChunkType.from_text(text)
        with self.assertRaises(InvalidLength):
            ChunkType.from_bytes(b"IEN")

    def test_equality_is_case_sensitive(self) -> None:
        self.assertNotEqual(ChunkType.from_text("IEND"), ChunkType.from_text("iend"))
        self.assertLess(ChunkType.from_text("IDAT"), ChunkType.from_text("IEND"))
        self.assertEqual(len({ChunkType.from_text("tEXt"), ChunkType.from_bytes(b"tEXt")}), 1)

    def test_normalize_keeps_property_bit(self) -> None:
        self.assertEqual(ChunkType.normalize(b"Ru1t").to_text(), "Ruxt")
        self.assertEqual(ChunkType.normalize(b"\x01uSt").to_text(), "XuSt")
        self.assertEqual(ChunkType.normalize(b"RuSt").to_text(), "RuSt")


class TestChunk(unittest.TestCase):
    def setUp(self) -> None:
        self.rust = ChunkType.from_text("RuSt")
        self.wire = raw_chunk(b"RuSt", MESSAGE.encode(), MESSAGE_CRC)

    def test_new_chunk(self) -> None:
        chunk = Chunk(self.rust, MESSAGE.encode())
        self.assertEqual(chunk.length, 42)
        self.assertEqual(chunk.crc, MESSAGE_CRC)
        self.assertEqual(chunk.as_bytes(), self.wire)

    def test_parse_known_chunk(self) -> None:
        chunk = Chunk.parse(self.wire)
        self.assertEqual(chunk.length, 42)
        self.assertEqual(str(chunk.chunk_type), "RuSt")
        self.assertEqual(chunk.data_as_text(), MESSAGE)
        self.assertEqual(chunk.crc, MESSAGE_CRC)
        self.assertEqual(chunk, Chunk(self.rust, MESSAGE.encode()))

    def test_parse_inverts_as_bytes(self) -> None:
        for payload in [b"", b"\x00\xff" * 100, "ünïcode".encode()]:
            with self.subTest(payload=payload):
                chunk = Chunk(ChunkType.from_text("ruSt"), payload)
                self.assertEqual(Chunk.parse(chunk.as_bytes()), chunk)

    def test_wrong_crc_rejected(self) -> None:
        with self.assertRaises(ChecksumMismatch) as ctx:
            Chunk.parse(raw_chunk(b"RuSt", MESSAGE.encode(), MESSAGE_CRC - 1))
        self.assertEqual(ctx.exception.expected, MESSAGE_CRC - 1)
        self.assertEqual(ctx.exception.actual, MESSAGE_CRC)

    def test_bit_flip_in_type_or_payload(self) -> None:
        for offset in range(4, len(self.wire) - 4):
            for bit in (0, 5, 7):
                corrupted = bytearray(self.wire)
                corrupted[offset] ^= 1 << bit
                with self.subTest(offset=offset, bit=bit):
                    with self.assertRaises(ChecksumMismatch):
                        Chunk.parse(bytes(corrupted))
                    with self.assertRaises(ChecksumMismatch):
                        Chunk.parse(bytes(corrupted), lenient=False)

    def test_any_corrupted_byte_fails(self) -> None:
        for offset in range(len(self.wire)):
            corrupted = bytearray(self.wire)
            corrupted[offset] ^= 0xFF
            with self.subTest(offset=offset):
                with self.assertRaises(ParseError):
                    Chunk.parse(bytes(corrupted))

    def test_too_short(self) -> None:
        with self.assertRaises(TooShort):
            Chunk.parse(b"\x00" * 11)
        with self.assertRaises(TooShort):
            Chunk.parse(self.wire[:-1])

    def test_lenient_and_strict_type_bytes(self) -> None:
        wire = raw_chunk(b"Ru1t", b"payload")
        with self.assertRaises(InvalidTypeBytes):
            Chunk.parse(wire, lenient=False)
        chunk = Chunk.parse(wire)
        self.assertEqual(chunk.chunk_type.to_text(), "Ruxt")
        self.assertEqual(chunk.crc, zlib.crc32(b"Ruxtpayload") & 0xFFFFFFFF)
        self.assertEqual(Chunk.parse(chunk.as_bytes(), lenient=False), chunk)

    def test_data_as_text_rejects_invalid_utf8(self) -> None:
        chunk = Chunk(self.rust, b"\xff\xfe\xfd")
        with self.assertRaises(InvalidText):
            chunk.data_as_text()

    def test_chunk_is_immutable(self) -> None:
        chunk = Chunk(self.rust, bytearray(b"abc"))
        self.assertIsInstance(chunk.data, bytes)
        with self.assertRaises(AttributeError):
            chunk.data = b"other"  # type: ignore[misc]

    def test_display(self) -> None:
        text = str(Chunk(self.rust, MESSAGE.encode()))
        self.assertIn("Type: RuSt", text)
        self.assertIn("Length: 42", text)


class TestPng(unittest.TestCase):
    def test_from_chunks(self) -> None:
        png = testing_png()
        self.assertEqual(len(png), 4)
        self.assertEqual(png.chunk_types(), ["FrSt", "miDl", "LASt", "IEND"])
        self.assertEqual(png.header, PNG_SIGNATURE)

    def test_parse_roundtrip(self) -> None:
        png = testing_png()
        data = png.as_bytes()
        self.assertTrue(data.startswith(PNG_SIGNATURE))
        parsed = Png.parse(data)
        self.assertEqual(parsed, png)
        self.assertEqual(parsed.as_bytes(), data)
        self.assertEqual(Png.parse(parsed.as_bytes()), parsed)

    def test_parse_signature_only(self) -> None:
        self.assertEqual(len(Png.parse(PNG_SIGNATURE)), 0)

    def test_bad_signature(self) -> None:
        data = testing_png().as_bytes()
        with self.assertRaises(BadSignature):
            Png.parse(b"\x88" + data[1:])
        with self.assertRaises(BadSignature):
            Png.parse(b"")

    def test_truncated_stream(self) -> None:
        data = testing_png().as_bytes()
        with self.assertRaises(TruncatedStream):
            Png.parse(data[:-1])
        with self.assertRaises(TruncatedStream):
            Png.parse(data + b"\x00\x00\x00")
        with self.assertRaises(TruncatedStream):
            Png.parse(PNG_SIGNATURE + struct.pack(">I", 100) + b"tEXt" + b"short")

    def test_corrupt_chunk_propagates(self) -> None:
        data = bytearray(testing_png().as_bytes())
        data[len(PNG_SIGNATURE) + 10] ^= 0x01
        with self.assertRaises(ChecksumMismatch):
            Png.parse(bytes(data))

    def test_strict_parse(self) -> None:
        data = PNG_SIGNATURE + raw_chunk(b"Ru1t", b"x") + raw_chunk(b"IEND", b"")
        with self.assertRaises(InvalidTypeBytes):
            Png.parse(data, lenient=False)
        self.assertEqual(Png.parse(data).chunk_types(), ["Ruxt", "IEND"])
        # Normalized output is canonical: reparsing it gives the same chunks.
        self.assertEqual(Png.parse(Png.parse(data).as_bytes()), Png.parse(data))
        self.assertEqual(Png.parse(Png.parse(data).as_bytes(), lenient=False), Png.parse(data))

    def test_insert_before_terminator(self) -> None:
        png = testing_png()
        png.insert_message_chunk(chunk_from_strings("TeSt", "Message"))
        self.assertEqual(png.chunk_types(), ["FrSt", "miDl", "LASt", "TeSt", "IEND"])
        png.insert_message_chunk(chunk_from_strings("aaAa", "Another"))
        self.assertEqual(png.chunk_types()[-2:], ["aaAa", "IEND"])
        self.assertEqual(Png.parse(png.as_bytes()), png)

    def test_insert_without_terminator(self) -> None:
        png = Png.from_chunks([chunk_from_strings("FrSt", "only")])
        with self.assertRaises(NoTerminatorError):
            png.insert_message_chunk(chunk_from_strings("TeSt", "Message"))
        self.assertEqual(png.chunk_types(), ["FrSt"])

    def test_find_first_by_type(self) -> None:
        png = testing_png()
        png.insert_message_chunk(chunk_from_strings("miDl", "second"))
        found = png.find_first_by_type(ChunkType.from_text("miDl"))
        self.assertIsNotNone(found)
        self.assertEqual(found.data_as_text(), "I am another chunk")
        self.assertEqual(png.find_first_by_type("miDl"), found)
        self.assertIsNone(png.find_first_by_type("MIDL"))

    def test_remove_first_by_type(self) -> None:
        png = testing_png()
        removed = png.remove_first_by_type("miDl")
        self.assertEqual(removed.chunk_type.to_text(), "miDl")
        self.assertEqual(removed.data_as_text(), "I am another chunk")
        self.assertEqual(png.chunk_types(), ["FrSt", "LASt", "IEND"])

    def test_remove_missing_type(self) -> None:
        png = testing_png()
        with self.assertRaises(NotFoundError):
            png.remove_first_by_type(ChunkType.from_text("nOPe"))
        self.assertEqual(len(png), 4)

    def test_chunks_view_is_read_only(self) -> None:
        png = testing_png()
        view = png.chunks
        self.assertIsInstance(view, tuple)
        self.assertEqual([c.chunk_type.to_text() for c in png], png.chunk_types())


if __name__ == "__main__":
    unittest.main()
