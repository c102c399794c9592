class PngError(Exception):
    """Base class for every error raised by pngme."""


class ValidationError(PngError, ValueError):
    """Raised when a chunk type cannot be built from the given input."""


class InvalidTypeBytes(ValidationError):
    pass


class InvalidLength(ValidationError):
    pass


class ParseError(PngError, ValueError):
    """Raised when a byte buffer is not a well-formed chunk or PNG stream."""


class TooShort(ParseError):
    pass


class TruncatedStream(ParseError):
    pass


class BadSignature(ParseError):
    pass


class ChecksumMismatch(ParseError):
    def __init__(self, expected: int, actual: int) -> None:
        super().__init__(f"CRC mismatch: stored {expected:#010x}, computed {actual:#010x}")
        self.expected = expected
        self.actual = actual


class DecodeError(PngError, ValueError):
    """Raised when a payload cannot be rendered as text."""


class InvalidText(DecodeError):
    pass


class NotFoundError(PngError, LookupError):
    pass


class NoTerminatorError(PngError):
    pass


class ImageCheckError(PngError):
    """Raised when Pillow refuses to open a written PNG."""
