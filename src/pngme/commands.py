import os
import tempfile
from pathlib import Path
from typing import List, Optional, Union

from PIL import Image, UnidentifiedImageError

from .chunk import Chunk
from .chunk_type import TypeLike, as_chunk_type
from .errors import ImageCheckError, InvalidText
from .png import Png

PathLike = Union[str, Path]


def load_png(path: PathLike, lenient: bool = True) -> Png:
    """Read a file from disk and parse it into a ``Png``."""
    return Png.parse(Path(path).read_bytes(), lenient=lenient)


def encode_text(message: str) -> bytes:
    """
    UTF-8 encode a message. Undecodable argv bytes (surrogateescape) are
    restored as the original bytes; any other lone surrogate is rejected.
    """
    try:
        return message.encode("utf-8", "surrogateescape")
    except UnicodeEncodeError as exc:
        raise InvalidText(f"Message cannot be encoded as UTF-8: {exc.reason}") from exc


def save_png(png: Png, path: PathLike) -> Path:
    target = Path(path)
    target.write_bytes(png.as_bytes())
    return target


def verify_image(path: PathLike) -> None:
    """
    Ask Pillow to check that ``path`` is still a PNG it can read.

    ``Image.verify`` walks the chunk stream and checks CRCs without decoding
    pixel data.
    """
    try:
        with Image.open(path) as img:
            if img.format != "PNG":
                raise ImageCheckError(f"{path} is recognised as {img.format}, not PNG.")
            img.verify()
    except (OSError, SyntaxError, UnidentifiedImageError) as exc:
        raise ImageCheckError(f"Pillow cannot verify {path}: {exc}") from exc


def encode_message(
    path: PathLike,
    chunk_type: TypeLike,
    message: str,
    output: Optional[PathLike] = None,
    lenient: bool = True,
    verify: bool = False,
) -> Path:
    """
    Hide ``message`` in a new chunk placed just before ``IEND``.

    The result goes to ``output`` when given, otherwise the source file is
    overwritten. With ``verify`` the new file is checked before it replaces
    the target, so a failed check leaves the target untouched. Returns the
    path written.
    """
    png = load_png(path, lenient=lenient)
    png.insert_message_chunk(Chunk(as_chunk_type(chunk_type), encode_text(message)))
    target = Path(output or path)
    if not verify:
        return save_png(png, target)
    fd, tmp_name = tempfile.mkstemp(prefix=".pngme-", suffix=".png", dir=target.parent)
    os.close(fd)
    tmp_path = Path(tmp_name)
    try:
        save_png(png, tmp_path)
        verify_image(tmp_path)
        os.replace(tmp_path, target)
    finally:
        if tmp_path.exists():
            tmp_path.unlink()
    return target


def decode_message(path: PathLike, chunk_type: TypeLike, lenient: bool = True) -> Optional[Chunk]:
    return load_png(path, lenient=lenient).find_first_by_type(chunk_type)


def remove_chunk(path: PathLike, chunk_type: TypeLike, lenient: bool = True) -> Chunk:
    """Remove the first chunk of ``chunk_type`` and rewrite the file in place."""
    png = load_png(path, lenient=lenient)
    removed = png.remove_first_by_type(chunk_type)
    save_png(png, path)
    return removed


def list_chunks(path: PathLike, lenient: bool = True) -> List[Chunk]:
    return list(load_png(path, lenient=lenient).chunks)
