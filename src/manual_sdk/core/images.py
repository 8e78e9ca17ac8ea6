"""Bitmap reference handling: data URLs and file paths, probed with Pillow."""

import base64
import io
import logging
import mimetypes
from pathlib import Path
from typing import Optional

from PIL import Image, UnidentifiedImageError

logger = logging.getLogger("ManualMCP.core.images")

DEFAULT_BITMAP_SIZE = (1280, 720)


def is_data_url(ref: str) -> bool:
    return ref.startswith("data:")


def decode_data_url(ref: str) -> bytes:
    """Return the payload of a base64 ``data:`` URL."""
    header, _, payload = ref.partition(",")
    if not header.endswith(";base64"):
        raise ValueError("Only base64 data URLs are supported")
    return base64.b64decode(payload)


def to_data_url(path: str | Path) -> str:
    """Read an image file into a self-contained ``data:`` URL."""
    path = Path(path)
    mime = mimetypes.guess_type(path.name)[0] or "image/png"
    encoded = base64.b64encode(path.read_bytes()).decode("ascii")
    return f"data:{mime};base64,{encoded}"


def resolve_path(ref: str, base_dir: Optional[Path] = None) -> Path:
    path = Path(ref)
    if not path.is_absolute() and base_dir is not None:
        path = base_dir / path
    return path


def read_bitmap_bytes(ref: str, base_dir: Optional[Path] = None) -> bytes:
    """Raw encoded bytes of a bitmap reference."""
    if is_data_url(ref):
        return decode_data_url(ref)
    return resolve_path(ref, base_dir).read_bytes()


def probe_bitmap_size(ref: str, base_dir: Optional[Path] = None) -> Optional[tuple[int, int]]:
    """Natural pixel size of a bitmap, or None if it cannot be decoded."""
    try:
        data = read_bitmap_bytes(ref, base_dir)
        with Image.open(io.BytesIO(data)) as img:
            return img.size
    except (OSError, ValueError, UnidentifiedImageError) as e:
        logger.warning(f"Could not read bitmap {ref[:48]!r}: {e}")
        return None


def bitmap_size(ref: Optional[str], base_dir: Optional[Path] = None) -> Optional[tuple[int, int]]:
    """Size used for projection: None without a bitmap, the default when undecodable."""
    if ref is None:
        return None
    return probe_bitmap_size(ref, base_dir) or DEFAULT_BITMAP_SIZE
