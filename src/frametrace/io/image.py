"""Image decode helpers built on Pillow."""

import io

from PIL import Image, UnidentifiedImageError

from frametrace.exceptions import DecodeError

_ALPHA_MODES = ("RGBA", "LA", "PA", "RGBa", "La")


def decode_image(data: bytes) -> Image.Image:
    """Decode encoded image bytes into a fully loaded Pillow image.

    Args:
        data: Encoded image (PNG, JPEG, WebP, ...)

    Returns:
        Decoded image detached from the input buffer

    Raises:
        DecodeError: If the data is empty or not a decodable image
    """
    if not data:
        raise DecodeError("empty input")

    try:
        with Image.open(io.BytesIO(data)) as im:
            im.load()
            return im.copy()
    except UnidentifiedImageError as e:
        raise DecodeError("unrecognized image format") from e
    except Image.DecompressionBombError as e:
        raise DecodeError(str(e)) from e
    except (OSError, SyntaxError, ValueError, EOFError) as e:
        raise DecodeError(str(e) or type(e).__name__) from e


def has_alpha(image: Image.Image) -> bool:
    """True if the image carries an alpha channel (or palette transparency)."""
    if image.mode in _ALPHA_MODES:
        return True
    return image.mode == "P" and "transparency" in image.info


def to_rgba(image: Image.Image) -> Image.Image:
    """Return an RGBA copy; images without alpha become fully opaque."""
    if image.mode == "RGBA":
        return image.copy()
    return image.convert("RGBA")
