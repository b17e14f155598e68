"""Font registry for text rendering.

Font keys (``sans-bold``, ``serif-normal``, ...) name a family and a weight.
A FontLocator scans font directories once, reading family names and weight
classes with fontTools, and the FontRegistry resolves every key to a file at
construction time. The registry is read-only afterwards.
"""

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType

import structlog
from fontTools.ttLib import TTFont
from PIL import ImageFont

from frametrace.exceptions import InputValidationError

logger = structlog.get_logger(__name__)

FONT_SUFFIXES = (".ttf", ".otf", ".ttc")

SANS = ("DejaVu Sans", "Liberation Sans", "Arial", "Helvetica")
SERIF = ("DejaVu Serif", "Liberation Serif", "Times New Roman", "Georgia")
MONO = ("DejaVu Sans Mono", "Liberation Mono", "Courier New", "Menlo")
NOTO = ("Noto Sans", "DejaVu Sans", "Arial")


@dataclass(frozen=True, slots=True)
class FontSpec:
    """A named font choice.

    Attributes:
        key: Registry key sent by callers
        label: Human-readable name
        families: Family names to try, most preferred first
        weight: OS/2 weight class (100 thin ... 900 black)
    """

    key: str
    label: str
    families: tuple[str, ...]
    weight: int


@dataclass(frozen=True, slots=True)
class FontFace:
    """One font file as described by its own tables."""

    path: Path
    family: str
    weight: int
    italic: bool = False


DEFAULT_FONTS: Mapping[str, FontSpec] = MappingProxyType(
    {
        spec.key: spec
        for spec in (
            FontSpec("sans-bold", "Sans Bold", SANS, 700),
            FontSpec("serif-bold", "Serif Bold", SERIF, 700),
            FontSpec("mono-bold", "Mono Bold", MONO, 700),
            FontSpec("sans-black", "Sans Black", SANS, 900),
            FontSpec("sans-thin", "Sans Thin", SANS, 100),
            FontSpec("sans-light", "Sans Light", SANS, 300),
            FontSpec("serif-normal", "Serif Regular", SERIF, 400),
            FontSpec("mono-normal", "Mono Regular", MONO, 400),
            FontSpec("noto-bold", "Noto Bold", NOTO, 700),
            FontSpec("noto-black", "Noto Black", NOTO, 900),
        )
    }
)


def read_font_face(path: Path) -> FontFace | None:
    """Read family, weight and slant from a font file.

    Uses the typographic family name (name ID 16) when present, else the
    legacy family name (ID 1). Collections are read at their first font.

    Args:
        path: TrueType/OpenType file or collection

    Returns:
        FontFace, or None if the file cannot be read as a font
    """
    try:
        font = TTFont(str(path), lazy=True, fontNumber=0)
    except Exception as e:
        logger.debug("Skipping unreadable font file", path=str(path), error=str(e))
        return None

    try:
        name_table = font["name"]
        family = name_table.getDebugName(16) or name_table.getDebugName(1)
        if not family:
            return None

        weight = 400
        italic = False
        if "OS/2" in font:
            os2 = font["OS/2"]
            weight = int(os2.usWeightClass)
            italic = bool(os2.fsSelection & 0x01)
        elif "head" in font:
            italic = bool(font["head"].macStyle & 0x02)

        return FontFace(path=path, family=family, weight=weight, italic=italic)
    except Exception as e:
        logger.debug("Skipping font with unreadable tables", path=str(path), error=str(e))
        return None
    finally:
        font.close()


class FontLocator:
    """Indexes the font files found under a set of directories.

    Example:
        locator = FontLocator([Path("/usr/share/fonts")])
        locator.scan()
        face = locator.find("DejaVu Sans", 700)
    """

    def __init__(self, font_dirs: Iterable[Path]) -> None:
        """Initialize the locator.

        Args:
            font_dirs: Directories to scan recursively; missing ones are ignored
        """
        self._font_dirs = [Path(d) for d in font_dirs]
        self._index: Mapping[str, tuple[FontFace, ...]] | None = None

    def scan(self) -> None:
        """Read every font file under the configured directories."""
        faces: dict[str, list[FontFace]] = {}
        for path in self._iter_font_files():
            face = read_font_face(path)
            if face is not None:
                faces.setdefault(face.family.casefold(), []).append(face)

        self._index = MappingProxyType(
            {
                family: tuple(sorted(found, key=lambda f: (f.weight, f.italic, str(f.path))))
                for family, found in faces.items()
            }
        )
        logger.info(
            "Font scan complete",
            dirs=[str(d) for d in self._font_dirs],
            families=len(self._index),
        )

    @property
    def families(self) -> list[str]:
        """Casefolded family names found by the scan.

        Raises:
            RuntimeError: If scan() has not run yet
        """
        if self._index is None:
            raise RuntimeError("Fonts not scanned. Call scan() first.")
        return sorted(self._index)

    def find(self, family: str, weight: int) -> FontFace | None:
        """Find the upright face of a family closest to a weight.

        Args:
            family: Family name (case-insensitive)
            weight: Desired OS/2 weight class

        Returns:
            Exact weight match if present, else the nearest weight; None if
            the family is unknown

        Raises:
            RuntimeError: If scan() has not run yet
        """
        if self._index is None:
            raise RuntimeError("Fonts not scanned. Call scan() first.")

        faces = self._index.get(family.casefold())
        if not faces:
            return None

        upright = [f for f in faces if not f.italic] or list(faces)
        return min(upright, key=lambda f: (abs(f.weight - weight), f.weight))

    def _iter_font_files(self) -> Iterator[Path]:
        for font_dir in self._font_dirs:
            if not font_dir.is_dir():
                continue
            for path in sorted(font_dir.rglob("*")):
                if path.suffix.lower() in FONT_SUFFIXES and path.is_file():
                    yield path


class FontRegistry:
    """Read-only mapping of font keys to resolved font files.

    Every key is resolved once, when the registry is built. Keys whose
    families are not installed fall back to Pillow's bundled scalable font.
    """

    def __init__(
        self,
        specs: Mapping[str, FontSpec],
        resolved: Mapping[str, Path | None],
    ) -> None:
        self._specs = MappingProxyType(dict(specs))
        self._resolved = MappingProxyType(dict(resolved))

    @classmethod
    def build(
        cls,
        locator: FontLocator,
        specs: Mapping[str, FontSpec] = DEFAULT_FONTS,
    ) -> "FontRegistry":
        """Resolve every spec against a scanned locator.

        Args:
            locator: Locator that has already run scan()
            specs: Font specs keyed by font key

        Returns:
            FontRegistry with one resolved entry per key
        """
        resolved: dict[str, Path | None] = {}
        for key, spec in specs.items():
            face = None
            for family in spec.families:
                face = locator.find(family, spec.weight)
                if face is not None:
                    break

            resolved[key] = face.path if face is not None else None
            if face is None:
                logger.warning("No installed font for key, using bundled default", font=key)
            else:
                logger.debug(
                    "Font resolved",
                    font=key,
                    family=face.family,
                    weight=face.weight,
                    path=str(face.path),
                )

        return cls(specs, resolved)

    @classmethod
    def from_dirs(
        cls,
        font_dirs: Iterable[Path],
        specs: Mapping[str, FontSpec] = DEFAULT_FONTS,
    ) -> "FontRegistry":
        """Scan directories and build a registry in one step."""
        locator = FontLocator(font_dirs)
        locator.scan()
        return cls.build(locator, specs)

    def __contains__(self, key: object) -> bool:
        return key in self._specs

    def keys(self) -> list[str]:
        return list(self._specs)

    def spec(self, key: str) -> FontSpec:
        """Look up a font spec.

        Raises:
            InputValidationError: If the key is not registered
        """
        try:
            return self._specs[key]
        except KeyError:
            raise InputValidationError("font", f"unknown font key {key!r}") from None

    def path(self, key: str) -> Path | None:
        """Resolved file for a key (None = bundled default)."""
        self.spec(key)
        return self._resolved.get(key)

    def load(self, key: str, size: int) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
        """Load the font for a key at a pixel size."""
        path = self.path(key)
        if path is None:
            return ImageFont.load_default(size=size)
        return ImageFont.truetype(str(path), size=size)
