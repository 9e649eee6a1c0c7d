"""
Visual stamp descriptors for PAdES signatures.

Two families of descriptors exist:

- **PDF marks** (:class:`PdfMark`) -- text and image boxes stamped on the
  pages of the document before it is signed.
- **Visual representation** (:class:`PadesVisualRepresentation`) -- the
  appearance of the signature field itself.

Every descriptor serializes into the API's JSON shape with ``to_model()``.
"""

from __future__ import annotations

__all__ = [
    "Color",
    "PadesMeasurementUnits",
    "PadesVisualImage",
    "PadesVisualRepresentation",
    "PadesVisualText",
    "PdfMark",
    "PdfMarkElementType",
    "PdfMarkImage",
    "PdfMarkImageElement",
    "PdfMarkTextElement",
    "PdfTextSection",
    "PdfTextStyle",
    "ResourceContentOrReference",
]

import base64
import enum
import re
from dataclasses import dataclass, field
from typing import Any

from ..errors import ParameterError

_HEX_COLOR_PATTERN = re.compile(r"^#([0-9a-fA-F]{2})([0-9a-fA-F]{2})([0-9a-fA-F]{2})$")

_MAX_CHANNEL = 255
_MAX_ALPHA = 100


class PadesMeasurementUnits(str, enum.Enum):
    CENTIMETERS = "Centimeters"
    PDF_POINTS = "PdfPoints"


class PdfTextStyle(str, enum.Enum):
    NORMAL = "Normal"
    BOLD = "Bold"
    ITALIC = "Italic"


class PdfMarkElementType(str, enum.Enum):
    TEXT = "Text"
    IMAGE = "Image"


def _enum_value(value: Any) -> Any:
    return value.value if isinstance(value, enum.Enum) else value


@dataclass(frozen=True)
class Color:
    """RGB color with alpha as an opacity percentage (0 = transparent)."""

    red: int
    green: int
    blue: int
    alpha: int = _MAX_ALPHA

    def __post_init__(self) -> None:
        for name in ("red", "green", "blue"):
            value = getattr(self, name)
            if not isinstance(value, int) or not 0 <= value <= _MAX_CHANNEL:
                raise ParameterError(f"Invalid color {name} component: {value!r}")
        if not isinstance(self.alpha, int) or not 0 <= self.alpha <= _MAX_ALPHA:
            raise ParameterError(f"Invalid color alpha: {self.alpha!r}")

    @classmethod
    def from_hex(cls, value: str, alpha: int = _MAX_ALPHA) -> Color:
        """Build a color from ``#RRGGBB`` notation."""
        match = _HEX_COLOR_PATTERN.match(value)
        if not match:
            raise ParameterError(f"Invalid color {value!r}, expected #RRGGBB")
        red, green, blue = (int(part, 16) for part in match.groups())
        return cls(red, green, blue, alpha)

    def to_model(self) -> dict[str, int]:
        return {"red": self.red, "green": self.green, "blue": self.blue, "alpha": self.alpha}


BLACK = Color(0, 0, 0)
TRANSPARENT_WHITE = Color(255, 255, 255, 0)


@dataclass
class ResourceContentOrReference:
    """Inline content (Base64) or a URL the server fetches."""

    url: str | None = None
    mime_type: str | None = None
    content: str | None = None

    @classmethod
    def from_content(cls, content: bytes, mime_type: str) -> ResourceContentOrReference:
        return cls(content=base64.b64encode(content).decode("ascii"), mime_type=mime_type)

    def to_model(self) -> dict[str, Any]:
        return {"url": self.url, "mimeType": self.mime_type, "content": self.content}


@dataclass
class PdfMarkImage:
    resource: ResourceContentOrReference = field(default_factory=ResourceContentOrReference)
    opacity: int = 100

    @classmethod
    def from_content(cls, image_content: bytes, mime_type: str) -> PdfMarkImage:
        return cls(resource=ResourceContentOrReference.from_content(image_content, mime_type))

    def to_model(self) -> dict[str, Any]:
        return {"resource": self.resource.to_model(), "opacity": self.opacity}


@dataclass
class PdfTextSection:
    text: str | None = None
    color: Color = BLACK
    font_size: float | None = None
    style: PdfTextStyle = PdfTextStyle.NORMAL

    def to_model(self) -> dict[str, Any]:
        return {
            "style": _enum_value(self.style),
            "text": self.text,
            "color": self.color.to_model(),
            "fontSize": self.font_size,
        }


@dataclass
class PdfMarkTextElement:
    """Text element of a PDF mark.

    ``relative_container`` is a dict of ``top/bottom/left/right/width/height``
    in the mark's measurement units.
    """

    relative_container: dict[str, float] | None = None
    text_sections: list[PdfTextSection] = field(default_factory=list)
    rotation: int = 0

    element_type = PdfMarkElementType.TEXT

    def to_model(self) -> dict[str, Any]:
        return {
            "elementType": self.element_type.value,
            "relativeContainer": self.relative_container,
            "rotation": self.rotation,
            "textSections": [s.to_model() for s in self.text_sections],
        }


@dataclass
class PdfMarkImageElement:
    relative_container: dict[str, float] | None = None
    image: PdfMarkImage | None = None
    rotation: int = 0

    element_type = PdfMarkElementType.IMAGE

    def to_model(self) -> dict[str, Any]:
        return {
            "elementType": self.element_type.value,
            "relativeContainer": self.relative_container,
            "rotation": self.rotation,
            "image": self.image.to_model() if self.image else None,
        }


@dataclass
class PdfMark:
    """A box stamped on the document pages, made of text and image elements."""

    container: dict[str, float] | None = None
    border_width: float = 0.0
    border_color: Color = BLACK
    background_color: Color = TRANSPARENT_WHITE
    elements: list[PdfMarkTextElement | PdfMarkImageElement] = field(default_factory=list)

    def to_model(self) -> dict[str, Any]:
        return {
            "container": self.container,
            "borderWidth": self.border_width,
            "borderColor": self.border_color.to_model(),
            "backgroundColor": self.background_color.to_model(),
            "elements": [e.to_model() for e in self.elements],
        }


@dataclass
class PadesVisualText:
    """Text of the signature appearance.

    The server expands placeholders such as ``{{signerName}}`` and
    ``{{signerNationalId}}``.
    """

    text: str
    include_signing_time: bool = True
    horizontal_align: str = "Left"
    font_size: float | None = None
    container: dict[str, float] | None = None

    def to_model(self) -> dict[str, Any]:
        return {
            "text": self.text,
            "includeSigningTime": self.include_signing_time,
            "horizontalAlign": self.horizontal_align,
            "fontSize": self.font_size,
            "container": self.container,
        }


@dataclass
class PadesVisualImage:
    resource: ResourceContentOrReference
    opacity: int = 100
    horizontal_align: str = "Center"
    vertical_align: str = "Center"

    def to_model(self) -> dict[str, Any]:
        return {
            "resource": self.resource.to_model(),
            "opacity": self.opacity,
            "horizontalAlign": self.horizontal_align,
            "verticalAlign": self.vertical_align,
        }


@dataclass
class PadesVisualRepresentation:
    """Appearance of the signature field.

    ``position`` is either a preset fetched with
    :class:`~restpki.core.presets.PadesVisualPositioningPresets` or a
    manual placement dict (``pageNumber``, ``measurementUnits``, ``manual``).
    """

    position: dict[str, Any]
    text: PadesVisualText | None = None
    image: PadesVisualImage | None = None

    def to_model(self) -> dict[str, Any]:
        return {
            "text": self.text.to_model() if self.text else None,
            "image": self.image.to_model() if self.image else None,
            "position": self.position,
        }
