"""
Shared fixtures for the density_raster tests.

The vector renderer and image encoder are capabilities; tests substitute
`FakeRenderer` (deterministic Pillow drawing, records requested sizes) and
`FailingEncoder` (fails for selected densities) so the pipeline can be tested
without the native cairo library.
"""

from pathlib import Path
from typing import List, Optional, Set, Tuple

import pytest
from PIL import Image, ImageDraw, features

from density_raster.document import SvgDocument, load_document
from density_raster.encode import PillowEncoder


def svg_bytes(width="240", height="336", view_box: Optional[str] = None) -> bytes:
    attrs = ['xmlns="http://www.w3.org/2000/svg"']
    if width is not None:
        attrs.append(f'width="{width}"')
    if height is not None:
        attrs.append(f'height="{height}"')
    if view_box is not None:
        attrs.append(f'viewBox="{view_box}"')
    return (
        f"<svg {' '.join(attrs)}>"
        '<rect x="10%" y="10%" width="80%" height="80%" fill="#c62828"/>'
        "</svg>"
    ).encode("utf-8")


class FakeRenderer:
    """Transparent background with an opaque red ellipse in the middle."""

    def __init__(self):
        self.calls: List[Tuple[str, int, int]] = []

    def render(self, document: SvgDocument, width_px: int, height_px: int) -> Image.Image:
        self.calls.append((document.name, width_px, height_px))
        img = Image.new("RGBA", (width_px, height_px), (0, 0, 0, 0))
        draw = ImageDraw.Draw(img)
        draw.ellipse(
            (width_px * 0.25, height_px * 0.25, width_px * 0.75, height_px * 0.75),
            fill=(198, 40, 40, 255),
        )
        return img


class BrokenRenderer:
    def render(self, document, width_px, height_px):
        from density_raster.errors import RenderError

        raise RenderError(f"'{document.name}' could not be rendered: boom")


class FailingEncoder(PillowEncoder):
    """Raises OSError when asked to encode an image of one of `fail_widths`."""

    def __init__(self, fail_widths: Set[int]):
        super().__init__()
        self.fail_widths = set(fail_widths)
        self.encoded: List[Tuple[int, int]] = []

    def encode(self, image, output_format):
        if image.size[0] in self.fail_widths:
            raise OSError(28, "No space left on device")
        self.encoded.append(image.size)
        return super().encode(image, output_format)


def cairosvg_available() -> bool:
    try:
        import cairosvg  # noqa: F401
    except (ImportError, OSError):
        return False
    return True


requires_cairosvg = pytest.mark.skipif(
    not cairosvg_available(), reason="cairosvg / libcairo not available"
)
requires_webp = pytest.mark.skipif(
    not features.check("webp"), reason="Pillow built without WebP support"
)


@pytest.fixture
def fake_renderer() -> FakeRenderer:
    return FakeRenderer()


@pytest.fixture
def icon_svg(tmp_path: Path) -> Path:
    src = tmp_path / "src"
    src.mkdir()
    p = src / "icon.svg"
    p.write_bytes(svg_bytes())
    return p


@pytest.fixture
def icon_document() -> SvgDocument:
    return load_document(svg_bytes(), path=Path("icon.svg"))
