"""Coordinate projection between the virtual canvas, a bitmap and any viewport.

Annotation positions are stored in a fixed 1280x720 virtual canvas. The
screenshot is drawn into that canvas with "contain" scaling, so a marker's
position is only meaningful relative to the letterboxed image area. To show
the same marker on another surface (the zoomable editor, an exported slide)
the point is normalized against the virtual placement of the bitmap and then
re-expanded against the target surface's own placement of the same bitmap.
"""

from dataclasses import dataclass
from typing import Optional

VIRTUAL_WIDTH = 1280.0
VIRTUAL_HEIGHT = 720.0

MIN_ZOOM = 0.1
MAX_ZOOM = 5.0
ZOOM_SENSITIVITY = 0.001

BitmapSize = tuple[float, float]


@dataclass(frozen=True)
class Placement:
    """Where a bitmap lands inside a viewport, relative to the viewport origin."""
    offset_x: float
    offset_y: float
    render_width: float
    render_height: float

    def to_viewport(self, norm_x: float, norm_y: float) -> tuple[float, float]:
        return (
            self.offset_x + norm_x * self.render_width,
            self.offset_y + norm_y * self.render_height,
        )

    def to_normalized(self, x: float, y: float) -> tuple[float, float]:
        return (
            (x - self.offset_x) / self.render_width,
            (y - self.offset_y) / self.render_height,
        )


@dataclass(frozen=True)
class Viewport:
    """A rectangular drawing surface, e.g. the image area of an exported slide."""
    width: float
    height: float
    x: float = 0.0
    y: float = 0.0


VIRTUAL_VIEWPORT = Viewport(VIRTUAL_WIDTH, VIRTUAL_HEIGHT)


def _usable(bitmap_size: Optional[BitmapSize]) -> bool:
    return (
        bitmap_size is not None
        and bitmap_size[0] > 0
        and bitmap_size[1] > 0
    )


def fit(bitmap_width: float, bitmap_height: float,
        viewport_width: float, viewport_height: float) -> Placement:
    """Contain-fit a bitmap into a viewport, centred, letterboxed on the short axis."""
    if bitmap_width / bitmap_height > viewport_width / viewport_height:
        render_w = viewport_width
        render_h = viewport_width * bitmap_height / bitmap_width
    else:
        render_h = viewport_height
        render_w = viewport_height * bitmap_width / bitmap_height
    return Placement(
        offset_x=(viewport_width - render_w) / 2,
        offset_y=(viewport_height - render_h) / 2,
        render_width=render_w,
        render_height=render_h,
    )


def placement_for(bitmap_size: Optional[BitmapSize],
                  viewport_width: float, viewport_height: float) -> Placement:
    """Like ``fit`` but falls back to the whole viewport when there is no usable bitmap."""
    if not _usable(bitmap_size):
        return Placement(0.0, 0.0, viewport_width, viewport_height)
    return fit(bitmap_size[0], bitmap_size[1], viewport_width, viewport_height)


def virtual_to_normalized(x: float, y: float,
                          bitmap_size: Optional[BitmapSize]) -> tuple[float, float]:
    """Convert a virtual-canvas point to bitmap-relative 0..1 coordinates."""
    return placement_for(bitmap_size, VIRTUAL_WIDTH, VIRTUAL_HEIGHT).to_normalized(x, y)


def normalized_to_virtual(norm_x: float, norm_y: float,
                          bitmap_size: Optional[BitmapSize]) -> tuple[float, float]:
    return placement_for(bitmap_size, VIRTUAL_WIDTH, VIRTUAL_HEIGHT).to_viewport(norm_x, norm_y)


def normalized_to_target(norm_x: float, norm_y: float,
                         bitmap_size: Optional[BitmapSize],
                         viewport: Viewport) -> tuple[float, float]:
    """Place a normalized point inside ``viewport``, in the viewport's parent coordinates."""
    px, py = placement_for(bitmap_size, viewport.width, viewport.height).to_viewport(norm_x, norm_y)
    return viewport.x + px, viewport.y + py


def project_point(x: float, y: float, bitmap_size: Optional[BitmapSize],
                  viewport: Viewport) -> tuple[float, float]:
    """Map a virtual-canvas point onto the same spot of the bitmap drawn in ``viewport``."""
    norm_x, norm_y = virtual_to_normalized(x, y, bitmap_size)
    return normalized_to_target(norm_x, norm_y, bitmap_size, viewport)


def image_rect(bitmap_size: Optional[BitmapSize],
               viewport: Viewport) -> tuple[float, float, float, float]:
    """(left, top, width, height) of the bitmap inside ``viewport``, in parent coordinates."""
    p = placement_for(bitmap_size, viewport.width, viewport.height)
    return viewport.x + p.offset_x, viewport.y + p.offset_y, p.render_width, p.render_height


def clamp_to_canvas(x: float, y: float) -> tuple[float, float]:
    return (
        min(max(0.0, x), VIRTUAL_WIDTH),
        min(max(0.0, y), VIRTUAL_HEIGHT),
    )


@dataclass
class CanvasView:
    """The zoomable, pannable editor view of the virtual canvas.

    The canvas is centred in a container of ``container_width`` by
    ``container_height`` pixels, shifted by the pan offset and scaled
    about its centre.
    """
    container_width: float
    container_height: float
    scale: float = 0.65
    pan_x: float = 0.0
    pan_y: float = 0.0

    @property
    def canvas_left(self) -> float:
        return self.container_width / 2 + self.pan_x - VIRTUAL_WIDTH * self.scale / 2

    @property
    def canvas_top(self) -> float:
        return self.container_height / 2 + self.pan_y - VIRTUAL_HEIGHT * self.scale / 2

    def pointer_to_virtual(self, pointer_x: float, pointer_y: float,
                           clamp: bool = True) -> tuple[float, float]:
        x = (pointer_x - self.canvas_left) / self.scale
        y = (pointer_y - self.canvas_top) / self.scale
        if clamp:
            return clamp_to_canvas(x, y)
        return x, y

    def virtual_to_pointer(self, x: float, y: float) -> tuple[float, float]:
        return (
            self.canvas_left + x * self.scale,
            self.canvas_top + y * self.scale,
        )

    def zoom_by_wheel(self, delta_y: float) -> float:
        self.scale = min(max(MIN_ZOOM, self.scale - delta_y * ZOOM_SENSITIVITY), MAX_ZOOM)
        return self.scale

    def pan_by(self, dx: float, dy: float) -> None:
        self.pan_x += dx
        self.pan_y += dy
