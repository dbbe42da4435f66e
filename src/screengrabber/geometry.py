"""Integer rectangles and drag normalization."""

from dataclasses import dataclass
from typing import Optional


@dataclass
class Rect:
    """Pixel rectangle on the desktop."""

    left: int = 0
    top: int = 0
    width: int = 0
    height: int = 0

    @property
    def right(self) -> int:
        return self.left + self.width

    @property
    def bottom(self) -> int:
        return self.top + self.height

    @property
    def area(self) -> int:
        if self.is_empty:
            return 0
        return self.width * self.height

    @property
    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0

    def set_position(self, left: int, top: int) -> None:
        self.left = int(left)
        self.top = int(top)

    def set_size(self, width: int, height: int) -> None:
        self.width = int(width)
        self.height = int(height)

    def contains(self, x: float, y: float) -> bool:
        """Closed test: points on the edges are inside."""
        return (
            self.left <= x <= self.left + self.width
            and self.top <= y <= self.top + self.height
        )

    def clamp(self, bounds: "Rect") -> "Rect":
        return normalize(self.left, self.top, self.width, self.height, bounds)

    def copy(self) -> "Rect":
        return Rect(self.left, self.top, self.width, self.height)

    def to_dict(self) -> dict:
        return {
            "left": self.left,
            "top": self.top,
            "width": self.width,
            "height": self.height,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Rect":
        return cls(
            int(data.get("left", 0)),
            int(data.get("top", 0)),
            int(data.get("width", 0)),
            int(data.get("height", 0)),
        )


def normalize(left: float, top: float, width: float, height: float, bounds: Rect) -> Rect:
    """Turn a drag rectangle into a positive one inside bounds.

    Negative sizes (dragging up or left) are flipped, then the rectangle is
    clipped to ``bounds``, whose origin is the desktop origin. The result
    may be empty; callers skip capture when ``is_empty`` is true.
    """
    left, top, width, height = round(left), round(top), round(width), round(height)

    if width < 0:
        left += width
        width = -width
    if height < 0:
        top += height
        height = -height

    if left < 0:
        width += left
        left = 0
    if top < 0:
        height += top
        top = 0

    left = min(left, bounds.width)
    top = min(top, bounds.height)

    if left + width > bounds.width:
        width = bounds.width - left
    if top + height > bounds.height:
        height = bounds.height - top

    return Rect(left, top, max(width, 0), max(height, 0))


def panes(monitors: list[Rect], bounds: Rect) -> list[tuple[Optional[int], Rect]]:
    """Split the desktop into one overlay pane per monitor.

    Each pane is ``(monitor index, rect)`` with the rect clipped to
    ``bounds``. Without monitors a single pane covers ``bounds``.
    """
    result = []
    for index, monitor in enumerate(monitors):
        rect = monitor.clamp(bounds)
        if not rect.is_empty:
            result.append((index, rect))
    return result or [(None, bounds.copy())]


def to_desktop(pane: Rect, x: float, y: float) -> tuple[float, float]:
    """Pane-local pointer coordinates to desktop coordinates."""
    return pane.left + x, pane.top + y
