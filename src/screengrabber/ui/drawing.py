"""Cairo drawing helpers for the overlay window."""

import cairo

from ..geometry import Rect
from ..surface import OCCLUDERS, Region

BACKGROUND_RGBA = (0, 0, 0, 0.5)
SELECTION_RGB = (0.3, 0.6, 1.0)


def clear(cr: cairo.Context):
    """Make the whole window transparent."""
    cr.save()
    cr.set_operator(cairo.OPERATOR_SOURCE)
    cr.set_source_rgba(0, 0, 0, 0)
    cr.paint()
    cr.restore()


def draw_dimmed(cr: cairo.Context, bounds: Rect):
    """Dim the whole desktop (no selection yet)."""
    cr.set_source_rgba(*BACKGROUND_RGBA)
    cr.rectangle(0, 0, bounds.width, bounds.height)
    cr.fill()


def draw_occluders(cr: cairo.Context, regions: dict[str, Region]):
    """Fill the four regions around the selection hole."""
    cr.set_source_rgba(*BACKGROUND_RGBA)
    for name in OCCLUDERS:
        region = regions[name]
        if region.visible and not region.rect.is_empty:
            rect = region.rect
            cr.rectangle(rect.left, rect.top, rect.width, rect.height)
    cr.fill()


def draw_selection(cr: cairo.Context, rect: Rect):
    """Outline the selection."""
    cr.set_source_rgb(*SELECTION_RGB)
    cr.set_line_width(2)
    cr.rectangle(rect.left + 1, rect.top + 1, max(rect.width - 2, 0), max(rect.height - 2, 0))
    cr.stroke()


def draw_dimension_text(cr: cairo.Context, rect: Rect):
    """Draw the selection size in its center."""
    cr.select_font_face("monospace", cairo.FONT_SLANT_NORMAL, cairo.FONT_WEIGHT_BOLD)
    cr.set_font_size(14)
    dim_text = f"{rect.width} x {rect.height}"
    extents = cr.text_extents(dim_text)

    text_x = rect.left + rect.width / 2 - extents.width / 2
    text_y = rect.top + rect.height / 2 + extents.height / 2

    # Background
    cr.set_source_rgba(0, 0, 0, 0.8)
    cr.rectangle(
        text_x - 5,
        text_y - extents.height - 5,
        extents.width + 10,
        extents.height + 10,
    )
    cr.fill()

    # Text
    cr.set_source_rgb(1, 1, 1)
    cr.move_to(text_x, text_y)
    cr.show_text(dim_text)


def draw_instructions(cr: cairo.Context, lines: list[str], x: int = 20, y: int = 30):
    """Draw help lines in the corner."""
    cr.select_font_face("sans-serif", cairo.FONT_SLANT_NORMAL, cairo.FONT_WEIGHT_NORMAL)
    cr.set_font_size(14)

    for line in lines:
        extents = cr.text_extents(line)
        cr.set_source_rgba(0, 0, 0, 0.7)
        cr.rectangle(x - 5, y - extents.height - 2, extents.width + 10, extents.height + 6)
        cr.fill()
        cr.set_source_rgb(1, 1, 1)
        cr.move_to(x, y)
        cr.show_text(line)
        y += 22
