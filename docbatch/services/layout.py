"""Greedy line wrapping and pagination for plain text.

Input is expected to be sanitized already; widths come from a caller-supplied
function so the same code serves reportlab metrics and tests.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, List

from reportlab.lib.pagesizes import A4

WidthFn = Callable[[str, float], float]

LINE_HEIGHT_FACTOR = 1.2


@dataclass(frozen=True)
class PageGeometry:
    width: float = A4[0]
    height: float = A4[1]
    margin: float = 50

    @property
    def content_width(self) -> float:
        return self.width - 2 * self.margin

    @property
    def top(self) -> float:
        return self.height - self.margin


@dataclass
class PlacedLine:
    text: str
    y: float


@dataclass
class Page:
    lines: List[PlacedLine] = field(default_factory=list)

    @property
    def content_lines(self) -> List[PlacedLine]:
        return [line for line in self.lines if line.text]


def line_height(font_size: float) -> float:
    return font_size * LINE_HEIGHT_FACTOR


def wrap_paragraph(paragraph: str, width_fn: WidthFn, font_size: float, max_width: float) -> List[str]:
    if not paragraph:
        return [""]

    lines: List[str] = []
    current: List[str] = []
    for word in paragraph.split(" "):
        candidate = " ".join(current + [word])
        if " ".join(current) and width_fn(candidate, font_size) > max_width:
            lines.append(" ".join(current))
            current = [word]
        else:
            current.append(word)
    if current:
        lines.append(" ".join(current))
    return lines


def wrap_text(text: str, width_fn: WidthFn, font_size: float, max_width: float) -> List[str]:
    """Split text into display lines no wider than max_width.

    Each newline-separated paragraph is packed word by word. A blank paragraph
    keeps its blank line. A word that alone exceeds max_width is placed on its
    own line rather than split.
    """
    if not text:
        return []
    lines: List[str] = []
    for paragraph in text.split("\n"):
        lines.extend(wrap_paragraph(paragraph, width_fn, font_size, max_width))
    return lines


def paginate(lines: List[str], font_size: float, geometry: PageGeometry) -> List[Page]:
    step = line_height(font_size)
    pages = [Page()]
    row = 0
    for text in lines:
        y = geometry.top - row * step
        if y < geometry.margin:
            pages.append(Page())
            row = 0
            y = geometry.top
        pages[-1].lines.append(PlacedLine(text, y))
        row += 1
    return pages


def layout_text(text: str, width_fn: WidthFn, font_size: float, geometry: PageGeometry = None) -> List[Page]:
    geometry = geometry or PageGeometry()
    lines = wrap_text(text, width_fn, font_size, geometry.content_width)
    return paginate(lines, font_size, geometry)
