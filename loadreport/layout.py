"""Page layout for PDF reports.

``DocumentLayoutEngine`` keeps a cursor on a fixed-size page and places
text, images, and tables with reportlab. Every placement goes through
``ensure_space``, the single place where page breaks are decided. The
cursor's ``y`` is measured from the top of the page; it is converted to
reportlab's bottom-left origin only when drawing.
"""

import io
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.utils import ImageReader, simpleSplit
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas

from .charts.renderer import ChartImage

logger = logging.getLogger(__name__)

DEFAULT_MARGIN = 50.0
LEADING = 1.2

# Conservative heights reserved before placing charts
FULL_CHART_SPACE = 300.0
HALF_CHART_SPACE = 250.0

TABLE_TOP_GAP = 10.0
TABLE_HEADER_HEIGHT = 15.0
TABLE_HEADER_GAP = 10.0
TABLE_ROW_HEIGHT = 20.0
TABLE_CONTINUATION_OFFSET = 30.0
TABLE_STRIPE_COLOR = colors.HexColor("#f5f5f5")


@dataclass(frozen=True)
class TextStyle:
    font: str = "Helvetica"
    size: float = 12.0
    align: str = "left"
    underline: bool = False
    # Keep whitespace and wrap by character (payload previews)
    preformatted: bool = False

    @property
    def line_height(self) -> float:
        return self.size * LEADING


TITLE = TextStyle(size=24, align="center")
SUBTITLE = TextStyle(size=14, align="center")
CAPTION = TextStyle(size=12, align="center")
SECTION = TextStyle(size=16, underline=True)
HEADING = TextStyle(size=14)
BODY = TextStyle(size=12)
BODY_UNDERLINED = TextStyle(size=12, underline=True)
CODE = TextStyle(font="Courier", size=9, preformatted=True)


@dataclass
class LayoutCursor:
    """Vertical position on the current page, plus page geometry."""

    page_width: float
    page_height: float
    margin_top: float = DEFAULT_MARGIN
    margin_bottom: float = DEFAULT_MARGIN
    margin_left: float = DEFAULT_MARGIN
    margin_right: float = DEFAULT_MARGIN
    page_index: int = 0
    y: float = field(default=0.0)

    def __post_init__(self) -> None:
        if not self.y:
            self.y = self.margin_top

    @property
    def content_bottom(self) -> float:
        return self.page_height - self.margin_bottom

    @property
    def content_width(self) -> float:
        return self.page_width - self.margin_left - self.margin_right

    @property
    def content_height(self) -> float:
        return self.content_bottom - self.margin_top

    @property
    def remaining(self) -> float:
        return self.content_bottom - self.y

    def advance(self, height: float) -> None:
        self.y += height

    def next_page(self) -> None:
        self.page_index += 1
        self.y = self.margin_top


class DocumentLayoutEngine:
    """Places content on A4 pages, breaking pages when space runs out.

    Pages are append-only: the cursor never returns to an earlier page.
    ``finish`` flushes every page in order and closes the engine.
    """

    def __init__(
        self,
        page_size: tuple[float, float] = A4,
        margin: float = DEFAULT_MARGIN,
        title: str | None = None,
    ) -> None:
        width, height = page_size
        self.cursor = LayoutCursor(
            page_width=width,
            page_height=height,
            margin_top=margin,
            margin_bottom=margin,
            margin_left=margin,
            margin_right=margin,
        )
        self._buffer = io.BytesIO()
        self._canvas = canvas.Canvas(self._buffer, pagesize=page_size)
        if title:
            self._canvas.setTitle(title)
        self._line_height = BODY.line_height
        self._closed = False

    @property
    def page_count(self) -> int:
        return self.cursor.page_index + 1

    @property
    def remaining(self) -> float:
        return self.cursor.remaining

    @property
    def content_width(self) -> float:
        return self.cursor.content_width

    @property
    def closed(self) -> bool:
        return self._closed

    def _require_open(self) -> None:
        if self._closed:
            raise RuntimeError("document already finished")

    def _pdf_y(self, top_offset: float) -> float:
        return self.cursor.page_height - top_offset

    # ─────────────────────────────────────────────────────────
    #  Page breaks
    # ─────────────────────────────────────────────────────────

    def new_page(self) -> None:
        """Start a new page unconditionally."""
        self._require_open()
        self._canvas.showPage()
        self.cursor.next_page()
        logger.debug("Page %d started", self.page_count)

    def ensure_space(self, required_height: float) -> bool:
        """Start a new page if less than ``required_height`` remains.

        Returns:
            True if a page break happened, so the caller can reprint a
            running header.
        """
        self._require_open()
        if self.cursor.remaining < required_height:
            self.new_page()
            return True
        return False

    # ─────────────────────────────────────────────────────────
    #  Text
    # ─────────────────────────────────────────────────────────

    def _wrap(self, text: str, style: TextStyle, width: float) -> list[str]:
        lines: list[str] = []
        for paragraph in text.split("\n"):
            if style.preformatted:
                lines.extend(self._wrap_chars(paragraph, style, width))
            else:
                lines.extend(simpleSplit(paragraph, style.font, style.size, width) or [""])
        return lines

    @staticmethod
    def _wrap_chars(line: str, style: TextStyle, width: float) -> list[str]:
        if not line:
            return [""]
        chunks: list[str] = []
        current = ""
        for char in line:
            if current and stringWidth(current + char, style.font, style.size) > width:
                chunks.append(current)
                current = char
            else:
                current += char
        chunks.append(current)
        return chunks

    def place_text(self, text: str, style: TextStyle = BODY) -> float:
        """Place wrapped text at the cursor and advance past it.

        Returns:
            Total height advanced.
        """
        self._require_open()
        width = self.cursor.content_width
        lines = self._wrap(text, style, width)
        advanced = 0.0
        for line in lines:
            self.ensure_space(style.line_height)
            self._draw_line(line, style, self.cursor.margin_left, width)
            self.cursor.advance(style.line_height)
            advanced += style.line_height
        self._line_height = style.line_height
        return advanced

    def _draw_line(self, line: str, style: TextStyle, x: float, width: float) -> None:
        c = self._canvas
        c.setFont(style.font, style.size)
        c.setFillColor(colors.black)
        baseline = self._pdf_y(self.cursor.y + style.size)
        text_width = stringWidth(line, style.font, style.size)

        if style.align == "center":
            start = x + (width - text_width) / 2
        elif style.align == "right":
            start = x + width - text_width
        else:
            start = x
        c.drawString(start, baseline, line)

        if style.underline and line:
            c.setLineWidth(0.5)
            c.line(start, baseline - 2, start + text_width, baseline - 2)

    def move_down(self, lines: float = 1.0) -> None:
        """Advance by blank lines of the most recently used text size."""
        self._require_open()
        self.cursor.advance(self._line_height * lines)

    # ─────────────────────────────────────────────────────────
    #  Images
    # ─────────────────────────────────────────────────────────

    def place_image(
        self, image: ChartImage, max_width: float, max_height: float
    ) -> tuple[float, float]:
        """Scale an image to fit the bounds, centre it, and advance past it.

        Returns:
            The (width, height) the image was drawn at.
        """
        self._require_open()
        scale = min(max_width / image.width, max_height / image.height)
        draw_width = image.width * scale
        draw_height = image.height * scale

        self.ensure_space(draw_height)
        x = self.cursor.margin_left + (self.cursor.content_width - draw_width) / 2
        self._canvas.drawImage(
            ImageReader(io.BytesIO(image.data)),
            x,
            self._pdf_y(self.cursor.y + draw_height),
            width=draw_width,
            height=draw_height,
            mask="auto",
        )
        self.cursor.advance(draw_height)
        return draw_width, draw_height

    # ─────────────────────────────────────────────────────────
    #  Tables
    # ─────────────────────────────────────────────────────────

    def place_table(
        self,
        header: Sequence[str],
        rows: Sequence[Sequence[str]],
        column_widths: Sequence[float],
        header_font_size: float = 10,
        body_font_size: float = 9,
    ) -> int:
        """Draw a striped table, repeating the header on every page it spans.

        The first column is left-aligned, the rest are centred.

        Returns:
            Number of times the header was drawn (one per page spanned).
        """
        self._require_open()
        if len(header) != len(column_widths):
            raise ValueError("header and column_widths must have the same length")
        for row in rows:
            if len(row) != len(column_widths):
                raise ValueError("every row needs one cell per column")

        header_block = TABLE_TOP_GAP + TABLE_HEADER_HEIGHT + TABLE_HEADER_GAP
        if self.ensure_space(header_block + TABLE_ROW_HEIGHT):
            self.cursor.advance(TABLE_CONTINUATION_OFFSET - TABLE_TOP_GAP)
        self.cursor.advance(TABLE_TOP_GAP)
        self._draw_table_header(header, column_widths, header_font_size)
        header_draws = 1

        for index, row in enumerate(rows):
            if self.ensure_space(TABLE_ROW_HEIGHT):
                self.cursor.advance(TABLE_CONTINUATION_OFFSET)
                self._draw_table_header(header, column_widths, header_font_size)
                header_draws += 1
            if index % 2 == 0:
                self._fill_row(sum(column_widths))
            self._draw_cells(row, column_widths, "Helvetica", body_font_size)
            self.cursor.advance(TABLE_ROW_HEIGHT)

        self._line_height = TextStyle(size=body_font_size).line_height
        return header_draws

    def _draw_table_header(
        self, header: Sequence[str], widths: Sequence[float], font_size: float
    ) -> None:
        self._draw_cells(header, widths, "Helvetica-Bold", font_size)
        self.cursor.advance(TABLE_HEADER_HEIGHT)
        c = self._canvas
        left = self.cursor.margin_left
        line_y = self._pdf_y(self.cursor.y)
        c.setStrokeColor(colors.black)
        c.setLineWidth(1)
        c.line(left, line_y, left + sum(widths), line_y)
        self.cursor.advance(TABLE_HEADER_GAP)

    def _fill_row(self, width: float) -> None:
        c = self._canvas
        top = self.cursor.y - 5
        c.setFillColor(TABLE_STRIPE_COLOR)
        c.rect(
            self.cursor.margin_left,
            self._pdf_y(top + TABLE_ROW_HEIGHT),
            width,
            TABLE_ROW_HEIGHT,
            stroke=0,
            fill=1,
        )
        c.setFillColor(colors.black)

    def _draw_cells(
        self, cells: Sequence[str], widths: Sequence[float], font: str, size: float
    ) -> None:
        c = self._canvas
        c.setFont(font, size)
        c.setFillColor(colors.black)
        baseline = self._pdf_y(self.cursor.y + size)
        x = self.cursor.margin_left
        for column, (cell, width) in enumerate(zip(cells, widths)):
            text = _fit_text(str(cell), font, size, width - 4)
            if column == 0:
                c.drawString(x, baseline, text)
            else:
                c.drawCentredString(x + width / 2, baseline, text)
            x += width

    # ─────────────────────────────────────────────────────────
    #  Output
    # ─────────────────────────────────────────────────────────

    def finish(self) -> bytes:
        """Flush all pages in order and return the PDF bytes."""
        self._require_open()
        self._canvas.showPage()
        self._canvas.save()
        self._closed = True
        data = self._buffer.getvalue()
        logger.debug("Document finished: %d page(s), %d bytes", self.page_count, len(data))
        return data


def _fit_text(text: str, font: str, size: float, width: float) -> str:
    """Truncate text with '...' so it fits within width points."""
    if stringWidth(text, font, size) <= width:
        return text
    while text and stringWidth(text + "...", font, size) > width:
        text = text[:-1]
    return text + "..."
