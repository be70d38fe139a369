"""Report encoders: CSV, XLSX and PDF renderings of a ReportTable.

Each encoder is stateless and returns the whole file as bytes. The same table
always yields the same bytes; the only exception is the "Generated on" line
the PDF encoder prints from ``generated_at``.
"""

import csv
import datetime
import io
from typing import Callable, Dict, List, NamedTuple, Optional

import xlsxwriter
from reportlab.lib.pagesizes import A4
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas

from .schemas import ReportFormat, ReportTable

XLSX_CONTENT_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
XLSX_SHEET_NAME = "Report"
# Pinned so the workbook metadata does not change from one export to the next.
XLSX_CREATED = datetime.datetime(2000, 1, 1)

PDF_FONT = "Helvetica"
PDF_TITLE_SIZE = 18
PDF_BODY_SIZE = 10
PDF_MARGIN_X = 48
PDF_MARGIN_Y = 48
PDF_LINE_GAP = 4


def encode_csv(table: ReportTable, generated_at: Optional[datetime.datetime] = None) -> bytes:
    buffer = io.StringIO(newline="")
    writer = csv.writer(buffer, lineterminator="\r\n", quoting=csv.QUOTE_MINIMAL)
    writer.writerow(table.columns)
    writer.writerows(table.rows)
    return buffer.getvalue().encode("utf-8")


def encode_xlsx(table: ReportTable, generated_at: Optional[datetime.datetime] = None) -> bytes:
    buffer = io.BytesIO()
    workbook = xlsxwriter.Workbook(buffer, {"in_memory": True})
    workbook.set_properties({"title": table.title, "created": XLSX_CREATED})
    worksheet = workbook.add_worksheet(XLSX_SHEET_NAME)

    # write_string keeps cells such as "=..." or URLs as literal text
    for row_index, row in enumerate([table.columns, *table.rows]):
        for col_index, value in enumerate(row):
            worksheet.write_string(row_index, col_index, value)

    workbook.close()
    return buffer.getvalue()


def wrap_line(text: str, max_width: float, font_name: str, font_size: float) -> List[str]:
    """Greedy word wrap: keep adding words while the line still fits ``max_width``.

    A single word wider than the line is emitted on a line of its own.
    """
    lines: List[str] = []
    current = ""
    for word in text.split():
        candidate = f"{current} {word}" if current else word
        if stringWidth(candidate, font_name, font_size) <= max_width:
            current = candidate
        else:
            if current:
                lines.append(current)
            current = word
    if current:
        lines.append(current)
    return lines


class _PdfWriter:
    def __init__(self, buffer: io.BytesIO, title: str):
        self.page_width, self.page_height = A4
        # invariant=1 drops the creation date and random document id
        self.canvas = canvas.Canvas(buffer, pagesize=A4, invariant=1)
        self.canvas.setTitle(title)
        self.cursor_y = self.page_height - PDF_MARGIN_Y

    @property
    def line_width(self) -> float:
        return self.page_width - PDF_MARGIN_X * 2

    def draw_text(self, text: str, size: float) -> None:
        for line in wrap_line(text, self.line_width, PDF_FONT, size):
            if self.cursor_y <= PDF_MARGIN_Y:
                self.canvas.showPage()
                self.cursor_y = self.page_height - PDF_MARGIN_Y
            self.canvas.setFont(PDF_FONT, size)
            self.canvas.drawString(PDF_MARGIN_X, self.cursor_y, line)
            self.cursor_y -= size + PDF_LINE_GAP

    def skip(self, points: float) -> None:
        self.cursor_y -= points

    def save(self) -> None:
        # save() closes the current page itself
        self.canvas.save()


def encode_pdf(table: ReportTable, generated_at: Optional[datetime.datetime] = None) -> bytes:
    generated_at = generated_at or datetime.datetime.now()
    buffer = io.BytesIO()
    writer = _PdfWriter(buffer, table.title)

    writer.draw_text(table.title, PDF_TITLE_SIZE)
    writer.skip(12)
    writer.draw_text(" | ".join(table.columns), PDF_BODY_SIZE)
    writer.skip(6)
    for row in table.rows:
        writer.draw_text(" | ".join(row), PDF_BODY_SIZE)

    writer.skip(10)
    writer.draw_text(f"Generated on {generated_at:%d %b %Y %H:%M}", PDF_BODY_SIZE)
    writer.save()
    return buffer.getvalue()


class Encoder(NamedTuple):
    extension: str
    content_type: str
    encode: Callable[..., bytes]


ENCODERS: Dict[ReportFormat, Encoder] = {
    ReportFormat.CSV: Encoder("csv", "text/csv", encode_csv),
    ReportFormat.XLSX: Encoder("xlsx", XLSX_CONTENT_TYPE, encode_xlsx),
    ReportFormat.PDF: Encoder("pdf", "application/pdf", encode_pdf),
}
