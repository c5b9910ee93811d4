"""
Export service for PQ record spreadsheets and PDF reports.

Both exports render exactly the records they are given; callers pass the
filtered, sorted view the user is looking at.
"""

from datetime import date
from io import BytesIO
from typing import Callable, Optional

import pandas as pd
from openpyxl.styles import Font, Alignment, Border, Side, PatternFill
from openpyxl.utils import get_column_letter
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import mm
from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer
import structlog

from models.pq_record import PQRecordResponse
from services.record_filter_service import is_complete
from utils.date_utils import format_date

logger = structlog.get_logger(__name__)

SHEET_NAME = "PQ Records"

EXCEL_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
PDF_MEDIA_TYPE = "application/pdf"


def _yes_no(value: Optional[bool]) -> str:
    return "Yes" if value else "No"


def _status(value) -> str:
    if value is None:
        return ""
    return getattr(value, "value", str(value))


def record_status_label(record: PQRecordResponse) -> str:
    return "Complete" if is_complete(record) else "Pending"


# (header, value getter, Excel column width)
EXPORT_COLUMNS: list[tuple[str, Callable[[PQRecordResponse], str], int]] = [
    ("Date", lambda r: format_date(r.date), 12),
    ("Shipper Name", lambda r: r.shipper_name, 30),
    ("Buyer", lambda r: r.buyer, 30),
    ("Invoice Number", lambda r: r.invoice_number, 20),
    ("Commodity", lambda r: r.commodity, 25),
    ("Shipping Bill", lambda r: _yes_no(r.shipping_bill_received), 13),
    ("PQ Status", lambda r: _status(r.pq_status), 12),
    ("PQ Hardcopy", lambda r: _status(r.pq_hardcopy), 14),
    ("Permit Copy", lambda r: _status(r.permit_copy_status), 14),
    ("Destination Country", lambda r: r.destination_port, 20),
    ("Remarks", lambda r: r.remarks or "", 35),
    ("Record Status", record_status_label, 14),
    ("Created", lambda r: format_date(r.created_at), 12),
]

# Columns left out of the PDF to fit a landscape page
PDF_EXCLUDED_COLUMNS = ("Created",)


def export_filename(extension: str, on: Optional[date] = None) -> str:
    """pq_records_2025-07-06.xlsx"""
    on = on or date.today()
    return f"pq_records_{on.isoformat()}.{extension}"


def records_to_rows(records: list[PQRecordResponse]) -> list[list[str]]:
    """Flatten records to display rows in EXPORT_COLUMNS order."""
    return [[getter(record) for _, getter, _ in EXPORT_COLUMNS] for record in records]


class ExportService:
    """Service for generating PQ record exports."""

    def generate_records_excel(
        self,
        records: list[PQRecordResponse],
        generated_on: Optional[date] = None,
    ) -> BytesIO:
        """
        Generate Excel file of PQ records.

        One row per record, header row frozen, complete rows tinted green
        and pending rows tinted red, with a summary below the table.

        Args:
            records: Records to export, already filtered and sorted
            generated_on: Report date (defaults to today)

        Returns:
            BytesIO containing the Excel file
        """
        generated_on = generated_on or date.today()

        logger.info("generating_records_excel", record_count=len(records))

        headers = [header for header, _, _ in EXPORT_COLUMNS]
        df = pd.DataFrame(records_to_rows(records), columns=headers)

        # Styles
        bold_font = Font(bold=True)
        header_font = Font(bold=True, color="FFFFFF")
        header_fill = PatternFill(start_color="2563EB", end_color="2563EB", fill_type="solid")
        complete_fill = PatternFill(start_color="DCFCE7", end_color="DCFCE7", fill_type="solid")
        pending_fill = PatternFill(start_color="FEE2E2", end_color="FEE2E2", fill_type="solid")
        thin_border = Border(
            left=Side(style="thin", color="CBD5E1"),
            right=Side(style="thin", color="CBD5E1"),
            top=Side(style="thin", color="CBD5E1"),
            bottom=Side(style="thin", color="CBD5E1"),
        )

        output = BytesIO()

        with pd.ExcelWriter(output, engine="openpyxl") as writer:
            df.to_excel(writer, sheet_name=SHEET_NAME, index=False)
            ws = writer.sheets[SHEET_NAME]

            # Header row
            for col_idx, (_, _, width) in enumerate(EXPORT_COLUMNS, start=1):
                cell = ws.cell(row=1, column=col_idx)
                cell.font = header_font
                cell.fill = header_fill
                cell.alignment = Alignment(horizontal="center", vertical="center", wrap_text=True)
                cell.border = thin_border
                ws.column_dimensions[get_column_letter(col_idx)].width = width

            ws.freeze_panes = "A2"

            # Data rows (starting row 2)
            for row_offset, record in enumerate(records):
                row = row_offset + 2
                fill = complete_fill if is_complete(record) else pending_fill
                for col_idx in range(1, len(EXPORT_COLUMNS) + 1):
                    cell = ws.cell(row=row, column=col_idx)
                    cell.fill = fill
                    cell.border = thin_border
                    cell.alignment = Alignment(vertical="top", wrap_text=True)

            # Summary below the table
            row = len(records) + 3
            complete_count = sum(1 for r in records if is_complete(r))

            ws[f"A{row}"] = "Total records"
            ws[f"B{row}"] = len(records)
            ws[f"A{row + 1}"] = "Complete"
            ws[f"B{row + 1}"] = complete_count
            ws[f"A{row + 2}"] = "Pending"
            ws[f"B{row + 2}"] = len(records) - complete_count
            ws[f"A{row + 3}"] = "Generated"
            ws[f"B{row + 3}"] = generated_on.isoformat()
            for offset in range(4):
                ws[f"A{row + offset}"].font = bold_font

        output.seek(0)

        logger.info(
            "records_excel_generated",
            record_count=len(records),
            complete=complete_count,
        )

        return output

    def generate_records_pdf(
        self,
        records: list[PQRecordResponse],
        generated_on: Optional[date] = None,
    ) -> BytesIO:
        """
        Generate PDF report of PQ records.

        Landscape A4 table; the header row repeats on every page.

        Args:
            records: Records to export, already filtered and sorted
            generated_on: Report date (defaults to today)

        Returns:
            BytesIO containing the PDF
        """
        generated_on = generated_on or date.today()

        logger.info("generating_records_pdf", record_count=len(records))

        buffer = BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=landscape(A4),
            title=f"PQ Records Report - {generated_on.isoformat()}",
            topMargin=10 * mm,
            bottomMargin=10 * mm,
            leftMargin=8 * mm,
            rightMargin=8 * mm,
        )

        styles = getSampleStyleSheet()
        cell_style = ParagraphStyle(
            "PQCell",
            parent=styles["Normal"],
            fontSize=6.5,
            leading=8,
        )
        header_style = ParagraphStyle(
            "PQHeader",
            parent=cell_style,
            fontName="Helvetica-Bold",
            textColor=colors.white,
        )

        complete_count = sum(1 for r in records if is_complete(r))

        elements = [
            Paragraph(f"PQ Records Report - {generated_on.isoformat()}", styles["Title"]),
            Paragraph(
                f"Total: {len(records)} &nbsp;&nbsp; Complete: {complete_count}"
                f" &nbsp;&nbsp; Pending: {len(records) - complete_count}",
                styles["Normal"],
            ),
            Spacer(1, 4 * mm),
        ]

        if not records:
            elements.append(Paragraph("No records match the current filters.", styles["Normal"]))
            doc.build(elements)
            buffer.seek(0)
            return buffer

        columns = [
            (header, getter, width)
            for header, getter, width in EXPORT_COLUMNS
            if header not in PDF_EXCLUDED_COLUMNS
        ]

        data = [[Paragraph(header, header_style) for header, _, _ in columns]]
        for record in records:
            data.append([
                Paragraph(_escape(getter(record)), cell_style)
                for _, getter, _ in columns
            ])

        # Share the page width in proportion to the spreadsheet widths
        total_width = sum(width for _, _, width in columns)
        col_widths = [doc.width * width / total_width for _, _, width in columns]

        table = Table(data, colWidths=col_widths, repeatRows=1)
        style = [
            ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#2563EB")),
            ("VALIGN", (0, 0), (-1, -1), "TOP"),
            ("GRID", (0, 0), (-1, -1), 0.4, colors.grey),
            ("BOX", (0, 0), (-1, -1), 0.6, colors.black),
            ("TOPPADDING", (0, 0), (-1, -1), 2),
            ("BOTTOMPADDING", (0, 0), (-1, -1), 2),
        ]
        for row_idx, record in enumerate(records, start=1):
            tint = "#DCFCE7" if is_complete(record) else "#FEE2E2"
            style.append(("BACKGROUND", (0, row_idx), (-1, row_idx), colors.HexColor(tint)))

        table.setStyle(TableStyle(style))
        elements.append(table)

        doc.build(elements)
        buffer.seek(0)

        logger.info(
            "records_pdf_generated",
            record_count=len(records),
            complete=complete_count,
        )

        return buffer


def _escape(text: str) -> str:
    # Paragraph text is parsed as markup
    return (
        (text or "")
        .replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
    )


# Singleton instance
_export_service: Optional[ExportService] = None


def get_export_service() -> ExportService:
    """Get or create ExportService instance."""
    global _export_service
    if _export_service is None:
        _export_service = ExportService()
    return _export_service
