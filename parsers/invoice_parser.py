"""
Invoice parser for PQ auto-fill.

Scans the first worksheet of an exporter's commercial invoice and picks out
the fields a PQ record needs:

    Exporter           -> shipper_name
    Consignee          -> buyer
    Invoice No         -> invoice_number
    commodity keyword  -> commodity
    Final Destination  -> destination_port

Invoices have no fixed template, so each field is located by looking near a
label cell (below it, or to its right) and, when that fails, by scanning a
fixed cell range or the whole sheet for known keywords. Cells are visited in
row-major order and the first acceptable candidate wins.
"""

import re
from dataclasses import dataclass, field
from io import BytesIO
from pathlib import Path
from typing import Iterator, Optional, Union
import structlog

import pandas as pd
from openpyxl import load_workbook
from openpyxl.utils import get_column_letter

from exceptions import InvoiceParseError
from models.extraction import ExtractionStrategy
from utils.text_utils import clean_cell_text, contains_any, contains_word

logger = structlog.get_logger(__name__)


SUPPORTED_EXTENSIONS = (".xlsx", ".xlsm", ".xls")

# Legacy binary workbooks go through xlrd
LEGACY_EXTENSIONS = (".xls",)

# Fields the parser tries to fill, in extraction order
EXTRACTABLE_FIELDS = (
    "shipper_name",
    "buyer",
    "invoice_number",
    "commodity",
    "destination_port",
)

# e.g. "SSE/123/2024-25"
INVOICE_NUMBER_PATTERN = re.compile(r"[A-Z]{2,4}/\d+/\d{4}-\d{2}")

# Invoice cells often read "SSE/123/2024-25 DT: 01.04.2024"
DATE_INDICATORS = ("DT:", "DATE:", "dt:", "date:", " DT", " DATE")

COMMODITY_KEYWORDS = (
    "chillies",
    "turmeric",
    "rice",
    "spices",
    "jaggery",
    "onions",
    "sannam",
)

DESTINATION_LABELS = (
    "final destination",
    "country of final destination",
    "destination country",
)

DESTINATION_COUNTRIES = (
    "sri lanka",
    "srilanka",
    "bangladesh",
    "nepal",
    "pakistan",
    "myanmar",
    "maldives",
)

# Fixed search windows (0-based, inclusive)
BUYER_FALLBACK_ROW = 9                  # Row 10
BUYER_FALLBACK_COLS = (12, 23)          # M..X
INVOICE_FALLBACK_ROWS = (3, 10)         # Rows 4..11
INVOICE_FALLBACK_COLS = (12, 20)        # M..U


# ===================
# CELL GRID
# ===================

def cell_address(row: int, col: int) -> str:
    """0-based (row, col) -> A1 address. (0, 0) -> "A1", (9, 12) -> "M10"."""
    return f"{get_column_letter(col + 1)}{row + 1}"


@dataclass(frozen=True)
class Cell:
    """Non-empty cell from the invoice sheet."""
    row: int
    col: int
    value: str

    @property
    def address(self) -> str:
        return cell_address(self.row, self.col)

    @property
    def lower(self) -> str:
        return self.value.lower()


class CellGrid:
    """
    Sparse lookup of non-empty cells.

    Iterates in row-major order, which is the order every scan uses.
    """

    def __init__(self, cells: list[Cell]):
        self._cells = sorted(cells, key=lambda c: (c.row, c.col))
        self._by_position = {(c.row, c.col): c for c in self._cells}

    @classmethod
    def from_rows(cls, rows: list[list]) -> "CellGrid":
        """Build from raw row values (row 0 = sheet row 1, col 0 = column A)."""
        cells = []
        for row_idx, row in enumerate(rows):
            for col_idx, raw in enumerate(row):
                text = clean_cell_text(raw)
                if text is not None:
                    cells.append(Cell(row=row_idx, col=col_idx, value=text))
        return cls(cells)

    def get(self, row: int, col: int) -> Optional[Cell]:
        return self._by_position.get((row, col))

    def find_first(self, *needles: str) -> Optional[Cell]:
        """First cell whose text contains any of the needles."""
        for cell in self._cells:
            if contains_any(cell.value, needles):
                return cell
        return None

    def __iter__(self) -> Iterator[Cell]:
        return iter(self._cells)

    def __len__(self) -> int:
        return len(self._cells)


# ===================
# RESULT TYPES
# ===================

@dataclass
class FieldMatch:
    """A value found for one PQ record field."""
    field: str
    value: str
    cell: str
    strategy: ExtractionStrategy
    source_cell: Optional[str] = None
    raw_value: Optional[str] = None

    def describe(self) -> str:
        label = self.field.replace("_", " ").capitalize()
        text = f'{label}: "{self.value}" found at {self.cell}'
        if self.source_cell:
            text += f" (from {self.source_cell})"
        elif self.strategy != ExtractionStrategy.LABEL:
            text += f" ({self.strategy.value.replace('_', ' ')})"
        if self.raw_value and self.raw_value != self.value:
            text += f' cleaned from "{self.raw_value}"'
        return text

    def to_dict(self) -> dict:
        return {
            "field": self.field,
            "value": self.value,
            "cell": self.cell,
            "strategy": self.strategy.value,
            "source_cell": self.source_cell,
            "raw_value": self.raw_value,
        }


@dataclass
class InvoiceExtractionResult:
    """Result of scanning an invoice."""
    sheet_name: str
    cell_count: int
    filename: Optional[str] = None
    matches: dict[str, FieldMatch] = field(default_factory=dict)
    log: list[str] = field(default_factory=list)

    @property
    def extracted(self) -> dict[str, str]:
        """Field name -> value, in extraction order."""
        return {
            name: self.matches[name].value
            for name in EXTRACTABLE_FIELDS
            if name in self.matches
        }

    @property
    def missing_fields(self) -> list[str]:
        return [name for name in EXTRACTABLE_FIELDS if name not in self.matches]

    @property
    def success(self) -> bool:
        """True if at least one field was found."""
        return len(self.matches) > 0

    def to_dict(self) -> dict:
        """Convert to dictionary for API response."""
        return {
            "filename": self.filename,
            "sheet_name": self.sheet_name,
            "cell_count": self.cell_count,
            "extracted": self.extracted,
            "details": [self.matches[name].to_dict() for name in self.extracted],
            "missing_fields": self.missing_fields,
            "log": list(self.log),
        }


# ===================
# VALUE CLEANING
# ===================

def extract_invoice_number(text: str) -> str:
    """
    Pull the invoice number out of a cell.

    "SSE/123/2024-25 DT: 01.04.2024" -> "SSE/123/2024-25"
    "INV 5521 DATE: 01.04.2024"      -> "INV 5521"
    "INV 5521"                       -> "INV 5521"
    """
    text = text.strip()

    match = INVOICE_NUMBER_PATTERN.search(text)
    if match:
        return match.group(0)

    for indicator in DATE_INDICATORS:
        index = text.find(indicator)
        if index > 0:
            return text[:index].strip()

    return text


def is_invoice_number(text: str) -> bool:
    return INVOICE_NUMBER_PATTERN.search(text) is not None


def normalize_destination(text: str) -> str:
    """Uppercase; Sri Lanka spellings and its main port map to "SRI LANKA"."""
    upper = text.upper()
    if "SRI LANKA" in upper or "SRILANKA" in upper or "COLOMBO" in upper:
        return "SRI LANKA"
    return upper


# ===================
# FIELD RULES
# ===================

def find_shipper(grid: CellGrid) -> Optional[FieldMatch]:
    """
    Company name 1-3 rows below the first "Exporter" label.

    Only the first label is considered.
    """
    label = grid.find_first("exporter")
    if label is None:
        return None

    for offset in range(1, 4):
        candidate = grid.get(label.row + offset, label.col)
        if candidate is None:
            continue
        if len(candidate.value) > 5 and "consignee" not in candidate.lower:
            return FieldMatch(
                field="shipper_name",
                value=candidate.value,
                cell=candidate.address,
                strategy=ExtractionStrategy.LABEL,
                source_cell=label.address,
            )
    return None


def find_buyer(grid: CellGrid) -> Optional[FieldMatch]:
    """
    Name below the first "Consignee" label, else the M10:X10 band.
    """
    label = grid.find_first("consignee")
    if label is not None:
        for offset in range(0, 4):
            candidate = grid.get(label.row + offset, label.col)
            if candidate is None:
                continue
            if (
                len(candidate.value) > 3
                and "consignee" not in candidate.lower
                and ":" not in candidate.value
            ):
                return FieldMatch(
                    field="buyer",
                    value=candidate.value,
                    cell=candidate.address,
                    strategy=ExtractionStrategy.LABEL,
                    source_cell=label.address,
                )

    first_col, last_col = BUYER_FALLBACK_COLS
    for col in range(first_col, last_col + 1):
        candidate = grid.get(BUYER_FALLBACK_ROW, col)
        if candidate is None:
            continue
        if len(candidate.value) > 5 and not contains_any(
            candidate.value, ("invoice", "date", "no.", "ref")
        ):
            return FieldMatch(
                field="buyer",
                value=candidate.value,
                cell=candidate.address,
                strategy=ExtractionStrategy.RANGE_FALLBACK,
            )
    return None


def _invoice_candidate(
    cell: Optional[Cell],
    strategy: ExtractionStrategy,
    label: Optional[Cell] = None,
) -> Optional[FieldMatch]:
    if cell is None:
        return None
    cleaned = extract_invoice_number(cell.value)
    if not is_invoice_number(cleaned):
        return None
    return FieldMatch(
        field="invoice_number",
        value=cleaned,
        cell=cell.address,
        strategy=strategy,
        source_cell=label.address if label else None,
        raw_value=cell.value,
    )


def find_invoice_number(grid: CellGrid) -> Optional[FieldMatch]:
    """
    Invoice number right of / below an "Invoice" label, else the M4:U11 block.

    Proforma invoice labels are skipped. A value must look like
    "ABC/123/2024-25" to be accepted.
    """
    for label in grid:
        if "invoice" not in label.lower or "proforma" in label.lower:
            continue

        for col_offset in range(1, 6):
            match = _invoice_candidate(
                grid.get(label.row, label.col + col_offset),
                ExtractionStrategy.LABEL,
                label,
            )
            if match:
                return match

        for row_offset in range(1, 4):
            match = _invoice_candidate(
                grid.get(label.row + row_offset, label.col),
                ExtractionStrategy.LABEL,
                label,
            )
            if match:
                return match

    first_row, last_row = INVOICE_FALLBACK_ROWS
    first_col, last_col = INVOICE_FALLBACK_COLS
    for row in range(first_row, last_row + 1):
        for col in range(first_col, last_col + 1):
            match = _invoice_candidate(
                grid.get(row, col),
                ExtractionStrategy.RANGE_FALLBACK,
            )
            if match:
                return match
    return None


def find_commodity(grid: CellGrid) -> Optional[FieldMatch]:
    """First cell naming a known commodity; the whole cell is the commodity."""
    for cell in grid:
        for keyword in COMMODITY_KEYWORDS:
            if contains_word(cell.value, keyword):
                return FieldMatch(
                    field="commodity",
                    value=cell.value,
                    cell=cell.address,
                    strategy=ExtractionStrategy.KEYWORD,
                )
    return None


def _is_destination_value(text: str) -> bool:
    return len(text) > 2 and not contains_any(text, ("destination", "country", "origin"))


def find_destination(grid: CellGrid) -> Optional[FieldMatch]:
    """
    Country right of / below a "Final Destination" label.

    Falls back to the first known destination country anywhere in the sheet,
    skipping cells about the country of origin.
    """
    for label in grid:
        if not contains_any(label.value, DESTINATION_LABELS):
            continue

        candidates = [
            grid.get(label.row, label.col + col_offset)
            for col_offset in range(1, 6)
        ]
        candidates.append(grid.get(label.row + 1, label.col))

        for candidate in candidates:
            if candidate is None or not _is_destination_value(candidate.value):
                continue
            return FieldMatch(
                field="destination_port",
                value=normalize_destination(candidate.value),
                cell=candidate.address,
                strategy=ExtractionStrategy.LABEL,
                source_cell=label.address,
                raw_value=candidate.value,
            )

    for cell in grid:
        if contains_any(cell.value, ("origin", "goods")):
            continue
        for country in DESTINATION_COUNTRIES:
            if country in cell.lower:
                return FieldMatch(
                    field="destination_port",
                    value=normalize_destination(country),
                    cell=cell.address,
                    strategy=ExtractionStrategy.KEYWORD,
                    raw_value=cell.value,
                )
    return None


FIELD_RULES = (
    ("shipper_name", "Searching for Exporter/Shipper information", find_shipper),
    ("buyer", "Searching for Buyer/Consignee information", find_buyer),
    ("invoice_number", "Searching for Invoice Number", find_invoice_number),
    ("commodity", "Searching for Commodity information", find_commodity),
    ("destination_port", "Searching for Final Destination country", find_destination),
)


def extract_fields(grid: CellGrid, result: InvoiceExtractionResult) -> None:
    """Run every field rule against the grid, recording matches and log lines."""
    for field_name, message, rule in FIELD_RULES:
        result.log.append(f"{message}...")
        match = rule(grid)
        if match is None:
            logger.debug("invoice_field_not_found", field=field_name)
            result.log.append(f"{field_name} not found")
            continue

        result.matches[field_name] = match
        result.log.append(match.describe())
        logger.debug(
            "invoice_field_found",
            field=field_name,
            cell=match.cell,
            strategy=match.strategy.value,
        )


# ===================
# ENTRY POINT
# ===================

def is_supported_file(filename: Optional[str]) -> bool:
    if not filename:
        return False
    return filename.lower().endswith(SUPPORTED_EXTENSIONS)


def _is_legacy_workbook(file: Union[str, Path, BytesIO], filename: Optional[str]) -> bool:
    name = filename or (str(file) if isinstance(file, (str, Path)) else "")
    return name.lower().endswith(LEGACY_EXTENSIONS)


def _read_legacy_first_sheet(file: Union[str, Path, BytesIO]) -> tuple[str, list[list]]:
    """Load the first sheet of an .xls workbook, rows starting at A1."""
    if isinstance(file, BytesIO):
        file.seek(0)
    try:
        with pd.ExcelFile(file, engine="xlrd") as workbook:
            if not workbook.sheet_names:
                raise InvoiceParseError(message="Workbook has no worksheets")
            sheet_name = workbook.sheet_names[0]
            df = workbook.parse(sheet_name, header=None, dtype=object)
    except InvoiceParseError:
        raise
    except Exception as e:
        logger.error("invoice_read_failed", error=str(e), engine="xlrd")
        raise InvoiceParseError(
            message="Error processing Excel file. Please check the file format and try again.",
            details={"original_error": str(e)}
        )

    return str(sheet_name), df.values.tolist()


def _read_first_sheet(file: Union[str, Path, BytesIO]) -> tuple[str, list[list]]:
    """Load the first worksheet as a dense list of rows starting at A1."""
    try:
        workbook = load_workbook(file, data_only=True)
    except Exception as e:
        logger.error("invoice_read_failed", error=str(e))
        raise InvoiceParseError(
            message="Error processing Excel file. Please check the file format and try again.",
            details={"original_error": str(e)}
        )

    try:
        if not workbook.worksheets:
            raise InvoiceParseError(message="Workbook has no worksheets")

        sheet = workbook.worksheets[0]
        rows = [
            list(row)
            for row in sheet.iter_rows(
                min_row=1,
                min_col=1,
                max_row=sheet.max_row,
                max_col=sheet.max_column,
                values_only=True,
            )
        ]
        return sheet.title, rows
    finally:
        workbook.close()


def parse_invoice_excel(
    file: Union[str, Path, BytesIO],
    filename: Optional[str] = None,
) -> InvoiceExtractionResult:
    """
    Extract PQ record fields from an invoice spreadsheet.

    Args:
        file: File path (str/Path) or file-like object (BytesIO)
        filename: Original upload name, for logging and the result

    Returns:
        InvoiceExtractionResult with matches, missing fields and a log.
        `success` is False when nothing recognizable was found.

    Raises:
        InvoiceParseError: If the file cannot be read as a workbook
    """
    logger.info("parsing_invoice", filename=filename, file_type=type(file).__name__)

    if _is_legacy_workbook(file, filename):
        sheet_name, rows = _read_legacy_first_sheet(file)
    else:
        sheet_name, rows = _read_first_sheet(file)
    grid = CellGrid.from_rows(rows)
    max_cols = max((len(r) for r in rows), default=0)

    result = InvoiceExtractionResult(
        sheet_name=sheet_name,
        cell_count=len(grid),
        filename=filename,
    )
    result.log.append("Starting data extraction from invoice...")
    result.log.append(f"Analyzing sheet: {sheet_name} ({len(rows)} rows, {max_cols} cols)")
    result.log.append(f"Found {len(grid)} non-empty cells")

    extract_fields(grid, result)

    if result.success:
        result.log.append(f"Extracted {len(result.matches)} fields")
    else:
        result.log.append("No recognizable data patterns found")

    logger.info(
        "invoice_parsed",
        filename=filename,
        sheet=sheet_name,
        cell_count=len(grid),
        extracted=list(result.extracted.keys()),
        missing=result.missing_fields,
        success=result.success,
    )

    return result
