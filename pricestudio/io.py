"""IO helpers for decoding and normalising store price lists."""

from __future__ import annotations

import io
import logging
import math
import re
from typing import Any, Dict, List, Optional, Sequence

import numpy as np
import pandas as pd
import xlrd
from openpyxl import load_workbook

from .config import AppConfig, HeaderMapping, LayoutConfig

logger = logging.getLogger(__name__)

CATALOG_COLUMNS: Sequence[str] = (
    "source",
    "code",
    "name",
    "stock",
    "unit_cost",
    "net_cost",
    "sale_price",
    "category",
    "current_margin_pct",
    "suggested_price",
)
TEXT_COLUMNS: Sequence[str] = ("code", "name", "category")
NUMERIC_COLUMNS: Sequence[str] = ("stock", "unit_cost", "net_cost", "sale_price")

_EXCEL_SUFFIX = re.compile(r"\.(xlsx|xls)$", flags=re.IGNORECASE)
_XLSX_MAGIC = b"PK\x03\x04"
_XLS_MAGIC = b"\xd0\xcf\x11\xe0"


class DecodeFailure(ValueError):
    """Raised when an uploaded file cannot be read as a spreadsheet."""

    def __init__(self, file_name: str, reason: str) -> None:
        super().__init__(f"Error processing {file_name}: {reason}")
        self.file_name = file_name
        self.reason = reason


def source_name_from_filename(file_name: str) -> str:
    """Derive the store name from an uploaded file name."""

    return _EXCEL_SUFFIX.sub("", file_name)


def read_raw_sheet(file_name: str, content: bytes) -> pd.DataFrame:
    """Decode the first worksheet of ``content`` into a header-less grid.

    Cells are returned exactly as stored, row 0 being the first sheet row, so
    the fixed header offset used by :func:`normalise_sheet` stays meaningful
    even when leading rows are blank.
    """

    try:
        if _is_legacy_workbook(file_name, content):
            rows = _read_xls_rows(content)
        else:
            rows = _read_xlsx_rows(content)
    except Exception as exc:
        raise DecodeFailure(file_name, str(exc) or exc.__class__.__name__) from exc

    logger.debug("Decoded %d rows from %s", len(rows), file_name)
    return pd.DataFrame(rows, dtype=object)


def _read_xlsx_rows(content: bytes) -> List[tuple]:
    workbook = load_workbook(io.BytesIO(content), data_only=True)
    try:
        worksheet = workbook.worksheets[0]
        return list(worksheet.iter_rows(values_only=True))
    finally:
        workbook.close()


def _read_xls_rows(content: bytes) -> List[list]:
    book = xlrd.open_workbook(file_contents=content)
    sheet = book.sheet_by_index(0)
    return [sheet.row_values(index) for index in range(sheet.nrows)]


def _is_legacy_workbook(file_name: str, content: bytes) -> bool:
    # Magic bytes win over the extension.
    if content.startswith(_XLSX_MAGIC):
        return False
    if content.startswith(_XLS_MAGIC):
        return True
    return file_name.lower().endswith(".xls")


def load_price_list(
    file_name: str,
    content: bytes,
    config: Optional[AppConfig] = None,
) -> pd.DataFrame:
    """Decode and normalise a single uploaded price list."""

    config = config or AppConfig()
    source = source_name_from_filename(file_name)
    logger.info("Loading price list '%s' from %s", source, file_name)
    raw = read_raw_sheet(file_name, content)
    return normalise_sheet(raw, source, config.layout, config.headers)


def normalise_sheet(
    raw: pd.DataFrame,
    source: str,
    layout: Optional[LayoutConfig] = None,
    headers: Optional[HeaderMapping] = None,
) -> pd.DataFrame:
    """Turn a raw grid into catalog rows tagged with ``source``."""

    layout = layout or LayoutConfig()
    headers = headers or HeaderMapping()

    if raw.shape[0] <= layout.header_row:
        logger.warning(
            "Sheet for '%s' has no header at row %d; no products loaded",
            source,
            layout.header_row,
        )
        return empty_catalog_frame()

    header_cells = list(raw.iloc[layout.header_row, : layout.header_columns])
    body = raw.iloc[layout.data_start_row :]
    lookup = headers.lookup()

    columns: Dict[str, pd.Series] = {}
    for index, header in enumerate(header_cells):
        if _is_missing(header) or not str(header).strip():
            continue
        target = lookup.get(str(header).strip())
        if target is None:
            target = _default_field_name(header)
        logger.debug("Column %d header %r mapped to '%s'", index, header, target)
        columns[target] = body.iloc[:, index]

    frame = pd.DataFrame(columns, index=body.index)

    for column in TEXT_COLUMNS:
        if column in frame.columns:
            frame[column] = frame[column].map(clean_text)
        else:
            frame[column] = ""

    for column in NUMERIC_COLUMNS:
        if column in frame.columns:
            frame[column] = coerce_numeric(frame[column]).fillna(0.0).astype(float)
        else:
            frame[column] = 0.0

    frame["source"] = source
    frame["current_margin_pct"] = margin_percentage(frame["sale_price"], frame["net_cost"])
    frame["suggested_price"] = frame["sale_price"]

    keep = (frame["code"] != "") & (frame["name"] != "")
    dropped = int((~keep).sum())
    if dropped:
        logger.debug("Dropped %d rows without code or name from '%s'", dropped, source)

    extras = [column for column in frame.columns if column not in CATALOG_COLUMNS]
    normalised = frame.loc[keep, [*CATALOG_COLUMNS, *extras]].reset_index(drop=True)
    logger.info("Normalised %d products from '%s'", len(normalised), source)
    return normalised


def margin_percentage(sale_price: pd.Series, net_cost: pd.Series) -> pd.Series:
    """Gain over net cost in percent, ``0`` where the net cost is not positive."""

    sale = sale_price.astype(float)
    cost = net_cost.astype(float)
    with np.errstate(divide="ignore", invalid="ignore"):
        margin = np.where(cost > 0, (sale - cost) / cost * 100.0, 0.0)
    return pd.Series(margin, index=sale_price.index, dtype=float)


def empty_catalog_frame() -> pd.DataFrame:
    frame = pd.DataFrame({column: pd.Series(dtype=object) for column in CATALOG_COLUMNS})
    for column in (*NUMERIC_COLUMNS, "current_margin_pct", "suggested_price"):
        frame[column] = frame[column].astype(float)
    return frame


def clean_text(value: Any) -> str:
    """Coerce a cell to trimmed text; blanks become an empty string."""

    if _is_missing(value):
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def coerce_numeric(values: pd.Series) -> pd.Series:
    """Coerce textual representations of numbers into floats."""

    if not isinstance(values, pd.Series):
        values = pd.Series(values)
    if values.empty:
        return pd.to_numeric(values, errors="coerce")

    direct = values.map(_as_number).astype(float)

    cleaned = values.map(lambda value: "" if _is_missing(value) else str(value))
    cleaned = cleaned.str.replace(r"\s+", "", regex=True)
    cleaned = cleaned.str.replace("\u00A0", "", regex=False)
    cleaned = cleaned.str.replace(r"(?i)(clp|usd|eur|\$|€|£)", "", regex=True)

    # Plain numeric text, exponents included, parses as-is.
    plain = _finite(pd.to_numeric(cleaned, errors="coerce"))

    cleaned = cleaned.str.replace(r"[+-]$", "", regex=True)
    cleaned = cleaned.str.replace(r"[^0-9,\.\-+eE]", "", regex=True)
    cleaned = cleaned.str.replace(r"(?<![0-9])[eE]|[eE](?![+-]?[0-9])", "", regex=True)

    # With both separators present, the one appearing last is the decimal mark.
    both = cleaned.str.contains(",", regex=False) & cleaned.str.contains(".", regex=False)
    comma_decimal = cleaned.str.rfind(",") > cleaned.str.rfind(".")
    cleaned = cleaned.where(~(both & comma_decimal), cleaned.str.replace(".", "", regex=False))
    cleaned = cleaned.where(~(both & ~comma_decimal), cleaned.str.replace(",", "", regex=False))

    cleaned = cleaned.str.replace(",", ".", regex=False)
    cleaned = cleaned.str.replace(r"[.,]$", "", regex=True)

    parsed = _finite(pd.to_numeric(cleaned, errors="coerce"))
    return direct.where(direct.notna(), plain.where(plain.notna(), parsed))


def _finite(values: pd.Series) -> pd.Series:
    values = values.astype(float)
    return values.where(np.isfinite(values))


def _as_number(value: Any) -> float:
    # Cells the decoder already typed as numbers skip the text clean-up.
    if isinstance(value, bool) or not isinstance(value, (int, float, np.number)):
        return np.nan
    return float(value)


def _default_field_name(header: Any) -> str:
    return re.sub(r"\s", "_", str(header).lower())


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return value is pd.NA or value is pd.NaT


__all__ = [
    "CATALOG_COLUMNS",
    "DecodeFailure",
    "clean_text",
    "coerce_numeric",
    "empty_catalog_frame",
    "load_price_list",
    "margin_percentage",
    "normalise_sheet",
    "read_raw_sheet",
    "source_name_from_filename",
]
