"""Utilities for exporting the comparison view to a workbook."""

from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import Any, List, Optional, Sequence

import pandas as pd

from .config import ExportConfig
from .search import ComparisonEntry

logger = logging.getLogger(__name__)


class EmptyExport(ValueError):
    """Raised when there is nothing visible to export."""


def build_export_grid(
    entries: Sequence[ComparisonEntry],
    sources: Sequence[str],
    export: Optional[ExportConfig] = None,
) -> pd.DataFrame:
    """Flatten comparison entries into one row per product code.

    Each source contributes stock, net cost and sale price columns in the
    given order; sources that do not carry a product are filled with the
    configured placeholder.
    """

    if not entries:
        raise EmptyExport("No products to export")

    export = export or ExportConfig()
    header: List[str] = [export.code_label, export.name_label, export.category_label]
    for source in sources:
        header.extend(
            [
                f"{source} {export.stock_label}",
                f"{source} {export.cost_label}",
                f"{source} {export.sale_label}",
            ]
        )
    header.extend([export.margin_label, export.suggested_label])

    rows: List[List[Any]] = []
    for entry in entries:
        row: List[Any] = [entry.code, entry.name, entry.category]
        for source in sources:
            figures = entry.by_source.get(source)
            if figures is None:
                row.extend([export.placeholder] * 3)
            else:
                row.extend([figures.stock, figures.net_cost, figures.sale_price])
        row.append(f"{entry.current_margin_pct:.2f}%")
        row.append(f"{entry.suggested_price:.2f}")
        rows.append(row)

    return pd.DataFrame(rows, columns=header)


def export_to_excel_bytes(grid: pd.DataFrame, sheet_name: str = "Comparacion Precios") -> bytes:
    """Serialise the export grid to XLSX."""

    buffer = io.BytesIO()
    safe_sheet = sheet_name[:31] or "Data"
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        grid.to_excel(writer, index=False, sheet_name=safe_sheet)
    buffer.seek(0)
    return buffer.getvalue()


def write_export(grid: pd.DataFrame, path: Path, sheet_name: str = "Comparacion Precios") -> Path:
    """Write the export grid to ``path`` as an XLSX workbook."""

    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(export_to_excel_bytes(grid, sheet_name))
    logger.info("Wrote %d products to %s", len(grid), target)
    return target


__all__ = ["EmptyExport", "build_export_grid", "export_to_excel_bytes", "write_export"]
