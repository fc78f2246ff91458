from __future__ import annotations

import io
from pathlib import Path
from typing import Iterable, Sequence, Tuple
import sys

import pytest
from openpyxl import Workbook

# Ensure project root is on sys.path for absolute imports
ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.append(str(ROOT))

from pricestudio import PriceSession

HEADER = [
    "Código",
    "Nombre",
    "Stock",
    "Costo U.C.",
    "Costo neto",
    "Precio de Venta",
    "Precio Sugerido",
    "Porcentaje de Venta",
    "Familia",
]


def make_price_list(
    rows: Iterable[Sequence[object]],
    header: Sequence[object] = HEADER,
    title: str = "Lista de precios",
) -> bytes:
    """Build an XLSX price list with the header on the third row."""

    workbook = Workbook()
    sheet = workbook.active
    sheet.append([title])
    sheet.append([])
    sheet.append(list(header))
    for row in rows:
        sheet.append(list(row))
    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def make_legacy_price_list(
    rows: Iterable[Sequence[object]],
    header: Sequence[object] = HEADER,
    title: str = "Lista de precios",
) -> bytes:
    """Build the same layout as :func:`make_price_list` in the BIFF ``.xls`` format."""

    import xlwt

    workbook = xlwt.Workbook(encoding="utf-8")
    sheet = workbook.add_sheet("Hoja1")
    grid = [[title], [], list(header), *[list(row) for row in rows]]
    for row_index, row in enumerate(grid):
        for col_index, value in enumerate(row):
            if value is not None:
                sheet.write(row_index, col_index, value)
    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


@pytest.fixture
def store_a() -> Tuple[str, bytes]:
    return "StoreA.xlsx", make_price_list([["X1", "Widget", 5, 80, 100, 150, None, None, "Tools"]])


@pytest.fixture
def store_b() -> Tuple[str, bytes]:
    return "StoreB.xlsx", make_price_list([["X1", "Widget", -2, 85, 90, 100, None, None, "Tools"]])


@pytest.fixture
def scenario_session(store_a, store_b) -> PriceSession:
    session = PriceSession()
    session.upload([store_a, store_b])
    return session


@pytest.fixture
def scenario_catalog(scenario_session):
    return scenario_session.catalog
