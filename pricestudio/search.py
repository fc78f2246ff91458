"""Search, filtering and grouping of the catalog into comparison entries."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)

ALL = "all"
STOCK_FILTERS: Sequence[str] = ("all", "exclude_zero", "only_zero", "only_negative")
GROUP_COLUMNS: Sequence[str] = (
    "source",
    "code",
    "name",
    "category",
    "stock",
    "unit_cost",
    "net_cost",
    "sale_price",
    "current_margin_pct",
    "suggested_price",
)


@dataclass
class SourceFigures:
    """Stock and price figures of one product in one store."""

    stock: float
    unit_cost: float
    net_cost: float
    sale_price: float


@dataclass
class ComparisonEntry:
    """One product code with the figures of every store that carries it."""

    code: str
    name: str
    category: str
    current_margin_pct: float
    suggested_price: float
    by_source: Dict[str, SourceFigures] = field(default_factory=dict)


RECONCILERS: Dict[str, Callable[[List[float]], float]] = {
    "first": lambda values: values[0],
    "max": max,
    "min": min,
    "average": lambda values: float(np.mean(values)),
}


def filter_catalog(
    catalog: pd.DataFrame,
    query: Optional[str] = None,
    category: str = ALL,
    stock_filter: str = ALL,
) -> pd.DataFrame:
    """Return the catalog rows that survive the text, category and stock filters."""

    if stock_filter not in STOCK_FILTERS:
        raise ValueError(
            f"Unknown stock filter '{stock_filter}'; expected one of {', '.join(STOCK_FILTERS)}"
        )

    filtered = catalog
    if query:
        needle = query.lower()
        codes = filtered["code"].astype(str).str.lower()
        names = filtered["name"].astype(str).str.lower()
        mask = codes.str.contains(needle, regex=False) | names.str.contains(needle, regex=False)
        filtered = filtered.loc[mask]

    if category and category != ALL:
        filtered = filtered.loc[filtered["category"] == category]

    if stock_filter == "exclude_zero":
        filtered = filtered.loc[filtered["stock"] != 0]
    elif stock_filter == "only_zero":
        filtered = filtered.loc[filtered["stock"] == 0]
    elif stock_filter == "only_negative":
        filtered = filtered.loc[filtered["stock"] < 0]

    return filtered.copy()


def group_entries(filtered: pd.DataFrame, reconcile: str = "first") -> List[ComparisonEntry]:
    """Group rows by product code, keeping first-seen order."""

    try:
        reconciler = RECONCILERS[reconcile]
    except KeyError:
        raise ValueError(
            f"Unknown reconcile strategy '{reconcile}'; expected one of {', '.join(RECONCILERS)}"
        ) from None

    entries: Dict[str, ComparisonEntry] = {}
    margins: Dict[str, List[float]] = {}
    suggested: Dict[str, List[float]] = {}

    for row in filtered.loc[:, list(GROUP_COLUMNS)].itertuples(index=False):
        entry = entries.get(row.code)
        if entry is None:
            entry = ComparisonEntry(
                code=row.code,
                name=row.name,
                category=row.category,
                current_margin_pct=float(row.current_margin_pct),
                suggested_price=float(row.suggested_price),
            )
            entries[row.code] = entry
            margins[row.code] = []
            suggested[row.code] = []
        entry.by_source[row.source] = SourceFigures(
            stock=float(row.stock),
            unit_cost=float(row.unit_cost),
            net_cost=float(row.net_cost),
            sale_price=float(row.sale_price),
        )
        margins[row.code].append(float(row.current_margin_pct))
        suggested[row.code].append(float(row.suggested_price))

    if reconcile != "first":
        for code, entry in entries.items():
            entry.current_margin_pct = reconciler(margins[code])
            entry.suggested_price = reconciler(suggested[code])

    return list(entries.values())


def derive_view(
    catalog: pd.DataFrame,
    query: Optional[str] = None,
    category: str = ALL,
    stock_filter: str = ALL,
    reconcile: str = "first",
) -> List[ComparisonEntry]:
    """Filter the catalog and group the survivors into comparison entries."""

    filtered = filter_catalog(catalog, query=query, category=category, stock_filter=stock_filter)
    entries = group_entries(filtered, reconcile=reconcile)
    logger.debug(
        "View for query=%r category=%r stock=%r: %d rows, %d entries",
        query,
        category,
        stock_filter,
        len(filtered),
        len(entries),
    )
    return entries


__all__ = [
    "ALL",
    "ComparisonEntry",
    "RECONCILERS",
    "STOCK_FILTERS",
    "SourceFigures",
    "derive_view",
    "filter_catalog",
    "group_entries",
]
