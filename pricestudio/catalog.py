"""Merging of normalised price lists into a single catalog."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence, Tuple

import pandas as pd

from .io import CATALOG_COLUMNS, empty_catalog_frame

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CatalogSummary:
    """Read-only snapshot describing one upload batch."""

    total_products: int = 0
    categories: Tuple[str, ...] = ()
    sources: Tuple[str, ...] = ()
    files_processed: int = 0

    def as_dict(self) -> Dict[str, Any]:
        return {
            "total_products": self.total_products,
            "categories": list(self.categories),
            "sources": list(self.sources),
            "files_processed": self.files_processed,
        }


def merge_price_lists(
    frames: Sequence[Tuple[str, pd.DataFrame]],
    files_processed: Optional[int] = None,
) -> Tuple[pd.DataFrame, CatalogSummary]:
    """Concatenate per-store frames into the catalog and summarise it.

    ``frames`` pairs each source name with its normalised rows, in the order
    the files were processed. Sources whose frame is empty still count as
    processed and still appear in the summary's source list.
    """

    non_empty = [frame for _, frame in frames if not frame.empty]
    if non_empty:
        catalog = pd.concat(non_empty, ignore_index=True, sort=False)
    else:
        catalog = empty_catalog_frame()

    for column in CATALOG_COLUMNS:
        if column not in catalog.columns:
            catalog[column] = "" if column in {"source", "code", "name", "category"} else 0.0

    ordered = [*CATALOG_COLUMNS, *(c for c in catalog.columns if c not in CATALOG_COLUMNS)]
    catalog = catalog.loc[:, ordered]

    sources = [source for source, _ in frames]
    count = len(frames) if files_processed is None else files_processed
    summary = summarise_catalog(catalog, sources, count)
    logger.info(
        "Merged %d products from %d files (%d categories)",
        summary.total_products,
        summary.files_processed,
        len(summary.categories),
    )
    return catalog, summary


def summarise_catalog(
    catalog: pd.DataFrame,
    sources: Sequence[str],
    files_processed: int,
) -> CatalogSummary:
    categories = tuple(sorted({str(value) for value in catalog["category"] if value}))
    return CatalogSummary(
        total_products=int(catalog.shape[0]),
        categories=categories,
        sources=tuple(sorted(set(sources))),
        files_processed=int(files_processed),
    )


__all__ = ["CatalogSummary", "merge_price_lists", "summarise_catalog"]
