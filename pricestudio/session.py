"""Single-user session owning the catalog, filters and selection."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Iterable, List, Optional, Set, Tuple

import pandas as pd

from .catalog import CatalogSummary, merge_price_lists
from .config import AppConfig
from .io import empty_catalog_frame, load_price_list, source_name_from_filename
from .pricing import apply_markup
from .reporting import build_export_grid, export_to_excel_bytes, write_export
from .search import ALL, STOCK_FILTERS, ComparisonEntry, derive_view

logger = logging.getLogger(__name__)

_UNSET: Any = object()


class StaleGeneration(RuntimeError):
    """Raised when a recalculation targets a catalog that has been replaced."""


class PriceSession:
    """Holds the state of one comparison session.

    The catalog is only ever swapped as a whole: an upload batch replaces it
    once every file decoded, and a recalculation replaces it with the frame
    returned by :func:`apply_markup`. ``generation`` increases with every
    successful upload.
    """

    def __init__(self, config: Optional[AppConfig] = None) -> None:
        self.config = config or AppConfig()
        self.catalog: pd.DataFrame = empty_catalog_frame()
        self.summary: Optional[CatalogSummary] = None
        self.query: str = ""
        self.category: str = ALL
        self.stock_filter: str = ALL
        self.selected_codes: Set[str] = set()
        self.generation = 0

    @property
    def is_loaded(self) -> bool:
        return self.summary is not None

    def upload(self, files: Iterable[Tuple[str, bytes]]) -> CatalogSummary:
        """Load a batch of ``(file name, content)`` pairs, replacing the catalog.

        Files are read in order and the first one that fails to decode aborts
        the batch with :class:`~pricestudio.io.DecodeFailure`; the previous
        catalog then stays in place.
        """

        batch = list(files)
        if not batch:
            logger.warning("Upload requested without any price list")
            raise ValueError("Select at least one price list to upload")

        frames: List[Tuple[str, pd.DataFrame]] = []
        for file_name, content in batch:
            frame = load_price_list(file_name, content, self.config)
            frames.append((source_name_from_filename(file_name), frame))

        catalog, summary = merge_price_lists(frames, files_processed=len(batch))
        self.catalog = catalog
        self.summary = summary
        self.selected_codes = set()
        if self.category != ALL and self.category not in summary.categories:
            self.category = ALL
        self.generation += 1
        logger.info("Upload generation %d ready with %d products", self.generation, summary.total_products)
        return summary

    def set_filters(
        self,
        query: Any = _UNSET,
        category: Any = _UNSET,
        stock_filter: Any = _UNSET,
    ) -> None:
        if stock_filter is not _UNSET:
            if stock_filter not in STOCK_FILTERS:
                raise ValueError(f"Unknown stock filter '{stock_filter}'")
            self.stock_filter = stock_filter
        if query is not _UNSET:
            self.query = query or ""
        if category is not _UNSET:
            self.category = category or ALL

    def view(self) -> List[ComparisonEntry]:
        return derive_view(
            self.catalog,
            query=self.query,
            category=self.category,
            stock_filter=self.stock_filter,
            reconcile=self.config.view.reconcile,
        )

    def toggle(self, code: str) -> None:
        if code in self.selected_codes:
            self.selected_codes.discard(code)
        else:
            self.selected_codes.add(code)

    def select_all(self, codes: Iterable[str]) -> None:
        self.selected_codes = set(codes)

    def update_selection(self, visible_codes: Iterable[str], checked_codes: Iterable[str]) -> None:
        """Apply the checkboxes of the rows on screen, keeping hidden selections."""

        checked = set(checked_codes)
        self.selected_codes -= set(visible_codes) - checked
        self.selected_codes |= checked

    def clear_selection(self) -> None:
        self.selected_codes = set()

    def recalculate(self, percentage: Any, scope: str, generation: Optional[int] = None) -> int:
        """Apply a markup to the catalog and return how many prices changed."""

        if generation is not None and generation != self.generation:
            raise StaleGeneration(
                f"Recalculation was requested for upload {generation}, "
                f"but upload {self.generation} is current"
            )

        updated = apply_markup(
            self.catalog,
            percentage,
            scope,
            selected_codes=self.selected_codes,
            active_category=self.category,
        )
        changed = int((updated["suggested_price"] != self.catalog["suggested_price"]).sum())
        self.catalog = updated
        return changed

    def export_grid(self) -> pd.DataFrame:
        """Flatten the current view in the summary's source order."""

        sources = self.summary.sources if self.summary else []
        return build_export_grid(self.view(), sources, self.config.export)

    def export(self, path: Optional[Path] = None) -> bytes:
        """Serialise the current view; optionally also write it to ``path``."""

        grid = self.export_grid()
        sheet_name = self.config.export.sheet_name
        if path is not None:
            write_export(grid, path, sheet_name)
        return export_to_excel_bytes(grid, sheet_name)


__all__ = ["PriceSession", "StaleGeneration"]
