"""Price Studio core package.

This package provides the building blocks for loading store price lists,
merging them by product code, filtering the merged catalog, recomputing
suggested prices and exporting the comparison.  It powers both the command
line interface and the Streamlit front-end distributed with this repository.
"""

from .catalog import CatalogSummary, merge_price_lists
from .config import (
    AppConfig,
    ExportConfig,
    HeaderMapping,
    LayoutConfig,
    ViewConfig,
    load_config,
)
from .io import DecodeFailure, load_price_list, normalise_sheet, read_raw_sheet
from .pricing import InvalidPercentage, apply_markup, parse_percentage
from .reporting import EmptyExport, build_export_grid, export_to_excel_bytes
from .search import ComparisonEntry, SourceFigures, derive_view, filter_catalog, group_entries
from .session import PriceSession, StaleGeneration

__all__ = [
    "AppConfig",
    "CatalogSummary",
    "ComparisonEntry",
    "DecodeFailure",
    "EmptyExport",
    "ExportConfig",
    "HeaderMapping",
    "InvalidPercentage",
    "LayoutConfig",
    "PriceSession",
    "SourceFigures",
    "StaleGeneration",
    "ViewConfig",
    "apply_markup",
    "build_export_grid",
    "derive_view",
    "export_to_excel_bytes",
    "filter_catalog",
    "group_entries",
    "load_config",
    "load_price_list",
    "merge_price_lists",
    "normalise_sheet",
    "parse_percentage",
    "read_raw_sheet",
]
