"""Command line interface for the Price Studio comparison pipeline."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple

from tabulate import tabulate

from .catalog import CatalogSummary
from .config import load_config
from .pricing import SCOPES
from .search import RECONCILERS, STOCK_FILTERS, ComparisonEntry
from .session import PriceSession

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Compare store price lists and recompute suggested prices")
    parser.add_argument("files", nargs="+", type=Path, help="Store price lists (.xlsx/.xls), one per store")
    parser.add_argument("--config", type=Path, help="Path to YAML configuration")
    parser.add_argument("--query", help="Keep products whose code or name contains this text")
    parser.add_argument("--category", default="all", help="Exact category to keep, or 'all'")
    parser.add_argument("--stock", choices=STOCK_FILTERS, default="all", help="Stock filter")
    parser.add_argument("--markup", help="Markup percentage over net cost used for suggested prices")
    parser.add_argument("--scope", choices=SCOPES, default="all", help="Products the markup applies to")
    parser.add_argument(
        "--select",
        action="append",
        default=[],
        help="Product code to include when --scope=selected (repeatable)",
    )
    parser.add_argument("--reconcile", choices=sorted(RECONCILERS), help="How to merge per-store margins")
    parser.add_argument("--output", type=Path, help="Write the comparison workbook to this path")
    parser.add_argument("--log-level", default="INFO", help="Logging level (DEBUG, INFO, WARNING)")
    parser.add_argument("--quiet", action="store_true", help="Suppress console table output")
    return parser


def main(argv: Optional[Iterable[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )

    try:
        config = load_config(args.config)
    except Exception as exc:
        logger.error("Failed to load configuration: %s", exc)
        return 1

    if args.reconcile:
        config.view.reconcile = args.reconcile

    session = PriceSession(config)
    try:
        files = _read_files(args.files)
        summary = session.upload(files)
    except (OSError, ValueError) as exc:
        logger.error("%s", exc)
        return 1

    try:
        session.set_filters(query=args.query, category=args.category, stock_filter=args.stock)
        if args.markup is not None:
            session.select_all(args.select)
            session.recalculate(args.markup, args.scope)
        entries = session.view()
    except ValueError as exc:
        logger.error("%s", exc)
        return 1

    if not args.quiet:
        _print_summary(summary)
        _print_entries(entries, summary.sources)

    if args.output:
        try:
            session.export(args.output)
        except (OSError, ValueError) as exc:
            logger.error("Export failed: %s", exc)
            return 1

    return 0


def _read_files(paths: Sequence[Path]) -> List[Tuple[str, bytes]]:
    files: List[Tuple[str, bytes]] = []
    for path in paths:
        files.append((path.name, Path(path).expanduser().read_bytes()))
    return files


def _print_summary(summary: CatalogSummary) -> None:
    rows = [
        ["Products", summary.total_products],
        ["Stores", len(summary.sources)],
        ["Categories", len(summary.categories)],
        ["Files", summary.files_processed],
    ]
    print(tabulate(rows, tablefmt="github"))


def _print_entries(entries: Sequence[ComparisonEntry], sources: Sequence[str]) -> None:
    if not entries:
        print("No products match the current filters.")
        return

    headers = ["code", "name", "category", *sources, "margin %", "suggested"]
    table = []
    for entry in entries:
        row = [entry.code, entry.name, entry.category]
        for source in sources:
            figures = entry.by_source.get(source)
            if figures is None:
                row.append("-")
            else:
                row.append(f"{figures.stock:g} @ {figures.sale_price:,.2f}")
        row.extend([entry.current_margin_pct, entry.suggested_price])
        table.append(row)
    print(tabulate(table, headers=headers, tablefmt="github", floatfmt=".2f"))


if __name__ == "__main__":  # pragma: no cover - manual execution entry point
    raise SystemExit(main())
