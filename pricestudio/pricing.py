"""Bulk recalculation of suggested prices from a markup over net cost."""

from __future__ import annotations

import logging
import math
from numbers import Real
from typing import Any, Iterable, Optional

import pandas as pd

from .search import ALL

logger = logging.getLogger(__name__)

SCOPES = ("selected", "category", "all")


class InvalidPercentage(ValueError):
    """Raised when a markup percentage is not a usable number."""


def parse_percentage(value: Any) -> float:
    """Return ``value`` as a finite float or raise :class:`InvalidPercentage`."""

    if isinstance(value, bool) or value is None:
        raise InvalidPercentage(f"Invalid percentage: {value!r}")

    if isinstance(value, Real):
        number = float(value)
    else:
        text = str(value).strip()
        if text.endswith("%"):
            text = text[:-1].strip()
        try:
            number = float(text.replace(",", "."))
        except ValueError:
            raise InvalidPercentage(f"Invalid percentage: {value!r}") from None

    if math.isnan(number) or math.isinf(number):
        raise InvalidPercentage(f"Invalid percentage: {value!r}")
    return number


def apply_markup(
    catalog: pd.DataFrame,
    percentage: Any,
    scope: str,
    selected_codes: Optional[Iterable[str]] = None,
    active_category: str = ALL,
) -> pd.DataFrame:
    """Return a copy of ``catalog`` with ``suggested_price`` recomputed in scope.

    Eligible rows with a positive net cost get ``net_cost * (1 + percentage /
    100)``; every other row keeps its current suggested price. The category
    scope never matches anything while the active category is ``"all"``.
    """

    markup = parse_percentage(percentage)
    if scope not in SCOPES:
        raise ValueError(f"Unknown scope '{scope}'; expected one of {', '.join(SCOPES)}")

    if scope == "all":
        eligible = pd.Series(True, index=catalog.index)
    elif scope == "category":
        if active_category == ALL:
            eligible = pd.Series(False, index=catalog.index)
        else:
            eligible = catalog["category"] == active_category
    else:
        codes = set(selected_codes or ())
        eligible = catalog["code"].isin(codes)

    updated = catalog.copy()
    mask = eligible & (updated["net_cost"] > 0)
    updated.loc[mask, "suggested_price"] = updated.loc[mask, "net_cost"] * (1 + markup / 100)

    logger.info(
        "Applied %.2f%% markup to %d of %d products (scope=%s)",
        markup,
        int(mask.sum()),
        len(updated),
        scope,
    )
    return updated


__all__ = ["InvalidPercentage", "SCOPES", "apply_markup", "parse_percentage"]
