"""Configuration loading utilities for Price Studio."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml

DEFAULT_HEADER_LABELS: Dict[str, List[str]] = {
    "code": ["Código", "Codigo", "Code", "SKU"],
    "name": ["Nombre", "Name", "Producto"],
    "stock": ["Stock", "Existencia"],
    "unit_cost": ["Costo U.C.", "Costo Unitario", "Unit Cost"],
    "net_cost": ["Costo neto", "Costo Neto", "Net Cost"],
    "sale_price": ["Precio de Venta", "Precio Venta", "Sale Price"],
    "excel_suggested_price": ["Precio Sugerido"],
    "excel_sale_pct": ["Porcentaje de Venta"],
    "category": ["Familia", "Categoría", "Categoria", "Category"],
}


@dataclass
class LayoutConfig:
    """Where the header row lives inside an uploaded sheet."""

    header_row: int = 2
    header_columns: int = 9

    @property
    def data_start_row(self) -> int:
        return self.header_row + 1


@dataclass
class HeaderMapping:
    """Lookup table from sheet header labels to canonical field names."""

    labels: Dict[str, List[str]] = field(
        default_factory=lambda: {key: list(values) for key, values in DEFAULT_HEADER_LABELS.items()}
    )

    def lookup(self) -> Dict[str, str]:
        table: Dict[str, str] = {}
        for canonical, aliases in self.labels.items():
            for alias in aliases:
                table[str(alias).strip()] = canonical
        return table


@dataclass
class ViewConfig:
    """Settings for building the grouped comparison view."""

    reconcile: str = "first"


@dataclass
class ExportConfig:
    """Layout and destination of the exported comparison workbook."""

    directory: Path = Path("output")
    file_name: str = "comparacion_precios_mejorado.xlsx"
    sheet_name: str = "Comparacion Precios"
    placeholder: str = "-"
    code_label: str = "Código"
    name_label: str = "Nombre"
    category_label: str = "Categoría"
    stock_label: str = "Stock"
    cost_label: str = "Costo"
    sale_label: str = "Venta"
    margin_label: str = "Porcentaje Ganancia Actual"
    suggested_label: str = "Precio Sugerido Calculado"

    @property
    def path(self) -> Path:
        return self.directory / self.file_name

    def resolved(self, base_path: Path) -> "ExportConfig":
        return replace(self, directory=_resolve_path(self.directory, base_path))


@dataclass
class AppConfig:
    """Container for everything the session and CLI need."""

    layout: LayoutConfig = field(default_factory=LayoutConfig)
    headers: HeaderMapping = field(default_factory=HeaderMapping)
    view: ViewConfig = field(default_factory=ViewConfig)
    export: ExportConfig = field(default_factory=ExportConfig)

    def resolved(self, base_path: Path) -> "AppConfig":
        return AppConfig(
            layout=self.layout,
            headers=self.headers,
            view=self.view,
            export=self.export.resolved(base_path),
        )


def load_config(path: Optional[Path] = None) -> AppConfig:
    """Load :class:`AppConfig` from a YAML file, or return the defaults."""

    if path is None:
        return AppConfig()

    config_path = Path(path).expanduser()
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file '{config_path}' does not exist")

    with config_path.open("r", encoding="utf-8") as stream:
        raw_config: Mapping[str, Any] = yaml.safe_load(stream) or {}

    if not isinstance(raw_config, Mapping):
        raise ValueError("Configuration root must be a mapping")

    layout = LayoutConfig(**raw_config.get("layout", {}))
    if layout.header_row < 0:
        raise ValueError("layout.header_row must not be negative")
    if layout.header_columns <= 0:
        raise ValueError("layout.header_columns must be positive")

    headers = _parse_header_section(raw_config.get("headers", {}))
    view = ViewConfig(**raw_config.get("view", {}))
    export = ExportConfig(**_parse_export_section(raw_config.get("export", {})))

    config = AppConfig(layout=layout, headers=headers, view=view, export=export)
    return config.resolved(config_path.parent)


def _parse_header_section(section: Mapping[str, Any]) -> HeaderMapping:
    mapping = HeaderMapping()
    if not isinstance(section, Mapping):
        raise ValueError("headers must map canonical fields to lists of labels")
    for canonical, aliases in section.items():
        if isinstance(aliases, str):
            aliases = [aliases]
        if not isinstance(aliases, list):
            raise ValueError(f"headers.{canonical} must be a label or a list of labels")
        known = mapping.labels.setdefault(str(canonical), [])
        for alias in aliases:
            text = str(alias).strip()
            if text and text not in known:
                known.append(text)
    return mapping


def _parse_export_section(section: Mapping[str, Any]) -> Dict[str, Any]:
    parsed: Dict[str, Any] = dict(section)
    if "directory" in parsed:
        parsed["directory"] = Path(parsed["directory"])
    return parsed


def _resolve_path(path: Path, base_path: Path) -> Path:
    expanded = Path(path).expanduser()
    if expanded.is_absolute():
        return expanded
    return (base_path / expanded).resolve()
