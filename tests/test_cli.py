from pricestudio.cli import main
from pricestudio.io import read_raw_sheet

from conftest import make_price_list


def _write_stores(tmp_path):
    store_a = tmp_path / "StoreA.xlsx"
    store_b = tmp_path / "StoreB.xlsx"
    store_a.write_bytes(make_price_list([["X1", "Widget", 5, 80, 100, 150, None, None, "Tools"]]))
    store_b.write_bytes(
        make_price_list(
            [
                ["X1", "Widget", -2, 85, 90, 100, None, None, "Tools"],
                ["Y2", "Gadget", 0, 10, 20, 30, None, None, "Toys"],
            ]
        )
    )
    return store_a, store_b


def test_cli_exports_recalculated_comparison(tmp_path):
    store_a, store_b = _write_stores(tmp_path)
    output = tmp_path / "reports" / "comparacion.xlsx"

    exit_code = main(
        [
            str(store_a),
            str(store_b),
            "--markup",
            "25",
            "--scope",
            "all",
            "--output",
            str(output),
            "--quiet",
        ]
    )

    assert exit_code == 0
    raw = read_raw_sheet(output.name, output.read_bytes())
    header = list(raw.iloc[0])
    assert header[:3] == ["Código", "Nombre", "Categoría"]
    assert "StoreB Stock" in header
    assert raw.iloc[1, len(header) - 1] == "125.00"
    assert raw.iloc[2, 0] == "Y2"
    assert raw.iloc[2, 3] == "-"


def test_cli_applies_filters_before_export(tmp_path, capsys):
    store_a, store_b = _write_stores(tmp_path)
    output = tmp_path / "only_zero.xlsx"

    exit_code = main([str(store_a), str(store_b), "--stock", "only_zero", "--output", str(output)])

    assert exit_code == 0
    raw = read_raw_sheet(output.name, output.read_bytes())
    assert raw.shape[0] == 2
    assert raw.iloc[1, 0] == "Y2"
    printed = capsys.readouterr().out
    assert "Gadget" in printed


def test_cli_rejects_invalid_markup(tmp_path):
    store_a, store_b = _write_stores(tmp_path)

    assert main([str(store_a), str(store_b), "--markup", "abc", "--quiet"]) == 1


def test_cli_reports_unreadable_file(tmp_path):
    store_a, _ = _write_stores(tmp_path)
    broken = tmp_path / "Roto.xlsx"
    broken.write_bytes(b"not a workbook")

    assert main([str(store_a), str(broken), "--quiet"]) == 1


def test_cli_rejects_empty_export(tmp_path):
    store_a, store_b = _write_stores(tmp_path)

    exit_code = main(
        [str(store_a), str(store_b), "--query", "nada", "--output", str(tmp_path / "x.xlsx"), "--quiet"]
    )

    assert exit_code == 1
    assert not (tmp_path / "x.xlsx").exists()
