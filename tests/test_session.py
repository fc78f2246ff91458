import pandas as pd
import pytest

from pricestudio import (
    DecodeFailure,
    EmptyExport,
    InvalidPercentage,
    PriceSession,
    StaleGeneration,
)
from pricestudio.io import read_raw_sheet

from conftest import make_price_list


def test_upload_replaces_catalog_wholesale(scenario_session):
    summary = scenario_session.upload(
        [("Sur.xlsx", make_price_list([["S1", "Sierra", 1, 1, 10, 20, None, None, "Herramientas"]]))]
    )

    assert scenario_session.catalog["code"].tolist() == ["S1"]
    assert summary.sources == ("Sur",)
    assert scenario_session.generation == 2


def test_failed_upload_keeps_previous_catalog(scenario_session, store_a):
    snapshot = scenario_session.catalog.copy()
    previous_summary = scenario_session.summary

    with pytest.raises(DecodeFailure) as excinfo:
        scenario_session.upload([store_a, ("Roto.xlsx", b"not a workbook")])

    assert "Roto.xlsx" in str(excinfo.value)
    pd.testing.assert_frame_equal(scenario_session.catalog, snapshot)
    assert scenario_session.summary is previous_summary
    assert scenario_session.generation == 1


def test_upload_requires_files(caplog):
    with caplog.at_level("WARNING", logger="pricestudio.session"):
        with pytest.raises(ValueError):
            PriceSession().upload([])

    assert "without any price list" in caplog.text


def test_upload_clears_selection_and_stale_category(scenario_session, store_a):
    scenario_session.toggle("X1")
    scenario_session.set_filters(category="Tools")

    scenario_session.upload(
        [("Sur.xlsx", make_price_list([["S1", "Sierra", 1, 1, 10, 20, None, None, "Corte"]]))]
    )

    assert scenario_session.selected_codes == set()
    assert scenario_session.category == "all"


def test_selection_helpers(scenario_session):
    scenario_session.toggle("X1")
    assert scenario_session.selected_codes == {"X1"}
    scenario_session.toggle("X1")
    assert scenario_session.selected_codes == set()
    scenario_session.select_all(["X1", "Y2"])
    assert scenario_session.selected_codes == {"X1", "Y2"}
    scenario_session.clear_selection()
    assert scenario_session.selected_codes == set()


def test_selection_survives_filtering_rows_out(scenario_session):
    scenario_session.select_all(["X1", "Y2"])

    scenario_session.update_selection(visible_codes=["Y2"], checked_codes=[])
    assert scenario_session.selected_codes == {"X1"}

    scenario_session.update_selection(visible_codes=["Y2"], checked_codes=["Y2"])
    assert scenario_session.selected_codes == {"X1", "Y2"}


def test_view_follows_filters(scenario_session):
    scenario_session.set_filters(stock_filter="only_negative")
    entries = scenario_session.view()
    assert list(entries[0].by_source) == ["StoreB"]

    scenario_session.set_filters(query="zzz")
    assert scenario_session.view() == []

    with pytest.raises(ValueError):
        scenario_session.set_filters(stock_filter="plenty")


def test_recalculate_selected_codes(scenario_session):
    scenario_session.toggle("X1")

    changed = scenario_session.recalculate("25", "selected")

    assert changed == 2
    assert scenario_session.view()[0].suggested_price == pytest.approx(125.0)


def test_recalculate_category_uses_active_filter(scenario_session):
    assert scenario_session.recalculate(10, "category") == 0

    scenario_session.set_filters(category="Tools")
    assert scenario_session.recalculate(10, "category") == 2
    assert scenario_session.catalog["suggested_price"].tolist() == pytest.approx([110.0, 99.0])


def test_recalculate_rejects_invalid_percentage(scenario_session):
    snapshot = scenario_session.catalog.copy()

    with pytest.raises(InvalidPercentage):
        scenario_session.recalculate("abc", "all")

    pd.testing.assert_frame_equal(scenario_session.catalog, snapshot)


def test_recalculate_rejects_stale_generation(scenario_session, store_a):
    generation = scenario_session.generation
    scenario_session.upload([store_a])
    snapshot = scenario_session.catalog.copy()

    with pytest.raises(StaleGeneration):
        scenario_session.recalculate(25, "all", generation=generation)

    pd.testing.assert_frame_equal(scenario_session.catalog, snapshot)
    assert scenario_session.recalculate(25, "all", generation=scenario_session.generation) == 1


def test_export_writes_current_view(tmp_path, scenario_session):
    scenario_session.recalculate(25, "all")
    target = tmp_path / "out" / "comparacion.xlsx"

    payload = scenario_session.export(target)

    assert target.exists()
    raw = read_raw_sheet("comparacion.xlsx", payload)
    assert raw.iloc[1, 0] == "X1"
    assert raw.iloc[1, raw.shape[1] - 1] == "125.00"


def test_export_of_empty_view_is_rejected(scenario_session):
    scenario_session.set_filters(query="nada")

    with pytest.raises(EmptyExport):
        scenario_session.export()


def test_fresh_session_is_not_loaded():
    session = PriceSession()

    assert not session.is_loaded
    assert session.view() == []
