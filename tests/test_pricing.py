import pytest

from configurator.dimensions import SIZES
from configurator.pricing import breakdown, price, total


def test_price_from_per_size_table(catalog):
    foam = catalog.layer("foam")
    assert price(foam, "80x190") == 3000
    assert price(foam, "200x200") == 3900


def test_missing_size_price_is_zero(catalog):
    memory = catalog.layer("memory")
    assert price(memory, "90x200") == 4000
    assert price(memory, "80x190") == 0


def test_legacy_price_is_constant_across_sizes(catalog):
    coir = catalog.layer("coir")
    assert {price(coir, size) for size in SIZES} == {2500}


def test_price_of_nothing_is_zero():
    assert price(None, "90x200") == 0


def test_total_over_all_null_selection_is_zero(catalog):
    selection = {"layer-1": None, "layer-2": None, "layer-3": None, "cover": None}
    assert total(selection, "90x200", 30, catalog) == 0


def test_total_counts_only_active_layers_and_cover(catalog):
    selection = {"layer-1": "foam", "layer-2": "latex", "layer-3": "coir", "cover": "tencel"}
    assert total(selection, "80x190", 10, catalog) == 3000 + 2900
    assert total(selection, "80x190", 20, catalog) == 3000 + 5000 + 2900
    assert total(selection, "80x190", 30, catalog) == 3000 + 5000 + 2500 + 2900


def test_total_is_additive_per_slot(catalog):
    selection = {"layer-1": "foam", "layer-2": "foam", "layer-3": "foam", "cover": "cotton"}
    before = total(selection, "90x200", 30, catalog)
    changed = dict(selection, **{"layer-2": "latex"})
    after = total(changed, "90x200", 30, catalog)
    delta = price(catalog.layer("latex"), "90x200") - price(catalog.layer("foam"), "90x200")
    assert after - before == delta


def test_unknown_ids_contribute_zero(catalog):
    selection = {"layer-1": "ghost", "cover": "cotton"}
    assert total(selection, "80x190", 10, catalog) == 1500


@pytest.mark.parametrize("size", ["90x200", "180x200"])
def test_three_identical_layers_and_cover(catalog, size):
    selection = {"layer-1": "foam", "layer-2": "foam", "layer-3": "foam", "cover": "cotton"}
    expected = 3 * price(catalog.layer("foam"), size) + price(catalog.cover("cotton"), size)
    assert total(selection, size, 30, catalog) == expected


def test_breakdown_rows(catalog):
    selection = {"layer-1": "foam", "layer-2": None, "cover": "tencel"}
    rows = breakdown(selection, "80x190", 20, catalog)
    assert [r["slot"] for r in rows] == ["layer-1", "layer-2", "cover"]
    assert [r["title"] for r in rows] == ["Слой 1", "Слой 2", "Чехол"]
    assert rows[1]["item"] is None and rows[1]["price"] == 0
    assert rows[2]["price"] == 2900
