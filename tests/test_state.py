import pytest

from configurator.state import (
    ChangeHeight,
    ChangeSize,
    ChangeSlotItem,
    ConfigState,
    InvalidAction,
    default_state,
    derive_view,
    encode_state,
    reduce,
    restore_state,
)


def _state(height=30, **selection):
    base = {"layer-1": "foam", "layer-2": "foam", "layer-3": "foam", "cover": "cotton"}
    base.update(selection)
    return ConfigState(size="90x200", height=height, selection=base)


def test_default_state(catalog):
    state = default_state(catalog)
    assert state.size == "80x190"
    assert state.height == 30
    assert state.selection == {"layer-1": "foam", "layer-2": "foam", "layer-3": "foam", "cover": "cotton"}


def test_change_height_repairs_selection(catalog):
    state = _state(height=30, **{"layer-2": "coir"})
    lowered = reduce(state, ChangeHeight(20), catalog)
    assert lowered.height == 20
    assert lowered.selection["layer-2"] == "coir"

    lowest = reduce(lowered, ChangeHeight(10), catalog)
    assert lowest.selection["layer-1"] == "foam"

    state = _state(height=30, **{"layer-1": "coir"})
    assert reduce(state, ChangeHeight(10), catalog).selection["layer-1"] == "foam"


def test_inactive_slots_survive_height_round_trip(catalog):
    state = _state(height=30, **{"layer-3": "latex"})
    back = reduce(reduce(state, ChangeHeight(10), catalog), ChangeHeight(30), catalog)
    assert back.selection["layer-3"] == "latex"


def test_change_size_never_repairs(catalog):
    # memory недоступна при 30 см, но смена размера не должна ничего чинить
    state = _state(height=30, **{"layer-1": "memory"})
    resized = reduce(state, ChangeSize("160x200"), catalog)
    assert resized.size == "160x200"
    assert resized.selection == state.selection


def test_change_slot_item(catalog):
    state = reduce(_state(), ChangeSlotItem("layer-2", "latex"), catalog)
    assert state.selection["layer-2"] == "latex"
    state = reduce(state, ChangeSlotItem("cover", "tencel"), catalog)
    assert state.selection["cover"] == "tencel"


@pytest.mark.parametrize(
    "action",
    [
        ChangeHeight(25),
        ChangeSize("1x1"),
        ChangeSlotItem("layer-2", "ghost"),
        ChangeSlotItem("layer-1", "memory"),
        ChangeSlotItem("layer-1", "cotton"),
        ChangeSlotItem("cover", "foam"),
        ChangeSlotItem("layer-9", "foam"),
    ],
)
def test_invalid_actions(catalog, action):
    with pytest.raises(InvalidAction):
        reduce(_state(), action, catalog)


def test_slot_inactive_at_height_is_rejected(catalog):
    with pytest.raises(InvalidAction):
        reduce(_state(height=10), ChangeSlotItem("layer-2", "latex"), catalog)


def test_reduce_does_not_mutate_previous_state(catalog):
    state = _state()
    reduce(state, ChangeSlotItem("layer-1", "latex"), catalog)
    assert state.selection["layer-1"] == "foam"


def test_restore_from_path(catalog, mapping):
    state, restored = restore_state("/configure/90x200-20cm-lx-kk-tc", catalog, mapping)
    assert restored
    assert state.size == "90x200"
    assert state.height == 20
    assert state.selection["layer-1"] == "latex"
    assert state.selection["layer-2"] == "coir"
    assert state.selection["layer-3"] == "foam"
    assert state.selection["cover"] == "tencel"


def test_restore_repairs_unavailable_layers(catalog, mapping):
    state, restored = restore_state("90x200-10cm-kk-ct", catalog, mapping)
    assert restored
    assert state.selection["layer-1"] == "foam"


@pytest.mark.parametrize("path", ["invalidSize-99cm-x-y", "90x200-10cm-ghost-ct", "90x200-10cm-fm-ghost", ""])
def test_restore_falls_back_to_defaults(catalog, mapping, path):
    state, restored = restore_state(path, catalog, mapping)
    assert not restored
    assert state == default_state(catalog)


def test_encode_state(catalog, mapping):
    assert encode_state(default_state(catalog), mapping) == "80x190-30cm-fm-fm-fm-ct"


def test_derive_view_scenario(catalog, mapping, descriptions):
    state = _state()
    view = derive_view(state, catalog, mapping, descriptions)
    assert view.path == "90x200-30cm-fm-fm-fm-ct"
    assert view.total == 3 * 3300 + 1800
    assert [b.title for b in view.dynamic_blocks] == ["Слой 1, 2 и 3: HR пена высокой упругости"]
    assert view.cover_block.title == "Чехол из хлопка"
    assert view.complete
    assert [o.id for o in view.options["layer-1"]] == ["foam", "latex", "coir", "foamsoft"]
    assert [o.id for o in view.options["cover"]] == ["cotton", "tencel"]

    payload = view.to_dict()
    assert payload["kind"] == "single"
    assert payload["selection"] == state.selection
    assert payload["breakdown"][0]["price"] == 3300
    assert payload["coverBlock"]["kind"] == "cover"


def test_derive_view_reports_unresolved_slots(catalog, mapping, descriptions):
    state = _state(height=20, **{"layer-2": None})
    view = derive_view(state, catalog, mapping, descriptions)
    assert not view.complete
    assert view.unresolved == ["layer-2"]
    assert view.total == 3300 + 1800
    assert view.path == "90x200-20cm-fm--ct"
