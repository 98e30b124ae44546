import pytest
from conftest import CHEST, FURNACE, FakeEngine

from factorish.errors import EngineError, EngineLoadError
from factorish.sim.bridge import EngineBridge, create_engine, load_engine_factory
from factorish.sim.events import PopupText, UpdatePlayerInventory
from factorish.sim.inventory import SlotCategory


@pytest.mark.parametrize("path", [None, ""])
def test_missing_engine_path_is_an_init_error(path):
    with pytest.raises(EngineLoadError):
        load_engine_factory(path)


def test_unimportable_engine_module():
    with pytest.raises(EngineLoadError, match="Cannot import"):
        load_engine_factory("no_such_engine_module:create_engine")


def test_missing_factory_attribute():
    with pytest.raises(EngineLoadError, match="not found"):
        load_engine_factory("conftest:NoSuchFactory")


def test_non_callable_factory():
    with pytest.raises(EngineLoadError, match="not callable"):
        load_engine_factory("conftest:FURNACE")


def test_factory_resolves_by_path():
    assert load_engine_factory("conftest:FakeEngine") is FakeEngine


def test_create_engine_passes_images_and_callbacks():
    received = {}

    def factory(images, on_player_update, on_popup_text):
        received.update(images=images, on_player_update=on_player_update, on_popup_text=on_popup_text)
        return FakeEngine()

    def on_update(data):
        pass

    def on_popup(text, x, y):
        pass

    engine = create_engine(factory, {"dirt": None}, on_update, on_popup)
    assert isinstance(engine, FakeEngine)
    assert received == {"images": {"dirt": None}, "on_player_update": on_update, "on_popup_text": on_popup}


def test_create_engine_wraps_construction_failure():
    def broken(images, **callbacks):
        raise RuntimeError("no map")

    with pytest.raises(EngineLoadError, match="no map"):
        create_engine(broken, {}, lambda data: None, lambda text, x, y: None)


def test_rejected_calls_become_falsy(bridge, engine, monkeypatch):
    def reject(*args):
        raise EngineError("nope")

    monkeypatch.setattr(engine, "select_recipe", reject)
    monkeypatch.setattr(engine, "get_player_inventory", reject)
    assert bridge.select_recipe(FURNACE, 0) is False
    assert len(bridge.player_inventory()) == 0
    assert bridge.select_player_inventory(50) is False


def test_simulate_failure_propagates(bridge, engine, monkeypatch):
    def crash(delta_time):
        raise EngineError("tick failed")

    monkeypatch.setattr(engine, "simulate", crash)
    with pytest.raises(EngineError):
        bridge.simulate(0.05)


def test_structure_queries(bridge, engine):
    assert bridge.open_structure_inventory(FURNACE) is True
    assert bridge.open_structure_inventory(CHEST) is False
    assert bridge.open_structure_inventory((99, 99)) is None

    output = bridge.structure_inventory(FURNACE, SlotCategory.OUTPUT)
    assert [(line.item_name, line.count) for line in output.lines] == [("Iron Plate", 7)]
    assert len(bridge.structure_inventory((99, 99), SlotCategory.INPUT)) == 0

    recipes = bridge.structure_recipes(FURNACE)
    assert [recipe.outputs for recipe in recipes] == [{"Iron Plate": 1}, {"Copper Plate": 1}]
    assert bridge.structure_recipes(CHEST) == []


def test_structure_progress_and_burner_energy(bridge, engine):
    status = bridge.structure_status(FURNACE)
    assert status.progress_ratio == pytest.approx(0.25)
    assert status.energy == (40.0, 100.0)
    assert status.energy_ratio == pytest.approx(0.4)

    chest = bridge.structure_status(CHEST)
    assert chest.progress_ratio is None
    assert chest.energy_ratio is None


def test_rejected_status_queries_are_empty(bridge, engine, monkeypatch):
    def reject(*args):
        raise EngineError("no structure")

    monkeypatch.setattr(engine, "get_structure_progress", reject)
    monkeypatch.setattr(engine, "get_structure_burner_energy", reject)
    assert bridge.structure_progress(FURNACE) is None
    assert bridge.burner_energy(FURNACE) is None


def test_rotate_tool_returns_angle(bridge, engine):
    assert bridge.rotate_tool() == 1
    assert bridge.rotate_tool() == 2

def test_tool_queries(bridge, engine):
    assert bridge.tool_defs() == [("Transport Belt", "Moves items"), ("Inserter", ""), ("Chest", "")]
    assert bridge.selected_tool() is None
    bridge.select_tool(0)
    assert bridge.selected_tool() == 0
    assert bridge.selected_tool_or_item() == ("Transport Belt", 10)
    assert bridge.has_selection()
    assert bridge.tool_inventory() == [10, 0, 0]


def test_input_answers_are_decoded(bridge, engine):
    engine.mouse_events = ["UpdatePlayerInventory", {"PopupText": ["+1", 1, 2]}]
    assert bridge.mouse_down((10.0, 20.0), 0) == [UpdatePlayerInventory(), PopupText("+1", 1.0, 2.0)]
    assert bridge.key_down("r") == []
    assert engine.keys == ["r"]


def test_serialize_round_trip(bridge, engine):
    blob = bridge.serialize()
    engine.player = {}
    assert bridge.deserialize(blob)
    assert engine.player["Iron Ore"] == 20


def test_research_list(bridge, engine):
    research = bridge.research_list()
    assert [entry.tag for entry in research] == ["Transportation", "Automation"]
    assert bridge.select_research(1)
    assert engine.selected_research == 1
