import json
import os

os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
os.environ.setdefault("SDL_AUDIODRIVER", "dummy")

import pygame
import pytest

from factorish.engine.deferred import DeferredQueue
from factorish.engine.logger import GameLogger, LoggerConfig
from factorish.errors import EngineError
from factorish.sim.bridge import EngineBridge
from factorish.ui.selection import SelectionState
from factorish.ui.transfer import TransferController

FURNACE = (3, 4)
CHEST = (6, 1)
CATEGORIES = ("Input", "Output", "Burner", "Storage")


class FakeEngine:
    """Tiny in-memory engine that honours the shell's call contract."""

    def __init__(self) -> None:
        self.player = {"Iron Ore": 20, "Coal Ore": 5, "Transport Belt": 10}
        self.structures = {
            FURNACE: {"Input": {}, "Output": {"Iron Plate": 7}, "Burner": {"Coal Ore": 2}, "Storage": {}},
            CHEST: {"Input": {}, "Output": {}, "Burner": {}, "Storage": {"Gear": 3}},
        }
        self.recipes = {FURNACE: True, CHEST: False}
        self.tools = [["Transport Belt", "Moves items"], ["Inserter", ""], ["Chest", ""]]
        self.belt = ["Transport Belt", None, "Chest"]
        self.selected = None
        self.open_pos = None
        self.calls = []
        self.transfers = []
        self.pending_events = []
        self.mouse_events = []
        self.keys = []
        self.time = 0.0
        self.pipette_item = None
        self.reject_transfers = False
        self.research = [
            {"tag": "Transportation", "unlocked": True, "steps": 10, "research_time": 5.0, "unlocks": ["Splitter"]},
            {"tag": "Automation", "unlocked": False, "steps": 20, "research_time": 10.0, "unlocks": ["Assembler"]},
        ]
        self.selected_research = None
        self.progress = {FURNACE: 0.25}
        self.burner_energy = {FURNACE: [40.0, 100.0]}
        self.rotation = 0

    # -- tools -------------------------------------------------------------
    def tool_defs(self):
        return self.tools

    def select_tool(self, index):
        self.calls.append(("select_tool", index))
        if self.selected and self.selected[0] == "player":
            name = self.selected[1]
            if any(tool[0] == name for tool in self.tools):
                self.belt[index] = name
                self.selected = None
                return True
            return False
        if self.selected == ("tool", index):
            self.selected = None
            return False
        self.selected = ("tool", index)
        if self.belt[index] is None:
            return ["ShowInventory"]
        return True

    def get_selected_tool(self):
        return self.selected[1] if self.selected and self.selected[0] == "tool" else None

    def get_selected_tool_or_item(self):
        if not self.selected:
            return None
        if self.selected[0] == "tool":
            name = self.belt[self.selected[1]]
            return [name, self.player.get(name, 0)] if name else None
        return [self.selected[-1], 1]

    def get_selected_item_type(self):
        return {"kind": self.selected[0]} if self.selected else None

    def deselect_inventory(self):
        self.calls.append(("deselect_inventory",))
        self.selected = None

    # -- inventories -------------------------------------------------------
    def _selected_name(self, kind):
        return self.selected[-1] if self.selected and self.selected[0] == kind else None

    def get_player_inventory(self):
        return [[[name, count] for name, count in self.player.items()], self._selected_name("player")]

    def select_player_inventory(self, index, half):
        self.calls.append(("select_player_inventory", index, half))
        names = list(self.player)
        if index >= len(names):
            raise EngineError("index out of range")
        self.selected = ("player", names[index])
        return True

    def open_structure_inventory(self, x, y):
        if (x, y) not in self.structures:
            return None
        self.open_pos = (x, y)
        return self.recipes[(x, y)]

    def get_structure_inventory(self, x, y, category):
        structure = self.structures.get((x, y))
        if structure is None:
            return []
        selected = None
        if self.selected and self.selected[0] == "structure" and self.selected[1] == category:
            selected = self.selected[2]
        return [[[name, count] for name, count in structure[category].items()], selected]

    def select_structure_inventory(self, index, category, half):
        self.calls.append(("select_structure_inventory", index, category, half))
        names = list(self.structures[self.open_pos][category])
        if index >= len(names):
            return False
        self.selected = ("structure", category, names[index])
        return True

    def _move(self, source, destination, name, count):
        source[name] -= count
        if source[name] <= 0:
            del source[name]
        destination[name] = destination.get(name, 0) + count

    def move_selected_inventory_item(self, to_player, category, all):
        self.transfers.append((to_player, category, all))
        if self.reject_transfers or self.open_pos is None:
            return False
        structure = self.structures[self.open_pos][category]
        if to_player:
            if not self.selected or self.selected[0] != "structure":
                return False
            name = self.selected[2]
            source, destination = structure, self.player
            available = structure.get(name, 0)
        else:
            if not self.selected or self.selected[0] != "player":
                return False
            name = self.selected[1]
            source, destination = self.player, structure
            available = self.player.get(name, 0)
        count = available if all else min(available, 10)
        if count <= 0:
            return False
        self._move(source, destination, name, count)
        self.selected = None
        return True

    def move_all_inventory_items(self, to_player, category):
        self.transfers.append(("all", to_player, category))
        if self.open_pos is None:
            return False
        structure = self.structures[self.open_pos][category]
        source, destination = (structure, self.player) if to_player else (self.player, structure)
        if not source:
            return False
        for name, count in list(source.items()):
            self._move(source, destination, name, count)
        return True

    # -- recipes and research ---------------------------------------------
    def get_structure_progress(self, x, y):
        return self.progress.get((x, y))

    def get_structure_burner_energy(self, x, y):
        return self.burner_energy.get((x, y))

    def get_structure_recipes(self, x, y):
        if not self.recipes.get((x, y)):
            return []
        return [
            {"input": {"Iron Ore": 1}, "output": {"Iron Plate": 1}, "recipe_time": 20.0, "power_cost": 0.0},
            {"input": {"Copper Ore": 1}, "output": {"Copper Plate": 1}, "recipe_time": 20.0, "power_cost": 0.0},
        ]

    def select_recipe(self, x, y, index):
        self.calls.append(("select_recipe", x, y, index))
        return True

    def get_research_list(self):
        return self.research

    def select_research(self, index):
        self.selected_research = index
        return True

    # -- simulation and drawing --------------------------------------------
    def simulate(self, delta_time):
        self.time += delta_time
        events, self.pending_events = self.pending_events, []
        return events

    def render(self, surface):
        self.calls.append(("render",))

    def render_minimap(self, surface):
        self.calls.append(("render_minimap",))

    def render_tool(self, index, surface):
        pass

    def tool_inventory(self):
        return [self.player.get(name, 0) if name else 0 for name in self.belt]

    def render_perf(self, surface):
        return ["simulate: 1.00 ms"]

    def get_viewport_scale(self):
        return 1.0

    def delta_viewport_pos(self, x, y, scale_relative):
        self.calls.append(("delta_viewport_pos", x, y, scale_relative))

    def mouse_down(self, pos, button):
        self.calls.append(("mouse_down", tuple(pos), button))
        return self.mouse_events

    def mouse_up(self, pos, button):
        self.calls.append(("mouse_up", tuple(pos), button))
        return []

    def mouse_move(self, pos):
        self.calls.append(("mouse_move", tuple(pos)))

    def mouse_leave(self):
        self.calls.append(("mouse_leave",))

    def mouse_wheel(self, delta, x, y):
        self.calls.append(("mouse_wheel", delta, x, y))

    def on_key_down(self, key):
        self.keys.append(key)
        if key == "q" and self.selected is None and self.pipette_item:
            self.selected = ("player", self.pipette_item)
        return True

    def rotate_tool(self):
        self.calls.append(("rotate_tool",))
        self.rotation = (self.rotation + 1) % 4
        return self.rotation

    # -- persistence -------------------------------------------------------
    def serialize_game(self):
        return json.dumps({"player": self.player})

    def deserialize_game(self, data):
        self.player = json.loads(data)["player"]
        return True

    def called(self, name):
        return [call for call in self.calls if call[0] == name]


def quiet_logger():
    return GameLogger(LoggerConfig(level=0, channels={}))


@pytest.fixture(scope="session", autouse=True)
def _pygame():
    pygame.init()
    yield
    pygame.quit()


@pytest.fixture
def engine():
    return FakeEngine()


@pytest.fixture
def bridge(engine):
    return EngineBridge(engine, quiet_logger())


@pytest.fixture
def deferred():
    return DeferredQueue()


@pytest.fixture
def selection(bridge, deferred):
    return SelectionState(bridge, deferred, quiet_logger())


@pytest.fixture
def transfer(bridge, selection):
    return TransferController(bridge, selection, quiet_logger())
