import pytest

from factorish.ui.windows import (
    BASE_Z,
    INVENTORY,
    MAIN_MENU,
    RECIPE_SELECT,
    RESEARCH,
    TOOLTIP,
    WindowHandle,
    WindowStack,
)


def _stack():
    stack = WindowStack()
    stack.register(WindowHandle(INVENTORY, size=(300, 200)))
    stack.register(WindowHandle(RECIPE_SELECT, owner=INVENTORY))
    stack.register(WindowHandle(RESEARCH, size=(200, 100)))
    stack.register(WindowHandle(MAIN_MENU))
    stack.register(WindowHandle(TOOLTIP, size=(40, 20)))
    stack.set_exclusive(INVENTORY, RESEARCH)
    return stack


def test_registration_assigns_consecutive_z_orders():
    stack = _stack()
    assert [h.z_order for h in stack.handles()] == [BASE_Z + i for i in range(5)]


def test_duplicate_registration_fails():
    stack = _stack()
    with pytest.raises(KeyError):
        stack.register(WindowHandle(INVENTORY))


def test_bring_to_front_restacks_everything():
    stack = _stack()
    stack.bring_to_front(INVENTORY)
    assert stack.order == (RECIPE_SELECT, RESEARCH, MAIN_MENU, TOOLTIP, INVENTORY)
    assert stack.get(INVENTORY).z_order == stack.top_z()
    assert sorted(h.z_order for h in stack.handles()) == [BASE_Z + i for i in range(5)]


def test_bring_to_front_on_top_window_is_a_no_op():
    stack = _stack()
    before = stack.order
    stack.bring_to_front(TOOLTIP)
    assert stack.order == before


def test_opening_inventory_closes_research_and_its_tooltip():
    stack = _stack()
    stack.show(RESEARCH)
    stack.set_owner(TOOLTIP, RESEARCH)
    stack.show(TOOLTIP)

    stack.show(INVENTORY)

    assert stack.is_visible(INVENTORY)
    assert not stack.is_visible(RESEARCH)
    assert not stack.is_visible(TOOLTIP)


def test_hiding_inventory_cascades_to_owned_windows():
    stack = _stack()
    hidden = []
    stack.on_hidden(lambda handle: hidden.append(handle.name))
    stack.show(INVENTORY)
    stack.show(RECIPE_SELECT)
    stack.set_owner(TOOLTIP, INVENTORY)
    stack.show(TOOLTIP)
    stack.show(MAIN_MENU)

    stack.hide(INVENTORY)

    assert not stack.is_visible(RECIPE_SELECT)
    assert not stack.is_visible(TOOLTIP)
    assert stack.is_visible(MAIN_MENU)
    assert set(hidden) == {INVENTORY, RECIPE_SELECT, TOOLTIP}


def test_hiding_invisible_window_notifies_nobody():
    stack = _stack()
    hidden = []
    stack.on_hidden(lambda handle: hidden.append(handle.name))
    stack.hide(RESEARCH)
    assert hidden == []


def test_drag_moves_by_pointer_delta_and_tears_down_on_release():
    stack = _stack()
    stack.show(RESEARCH)
    stack.move(RESEARCH, (100, 100))

    stack.start_drag(RESEARCH, (110, 105))
    assert stack.capture.active
    assert stack.capture_z == stack.top_z() + 1
    assert stack.order[-1] == RESEARCH

    stack.drag_to((130, 95))
    stack.drag_to((140, 100))
    assert stack.get(RESEARCH).position == (130.0, 95.0)

    stack.end_drag()
    assert not stack.capture.active
    assert stack.capture_z is None
    assert stack.dragging is None
    assert stack.capture.installs == stack.capture.releases == 1


def test_new_drag_ends_previous_one():
    stack = _stack()
    stack.start_drag(RESEARCH, (0, 0))
    stack.start_drag(INVENTORY, (0, 0))
    assert stack.dragging == INVENTORY
    assert stack.capture.installs == 2
    assert stack.capture.releases == 1


def test_hiding_dragged_window_ends_drag():
    stack = _stack()
    stack.show(RESEARCH)
    stack.start_drag(RESEARCH, (0, 0))
    stack.hide(RESEARCH)
    assert not stack.capture.active
    stack.drag_to((50, 50))
    assert stack.get(RESEARCH).position == (0.0, 0.0)


def test_place_center_uses_current_size():
    stack = _stack()
    stack.resize(INVENTORY, (400, 300))
    stack.place_center(INVENTORY, (1280, 800))
    assert stack.get(INVENTORY).position == (440.0, 250.0)


def test_window_at_prefers_topmost_visible():
    stack = _stack()
    stack.show(INVENTORY)
    stack.show(MAIN_MENU)
    stack.move(MAIN_MENU, (50, 50))
    assert stack.window_at((60, 60)).name == MAIN_MENU
    stack.bring_to_front(INVENTORY)
    assert stack.window_at((60, 60)).name == INVENTORY
    assert stack.window_at((900, 900)) is None
