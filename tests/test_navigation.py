import pytest
from pydantic import ValidationError

from lexnav.citations.navigation import CitationNavigator


@pytest.fixture
def navigator(sources):
    nav = CitationNavigator()
    nav.set_sources(sources)
    return nav


def test_activate_opens_viewer(navigator, sources):
    navigator.activate(sources[1], 2)
    state = navigator.state
    assert state.viewer_open
    assert state.active_index == 1
    assert state.active_number == 2
    assert state.active_source == sources[1]


def test_navigation_is_clamped(navigator, sources):
    navigator.activate(sources[0], 1)
    navigator.previous()
    assert navigator.state.active_index == 0
    assert not navigator.can_go_previous()

    navigator.go_to_index(99)
    assert navigator.state.active_index == 2
    navigator.next()
    assert navigator.state.active_index == 2
    assert not navigator.can_go_next()

    navigator.go_to_index(-5)
    assert navigator.state.active_index == 0


def test_navigation_without_sources_is_a_no_op():
    nav = CitationNavigator()
    nav.next()
    nav.previous()
    nav.go_to_index(3)
    assert nav.state.active_index is None
    assert not nav.can_go_next()


def test_keyboard_shortcuts(navigator, sources):
    assert not navigator.handle_key("j")

    navigator.activate(sources[0], 1)
    assert navigator.handle_key("j")
    assert navigator.state.active_index == 1
    assert navigator.handle_key("ArrowLeft")
    assert navigator.state.active_index == 0
    assert not navigator.handle_key("k", in_text_field=True)

    assert navigator.handle_key("3")
    assert navigator.state.active_index == 2
    assert not navigator.handle_key("9")
    assert not navigator.handle_key("x")

    assert navigator.handle_key("Escape")
    assert not navigator.state.viewer_open
    assert navigator.state.active_index == 2

    navigator.open()
    assert navigator.state.viewer_open


def test_compare_mode_is_exclusive_with_viewer(navigator, sources):
    navigator.activate(sources[0], 1)
    navigator.toggle_compare_mode()
    assert navigator.state.compare_mode
    assert not navigator.state.viewer_open

    navigator.activate(sources[1], 2)
    assert not navigator.state.compare_mode
    assert navigator.state.viewer_open


def test_third_compare_selection_evicts_oldest(navigator):
    navigator.toggle_compare_mode()
    for index in (0, 1, 2):
        navigator.toggle_compare_selection(index)
    assert navigator.state.compare_selection == (1, 2)

    navigator.toggle_compare_selection(1)
    assert navigator.state.compare_selection == (2,)
    navigator.toggle_compare_selection(7)
    assert navigator.state.compare_selection == (2,)

    navigator.clear_compare_selection()
    assert navigator.state.compare_selection == ()

    navigator.toggle_compare_selection(0)
    navigator.toggle_compare_mode()
    assert navigator.state.compare_selection == ()


def test_replacing_sources_resets_state(navigator, sources):
    navigator.activate(sources[2], 3)
    navigator.toggle_compare_selection(1)
    navigator.set_sources(sources[:1])

    state = navigator.state
    assert state.active_index is None
    assert not state.viewer_open
    assert state.compare_selection == ()
    assert state.total == 1


def test_dismiss_discards_state(navigator, sources):
    navigator.activate(sources[1], 2)
    navigator.dismiss()
    assert navigator.state.active_source is None
    assert navigator.state.total == 3


def test_subscribers_receive_frozen_snapshots(navigator, sources):
    seen = []
    unsubscribe = navigator.subscribe(seen.append)
    navigator.activate(sources[0], 1)
    navigator.next()
    unsubscribe()
    navigator.next()

    assert [state.active_index for state in seen] == [0, 1]
    with pytest.raises(ValidationError):
        seen[0].active_index = 2
