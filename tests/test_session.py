import unittest

import pytest

from conftest import COLLAPSED_STACKS
from stackscope import session as session_module
from stackscope.conf import ScopeConfig
from stackscope.errors import ProfileInvariantError
from stackscope.session import ProfileSession, SortOrder, derive_views
from stackscope.importers import import_collapsed_stacks


@pytest.fixture
def loaded_session(collapsed_text):
    session = ProfileSession()
    assert session.load(collapsed_text, "stacks.txt") is not None
    return session


class TestSortOrder:
    @pytest.mark.parametrize(
        "name, expected",
        [
            ("chronological", SortOrder.CHRONOLOGICAL),
            ("LEFT_HEAVY", SortOrder.LEFT_HEAVY),
            ("left-heavy", SortOrder.LEFT_HEAVY),
            (SortOrder.LEFT_HEAVY, SortOrder.LEFT_HEAVY),
        ],
    )
    def test_parse(self, name, expected):
        assert SortOrder.parse(name) is expected

    def test_parse_unknown(self):
        with pytest.raises(ValueError):
            SortOrder.parse("alphabetical")


class TestProfileSession:
    def test_initial_state(self):
        session = ProfileSession()
        assert session.sort_order is SortOrder.CHRONOLOGICAL
        assert session.profile is None
        assert session.active_view is None

    def test_load_names_profile(self, loaded_session):
        assert loaded_session.profile.name == "stacks.txt"
        assert loaded_session.active_view is loaded_session.bundle.chronological

    def test_switching_does_not_recompute(self, loaded_session):
        chronological = loaded_session.active_view
        assert loaded_session.set_sort_order(SortOrder.LEFT_HEAVY) is True
        left_heavy = loaded_session.active_view
        assert left_heavy is loaded_session.bundle.left_heavy
        assert loaded_session.set_sort_order(SortOrder.CHRONOLOGICAL) is True
        assert loaded_session.active_view is chronological
        loaded_session.set_sort_order("left_heavy")
        assert loaded_session.active_view is left_heavy

    def test_selecting_active_order_is_noop(self, loaded_session):
        view = loaded_session.active_view
        assert loaded_session.set_sort_order(SortOrder.CHRONOLOGICAL) is False
        assert loaded_session.set_sort_order(SortOrder.CHRONOLOGICAL) is False
        assert loaded_session.active_view is view

    def test_key_bindings(self, loaded_session):
        assert loaded_session.handle_key("2") is True
        assert loaded_session.sort_order is SortOrder.LEFT_HEAVY
        assert loaded_session.handle_key("2") is True
        assert loaded_session.sort_order is SortOrder.LEFT_HEAVY
        assert loaded_session.handle_key("1") is True
        assert loaded_session.sort_order is SortOrder.CHRONOLOGICAL
        assert loaded_session.handle_key("x") is False
        assert loaded_session.sort_order is SortOrder.CHRONOLOGICAL

    def test_sort_order_survives_new_import(self, loaded_session):
        loaded_session.set_sort_order(SortOrder.LEFT_HEAVY)
        old_bundle = loaded_session.bundle
        assert loaded_session.load("x 1\ny 2\n", "other.txt") is not None
        assert loaded_session.sort_order is SortOrder.LEFT_HEAVY
        assert loaded_session.bundle is not old_bundle
        assert loaded_session.active_view is loaded_session.bundle.left_heavy
        assert loaded_session.profile.name == "other.txt"

    def test_reset_sort_order(self, loaded_session):
        loaded_session.set_sort_order(SortOrder.LEFT_HEAVY)
        loaded_session.reset_sort_order()
        assert loaded_session.sort_order is SortOrder.CHRONOLOGICAL

    def test_failed_import_keeps_previous_profile(self, loaded_session):
        bundle = loaded_session.bundle
        assert loaded_session.load("{not json", "broken.cpuprofile") is None
        assert loaded_session.bundle is bundle
        assert loaded_session.profile.name == "stacks.txt"

    def test_unrecognized_import_keeps_previous_profile(self, loaded_session):
        bundle = loaded_session.bundle
        assert loaded_session.load("hello\nworld\n", "notes") is None
        assert loaded_session.bundle is bundle

    def test_oversized_weight_keeps_previous_profile(self, loaded_session):
        bundle = loaded_session.bundle
        assert loaded_session.load("a " + "9" * 400 + "\nb 2\n", "huge.txt") is None
        assert loaded_session.bundle is bundle

    def test_invariant_violation_aborts_import(self, loaded_session, monkeypatch):
        bundle = loaded_session.bundle

        def broken(profile, config=None):
            raise ProfileInvariantError("inconsistent")

        monkeypatch.setattr(session_module, "derive_views", broken)
        assert loaded_session.load("x 1\ny 2\n", "other.txt") is None
        assert loaded_session.bundle is bundle

    def test_load_file(self, tmp_path):
        path = tmp_path / "perf.txt"
        path.write_text(COLLAPSED_STACKS)
        session = ProfileSession()
        assert session.load_file(path).name == "perf.txt"

    def test_clear(self, loaded_session):
        loaded_session.clear()
        assert loaded_session.active_view is None


class TestSessionConfig(unittest.TestCase):
    def test_initial_sort_order(self):
        """The configured initial order is used on creation and on reset."""
        session = ProfileSession(ScopeConfig(initial_sort_order="left_heavy"))
        self.assertIs(session.sort_order, SortOrder.LEFT_HEAVY)
        session.set_sort_order("chronological")
        session.reset_sort_order()
        self.assertIs(session.sort_order, SortOrder.LEFT_HEAVY)

    def test_custom_key_bindings(self):
        """Key bindings can be remapped."""
        session = ProfileSession(ScopeConfig(key_bindings={"t": "chronological", "l": "left-heavy"}))
        self.assertTrue(session.handle_key("l"))
        self.assertIs(session.sort_order, SortOrder.LEFT_HEAVY)
        self.assertFalse(session.handle_key("2"))

    def test_invalid_key_binding(self):
        """Bindings to unknown orders are rejected up front."""
        with self.assertRaises(ValueError):
            ProfileSession(ScopeConfig(key_bindings={"1": "sideways"}))


class TestDeriveViews(unittest.TestCase):
    def test_bundle(self):
        """Both views are derived and selectable from the bundle."""
        profile = import_collapsed_stacks(COLLAPSED_STACKS)
        bundle = derive_views(profile)
        self.assertIs(bundle.profile, profile)
        self.assertIs(bundle.view(SortOrder.CHRONOLOGICAL), bundle.chronological)
        self.assertIs(bundle.view(SortOrder.LEFT_HEAVY), bundle.left_heavy)
        self.assertEqual(bundle.chronological.total_weight, 10)

    def test_bundle_is_frozen(self):
        bundle = derive_views(import_collapsed_stacks(COLLAPSED_STACKS))
        with self.assertRaises(AttributeError):
            bundle.profile = None
