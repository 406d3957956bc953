"""
Unit tests for database event folding and subscriptions.
"""

from types import SimpleNamespace
from unittest.mock import Mock

import pytest
from firebase_admin import exceptions as firebase_exceptions

from quickstart.errors import SdkError
from quickstart.listeners import (
    ChildEventTracker,
    Subscription,
    ValueTracker,
    apply_event,
    set_in,
)


def event(event_type, path, data):
    return SimpleNamespace(event_type=event_type, path=path, data=data)


class TestApplyEvent:
    """Test folding put/patch events into a node value."""

    def test_put_at_root_replaces_value(self):
        assert apply_event({"a": 1}, "put", "/", {"b": 2}) == {"b": 2}

    def test_put_at_child_path(self):
        assert apply_event({"a": 1}, "put", "/b/c", 3) == {"a": 1, "b": {"c": 3}}

    def test_put_none_removes_child_and_prunes_empty_parents(self):
        assert apply_event({"a": {"b": 1}, "c": 2}, "put", "/a/b", None) == {"c": 2}

    def test_patch_merges_each_key(self):
        node = {"stars": {"x": True}, "starCount": 1}
        result = apply_event(node, "patch", "/", {"starCount": 2, "stars/y": True})
        assert result == {"stars": {"x": True, "y": True}, "starCount": 2}

    def test_original_value_is_not_mutated(self):
        node = {"a": {"b": 1}}
        set_in(node, ["a", "c"], 2)
        assert node == {"a": {"b": 1}}

    def test_array_values_are_keyed_by_index(self):
        assert apply_event(["x", None, "z"], "put", "/3", "w") == {"0": "x", "2": "z", "3": "w"}


class TestChildEventTracker:
    """Test child added/changed/removed detection."""

    def test_initial_put_reports_every_child_as_added(self):
        added = []
        tracker = ChildEventTracker(on_child_added=lambda key, value: added.append(key))

        tracker(event("put", "/", {"p1": {"title": "a"}, "p2": {"title": "b"}}))

        assert sorted(added) == ["p1", "p2"]

    def test_change_and_removal(self):
        changed, removed = [], []
        tracker = ChildEventTracker(
            on_child_changed=lambda key, value: changed.append((key, value)),
            on_child_removed=lambda key, value: removed.append(key),
        )
        tracker(event("put", "/", {"p1": {"n": 1}, "p2": {"n": 1}}))

        tracker(event("put", "/p1/n", 2))
        tracker(event("put", "/p2", None))

        assert changed == [("p1", {"n": 2})]
        assert removed == ["p2"]

    def test_unchanged_child_is_not_reported(self):
        on_changed = Mock()
        tracker = ChildEventTracker(on_child_changed=on_changed)
        tracker(event("put", "/", {"p1": {"n": 1}}))

        tracker(event("put", "/p1/n", 1))

        on_changed.assert_not_called()


class TestValueTracker:
    def test_reports_full_value_after_each_event(self):
        values = []
        tracker = ValueTracker(values.append)

        tracker(event("put", "/", {"a": True}))
        tracker(event("put", "/b", True))

        assert values == [{"a": True}, {"a": True, "b": True}]


class TestSubscription:
    """Test subscription lifecycle and error delivery."""

    def test_start_and_close(self):
        registration = Mock()
        ref = Mock(path="/posts")
        ref.listen.return_value = registration

        subscription = Subscription(ref, Mock()).start()
        assert subscription.active

        subscription.close()
        registration.close.assert_called_once()
        assert not subscription.active

    def test_attach_failure_raises_sdk_error(self):
        ref = Mock(path="/posts")
        ref.listen.side_effect = firebase_exceptions.UnavailableError("stream refused")

        with pytest.raises(SdkError) as exc_info:
            Subscription(ref, Mock()).start()

        assert exc_info.value.code == "UNAVAILABLE"

    def test_handler_errors_go_to_on_error(self):
        errors = []
        ref = Mock(path="/posts")
        handler = Mock(side_effect=firebase_exceptions.PermissionDeniedError("denied"))
        subscription = Subscription(ref, handler, on_error=errors.append)

        subscription._dispatch(event("put", "/", {}))

        assert len(errors) == 1
        assert isinstance(errors[0], SdkError)
        assert errors[0].code == "PERMISSION_DENIED"
