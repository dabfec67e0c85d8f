"""Tests for group, order and completion state."""

from todo_collector.state import CollectorState
from todo_collector.types import BACKLOG, TODAY, TOMORROW


class TestGroups:
    def test_default_group(self, state):
        assert state.group_of("anything [[notes]]") == BACKLOG

    def test_assign_reports_change(self, state):
        assert state.assign_group("a [[n]]", TODAY) is True
        assert state.assign_group("a [[n]]", TODAY) is False
        assert state.dirty

    def test_move_to_group(self, state):
        state.move_to_group("a [[n]]", TODAY)
        state.move_to_group("a [[n]]", TOMORROW)
        assert state.group_of("a [[n]]") == TOMORROW
        assert state.order[TODAY] == []
        assert state.order[TOMORROW] == ["a [[n]]"]

    def test_move_twice_keeps_single_entry(self, state):
        state.move_to_group("a [[n]]", TODAY)
        state.move_to_group("a [[n]]", TODAY)
        assert state.order[TODAY] == ["a [[n]]"]


class TestReorder:
    """Tests for drag-and-drop reordering."""

    def test_insert_before(self, state):
        state.groups.update({"k1": TODAY, "k2": TODAY, "k3": TODAY})
        state.order[TODAY] = ["k2", "k3"]
        state.reorder("k1", "k2", insert_before=True)
        assert state.order[TODAY] == ["k1", "k2", "k3"]
        assert state.group_of("k1") == TODAY

    def test_insert_after(self, state):
        state.groups.update({"k1": TODAY, "k2": TODAY})
        state.order[TODAY] = ["k1", "k2"]
        state.reorder("k1", "k2", insert_before=False)
        assert state.order[TODAY] == ["k2", "k1"]

    def test_adopts_target_group(self, state):
        state.move_to_group("k1", TOMORROW)
        state.move_to_group("k2", TODAY)
        state.reorder("k1", "k2", insert_before=True)
        assert state.group_of("k1") == TODAY
        assert state.order[TOMORROW] == []
        assert state.order[TODAY] == ["k1", "k2"]

    def test_unordered_target_appends(self, state):
        state.groups["k2"] = TODAY
        state.order[TODAY] = ["k3"]
        state.reorder("k1", "k2", insert_before=True)
        assert state.order[TODAY] == ["k3", "k1"]

    def test_rank(self, state):
        state.order[TODAY] = ["k1", "k2"]
        assert state.rank(TODAY, "k2") == 1
        assert state.rank(TODAY, "missing") == float("inf")


class TestCompletion:
    def test_stamp_does_not_overwrite(self, state, now, clock):
        state.stamp_completed("fix bug", now)
        clock.advance(days=1)
        state.stamp_completed("fix bug", clock())
        assert state.completed_at("fix bug") == now

    def test_clear(self, state, now):
        state.stamp_completed("fix bug", now)
        state.dirty = False
        state.clear_completed("fix bug")
        assert "fix bug" not in state.completed
        assert state.dirty

    def test_clear_missing_is_clean(self, state):
        state.clear_completed("nothing")
        assert not state.dirty

    def test_snapshot_change_marks_dirty(self, state):
        state.set_snapshot([])
        assert state.checked_snapshot == []
        assert state.dirty


class TestRecord:
    def test_persisted_shape(self, state, now):
        state.move_to_group("a [[n]]", TODAY)
        state.stamp_completed("b", now)
        state.set_snapshot(["B [[N]]"])
        record = state.to_record()
        assert record["item_groups"] == {"a [[n]]": TODAY}
        assert record["item_order"][TODAY] == ["a [[n]]"]
        assert record["completed_timestamps"] == {"b": "2026-03-10T12:00:00"}
        assert record["snapshot"] == {"checked": ["B [[N]]"]}

        restored = CollectorState.from_record(record)
        assert restored.groups == state.groups
        assert restored.checked_snapshot == ["B [[N]]"]
        assert not restored.dirty

    def test_unrecorded_snapshot_stays_none(self):
        restored = CollectorState.from_record(CollectorState().to_record())
        assert restored.checked_snapshot is None

    def test_unknown_group_dropped(self):
        restored = CollectorState.from_record({"item_groups": {"a": "someday", "b": "today"}})
        assert restored.groups == {"b": "today"}
