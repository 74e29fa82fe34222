"""Tests for BoundedBuffer and FocusWindow in windows.py"""

import numpy as np
import pytest

from jump_debrief.windows import BoundedBuffer, FocusWindow


def _fill(window, values):
    for v in values:
        _, window = window.push(v)
    return window


class TestBoundedBuffer:
    """Tests for the fixed-capacity FIFO buffer."""

    def test_rejects_size_below_one(self):
        """A buffer must hold at least one element."""
        with pytest.raises(ValueError):
            BoundedBuffer(0)

    def test_push_until_full_evicts_nothing(self):
        """Pushes below capacity return no evicted element."""
        buf = BoundedBuffer(3)
        for v in [1, 2, 3]:
            evicted, buf = buf.push(v)
            assert evicted is None
        assert list(buf) == [1, 2, 3]

    def test_evicts_in_fifo_order(self):
        """Once full, every push evicts the oldest element."""
        buf = BoundedBuffer(3)
        evicted_values = []
        for v in range(10):
            evicted, buf = buf.push(v)
            assert len(buf) <= 3
            if evicted is not None:
                evicted_values.append(evicted)
        assert evicted_values == list(range(7))
        assert list(buf) == [7, 8, 9]

    def test_push_is_persistent(self):
        """Pushing returns a new buffer and leaves the old one untouched."""
        buf = BoundedBuffer(2, (1, 2))
        _, nxt = buf.push(3)
        assert list(buf) == [1, 2]
        assert list(nxt) == [2, 3]

    def test_push_map_transforms_evicted(self):
        """push_map applies the function to the evicted element only."""
        buf = BoundedBuffer(1, (5,))
        evicted, nxt = buf.push_map(7, lambda x: f"out:{x}")
        assert evicted == "out:5"
        assert list(nxt) == [7]

    def test_push_map_without_eviction(self):
        """Nothing evicted means nothing mapped."""
        evicted, _ = BoundedBuffer(2).push_map(1, lambda x: x * 10)
        assert evicted is None

    def test_set_size_grow_keeps_contents(self):
        """Growing keeps every element."""
        buf = BoundedBuffer(3, (1, 2, 3)).set_size(5)
        assert buf.size == 5
        assert list(buf) == [1, 2, 3]
        evicted, _ = buf.push(4)
        assert evicted is None

    def test_set_size_shrink_keeps_newest(self):
        """Shrinking drops the oldest elements."""
        buf = BoundedBuffer(5, (1, 2, 3, 4, 5)).set_size(2)
        assert list(buf) == [4, 5]

    def test_oldest_newest_peek(self):
        """Peeking an empty buffer gives None."""
        assert BoundedBuffer(3).oldest() is None
        assert BoundedBuffer(3).newest() is None
        buf = BoundedBuffer(3, (1, 2, 3))
        assert buf.oldest() == 1
        assert buf.newest() == 3

    def test_oldest_newest_n_are_clipped(self):
        """Asking for more elements than held returns what is there."""
        buf = BoundedBuffer(5, (1, 2, 3))
        assert buf.oldest(2) == (1, 2)
        assert buf.newest(2) == (2, 3)
        assert buf.oldest(10) == (1, 2, 3)
        assert buf.newest(10) == (1, 2, 3)
        assert buf.newest(0) == ()

    def test_to_array(self):
        """Contents as a float array, oldest first."""
        np.testing.assert_array_equal(BoundedBuffer(3, (1, 2)).to_array(), np.array([1.0, 2.0]))


class TestFocusWindow:
    """Tests for the focus window lifecycle and cursor editing."""

    def test_rejects_capacity_below_one(self):
        """Capacity must be at least one."""
        with pytest.raises(ValueError):
            FocusWindow(0)

    def test_filling_push_returns_none(self):
        """While filling, push only grows the window."""
        w = FocusWindow(3)
        for v in [1, 2]:
            evicted, w = w.push(v)
            assert evicted is None
            assert not w.is_filled
        evicted, w = w.push(3)
        assert evicted is None
        assert w.is_filled

    def test_filled_push_evicts_oldest(self):
        """Once filled, length stays at capacity and the oldest leaves."""
        w = _fill(FocusWindow(3), [1, 2, 3])
        evicted, w = w.push(4)
        assert evicted == 1
        assert list(w) == [2, 3, 4]
        assert len(w) == 3

    def test_empty_oldest_newest_fail(self):
        """Peeking an empty window is a caller error."""
        with pytest.raises(ValueError):
            FocusWindow(2).oldest()
        with pytest.raises(ValueError):
            FocusWindow(2).newest()

    def test_focus_requires_filled(self):
        """Cursor operations need a filled window."""
        w = _fill(FocusWindow(3), [1, 2])
        with pytest.raises(ValueError):
            w.focus_at(1)
        with pytest.raises(ValueError):
            w.modify_focus(lambda x: x)

    @pytest.mark.parametrize("i, expected", [(-5, 0), (0, 0), (1, 1), (2, 2), (3, 2), (99, 2)])
    def test_focus_at_clamps(self, i, expected):
        """Out of range positions clamp into [0, capacity-1]."""
        w = _fill(FocusWindow(3), ["a", "b", "c"]).focus_at(i)
        assert w.cursor == expected
        assert w.focus == ["a", "b", "c"][expected]

    def test_modify_focus_changes_only_focused_slot(self):
        """Other elements and the cursor stay put."""
        w = _fill(FocusWindow(4), [1, 2, 3, 4]).focus_at(1)
        w2 = w.modify_focus(lambda x: x * 100)
        assert list(w2) == [1, 200, 3, 4]
        assert w2.cursor == 1
        assert list(w) == [1, 2, 3, 4]

    def test_oldest_newest_when_filled(self):
        """Endpoints are the first and last elements."""
        w = _fill(FocusWindow(3), [1, 2, 3, 4, 5])
        assert w.oldest() == 3
        assert w.newest() == 5
