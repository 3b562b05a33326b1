"""Path buffer: append rule, drain, restart."""

from conftest import pt
from motolog.core.path import PathBuffer


def test_append_before_start_is_ignored():
    buf = PathBuffer()
    assert buf.append(pt(0, 0, 0)) is False
    assert len(buf) == 0


def test_keeps_arrival_order():
    buf = PathBuffer()
    buf.start()
    for i in range(5):
        assert buf.append(pt(0, i * 0.001, i * 1000))
    out = buf.drain()
    assert [p.timestamp for p in out] == [0, 1000, 2000, 3000, 4000]


def test_equal_timestamps_accepted():
    buf = PathBuffer()
    buf.start()
    assert buf.append(pt(0, 0, 1000))
    assert buf.append(pt(0, 0.001, 1000))
    assert len(buf) == 2


def test_older_sample_dropped_not_reordered():
    buf = PathBuffer()
    buf.start()
    buf.append(pt(0, 0, 2000))
    assert buf.append(pt(0, 0.001, 1000)) is False
    buf.append(pt(0, 0.002, 3000))
    assert [p.timestamp for p in buf.drain()] == [2000, 3000]
    assert buf.rejected == 1


def test_drain_empties_and_stops_accepting():
    buf = PathBuffer()
    buf.start()
    buf.append(pt(0, 0, 0))
    assert len(buf.drain()) == 1
    assert len(buf) == 0
    assert buf.accepting is False
    assert buf.append(pt(0, 0, 10)) is False


def test_start_clears_previous_contents():
    buf = PathBuffer()
    buf.start()
    buf.append(pt(0, 0, 0))
    buf.start()
    assert len(buf) == 0
    assert buf.accepting is True
