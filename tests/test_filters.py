from keylens.filters import FilterConfig, flatten_segments, segment_by_gap
from keylens.models import EventType, KeystrokeEvent


def press(ts, code=0x00):
    return KeystrokeEvent(timestamp=ts, key_code=code, event_type=EventType.PRESS, application="test")


def test_defaults():
    c = FilterConfig()
    assert (c.max_gap_ms, c.min_hold_ms, c.max_hold_ms) == (5000, 10, 2000)


def test_valid_interval_bounds():
    c = FilterConfig()
    assert c.is_valid_interval(1)
    assert c.is_valid_interval(4999)
    assert not c.is_valid_interval(5000)
    assert not c.is_valid_interval(10000)
    assert not c.is_valid_interval(0)
    assert not c.is_valid_interval(-1)


def test_valid_hold_is_inclusive():
    c = FilterConfig()
    assert c.is_valid_hold_duration(10)
    assert c.is_valid_hold_duration(2000)
    assert not c.is_valid_hold_duration(9)
    assert not c.is_valid_hold_duration(2001)


def test_segment_empty_and_single():
    c = FilterConfig()
    assert c.segment_by_gap([]) == []
    segs = c.segment_by_gap([press(100)])
    assert len(segs) == 1 and len(segs[0]) == 1


def test_segment_continuous():
    segs = FilterConfig().segment_by_gap([press(100), press(200), press(300)])
    assert [len(s) for s in segs] == [3]


def test_segment_break_on_long_gap():
    events = [press(100), press(200), press(10000), press(10100)]
    segs = FilterConfig().segment_by_gap(events)
    assert [len(s) for s in segs] == [2, 2]
    assert segs[1][0].timestamp == 10000
    assert segs[0].duration_ms() == 100


def test_gap_equal_to_threshold_does_not_break():
    segs = segment_by_gap([press(0), press(5000), press(10001)], max_gap_ms=5000)
    assert [len(s) for s in segs] == [2, 1]


def test_segments_partition_input_in_order():
    stamps = [0, 10, 7000, 7001, 7002, 20000, 20100, 40000]
    events = [press(ts, code=i) for i, ts in enumerate(stamps)]
    segs = segment_by_gap(events, max_gap_ms=5000)
    assert sum(len(s) for s in segs) == len(events)
    assert flatten_segments(segs) == events
    for a, b in zip(segs, segs[1:]):
        assert a.end == b.start
        assert b.first_timestamp - a.last_timestamp > 5000


def test_segments_share_one_source():
    segs = segment_by_gap([press(0), press(9000)], max_gap_ms=5000)
    assert segs[0].source is segs[1].source
