from keylens.frequency import ADJACENCY_WINDOW_MS, FrequencyAnalysis
from keylens.models import EventType, KeystrokeEvent


def press(ts, code):
    return KeystrokeEvent(timestamp=ts, key_code=code, event_type=EventType.PRESS, application="test")


def release(ts, code):
    return KeystrokeEvent(timestamp=ts, key_code=code, event_type=EventType.RELEASE, application="test")


def test_empty_events():
    fa = FrequencyAnalysis.from_events([])
    assert fa.total_presses == 0
    assert fa.top_keys(10) == [] and fa.top_bigrams(10) == [] and fa.top_trigrams(10) == []


def test_key_counts_and_percentages():
    fa = FrequencyAnalysis.from_events([press(100, 0x00), press(200, 0x00), press(300, 0x01)])
    top = fa.top_keys(10)
    assert (top[0].key_code, top[0].count, top[0].key_name) == (0x00, 2, "A")
    assert abs(top[0].percentage - 66.6667) < 0.01
    assert (top[1].key_code, top[1].count) == (0x01, 1)
    assert abs(top[1].percentage - 33.3333) < 0.01


def test_only_presses_counted():
    events = [press(100, 0x00), release(150, 0x00), press(200, 0x01), release(250, 0x01)]
    assert FrequencyAnalysis.from_events(events).total_presses == 2


def test_ties_broken_by_key_code():
    events = [press(100, 0x05), press(200, 0x02), press(300, 0x09), press(400, 0x02)]
    codes = [k.key_code for k in FrequencyAnalysis.from_events(events).key_frequencies]
    assert codes == [0x02, 0x05, 0x09]


def test_bigram_detection():
    events = [press(100, 0x00), press(200, 0x01), press(300, 0x00), press(400, 0x01)]
    fa = FrequencyAnalysis.from_events(events)
    ab = [b for b in fa.top_bigrams(10) if (b.first_key, b.second_key) == (0x00, 0x01)]
    assert ab and ab[0].count == 2
    assert ab[0].display == "A -> S"
    assert abs(sum(b.percentage for b in fa.bigram_frequencies) - 100.0) < 1e-9


def test_bigram_filters_large_gaps():
    fa = FrequencyAnalysis.from_events([press(100, 0x00), press(10000, 0x01)])
    assert fa.bigram_frequencies == ()


def test_bigram_gap_at_window_excluded():
    fa = FrequencyAnalysis.from_events([press(0, 0x00), press(ADJACENCY_WINDOW_MS, 0x01)])
    assert fa.bigram_frequencies == ()


def test_bigram_percentage_uses_bigram_total():
    # 4 presses, 3 bigrams: A->S twice, S->A once
    events = [press(100, 0x00), press(200, 0x01), press(300, 0x00), press(400, 0x01)]
    top = FrequencyAnalysis.from_events(events).top_bigrams(1)[0]
    assert abs(top.percentage - 200.0 / 3) < 0.01


def test_trigram_detection():
    fa = FrequencyAnalysis.from_events([press(100, 0x00), press(200, 0x01), press(300, 0x02)])
    tri = fa.top_trigrams(10)
    assert len(tri) == 1
    assert tri[0].keys == (0x00, 0x01, 0x02)
    assert tri[0].display == "A -> S -> D"
    assert tri[0].percentage == 100.0


def test_trigram_needs_both_gaps():
    fa = FrequencyAnalysis.from_events([press(100, 0x00), press(200, 0x01), press(9000, 0x02)])
    assert fa.trigram_frequencies == ()
    assert len(fa.bigram_frequencies) == 1


def test_top_n_limits():
    events = [press(100 * i, i) for i in range(1, 6)]
    fa = FrequencyAnalysis.from_events(events)
    assert len(fa.top_keys(2)) == 2
    assert len(fa.top_keys(100)) == 5
    assert fa.top_keys(0) == []


def test_key_percentages_sum_to_100():
    events = [press(10 * i, i % 7) for i in range(1, 50)]
    fa = FrequencyAnalysis.from_events(events)
    assert abs(sum(k.percentage for k in fa.key_frequencies) - 100.0) < 1e-9
