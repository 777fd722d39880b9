import pytest

from chordchart.analyze import parse_analysis
from chordchart.editor import ChartEditor
from chordchart.timeline import SectionType, TimeRange

from conftest import assert_partition, ids


def assert_contiguous(section):
    ms = section.measures
    for a, b in zip(ms, ms[1:]):
        assert a.end_time == pytest.approx(b.start_time)


def test_range_without_bars_is_synthesized(short_editor):
    s = short_editor.create_section_from_time_range(TimeRange(10.0, 18.5), "Solo")
    assert s is not None
    assert len(s.measures) % 4 == 0
    assert len(s.measures) == 8
    assert all(m.synthetic and m.bar_number is None for m in s.measures)
    # nearest analyzed bar is bar 4
    assert {m.chord for m in s.measures} == {"Am"}
    assert s.measures[0].start_time == 10.0
    assert s.measures[-1].end_time == 18.5
    assert [m.number for m in s.measures] == list(range(1, 9))
    assert_contiguous(s)
    assert short_editor.sections[-1] is s
    assert_partition(short_editor)


def test_synthesized_count_follows_beat_grid(cfg, short_doc):
    short_doc["beats"] = {"positions": [i * 0.5 for i in range(61)], "beatsPerBar": 4}
    ed = ChartEditor(cfg)
    ed.load(parse_analysis(short_doc))
    s = ed.create_section_from_time_range(TimeRange(10.0, 18.5), "Solo")
    # 18 beats fall inside the range, rounded up to whole groups of four
    assert len(s.measures) == 20
    assert_contiguous(s)


def test_partial_overlap_is_topped_up(editor):
    s = editor.create_section_from_time_range(TimeRange(0.0, 6.0), SectionType.INTRO)
    assert len(s.measures) == 4
    assert s.bar_numbers() == {1, 2, 3}
    extra = s.measures[-1]
    assert extra.synthetic
    assert extra.chord == "Dm7"
    assert (extra.start_time, extra.end_time) == (6.0, 8.0)
    assert [m.number for m in s.measures] == [1, 2, 3, 4]
    assert editor.sections.unassigned().bar_numbers() == {4, 5, 6, 7, 8}
    assert_partition(editor)


def test_edge_bars_are_clipped_to_the_range(editor):
    s = editor.create_section_from_time_range(TimeRange(1.0, 5.0), "Verse")
    assert s.bar_numbers() == {1, 2, 3}
    assert (s.measures[0].start_time, s.measures[0].end_time) == (1.0, 2.0)
    assert (s.measures[2].start_time, s.measures[2].end_time) == (4.0, 5.0)
    extra = s.measures[3]
    assert extra.synthetic
    assert (extra.start_time, extra.end_time) == (5.0, 6.0)
    # the bar itself keeps its full length
    assert editor.bars.get(1).start_time == 0.0


def test_range_takes_bars_from_existing_sections(editor):
    verse = editor.create_section("Verse", ids(1, 2, 3, 4))
    solo = editor.create_section_from_time_range(TimeRange(5.0, 9.0), "Solo")
    assert verse.bar_numbers() == {1, 2}
    assert solo.bar_numbers() == {3, 4, 5}
    assert [s.type for s in editor.sections] == [SectionType.VERSE, SectionType.SOLO, SectionType.UNASSIGNED]
    assert_partition(editor)


def test_window_section_keeps_synthetic_bars_after_edits(editor):
    s = editor.create_section_from_time_range(TimeRange(0.0, 6.0), "Intro")
    assert editor.move_single_bar_to_unassigned(["bar-2"])
    assert s.bar_numbers() == {1, 3}
    assert len(s.measures) == 3
    assert [m.number for m in s.measures] == [1, 2, 3]
    assert s.measures[-1].synthetic
    assert_partition(editor)


def test_padding_can_be_turned_off(cfg, song_doc):
    cfg["multiple_of_beats_per_bar"] = False
    ed = ChartEditor(cfg)
    ed.load(parse_analysis(song_doc))
    s = ed.create_section_from_time_range(TimeRange(0.0, 6.0), "Intro")
    assert len(s.measures) == 3
    assert not any(m.synthetic for m in s.measures)


def test_empty_piece_is_filled_with_the_key_chord(cfg):
    ed = ChartEditor(cfg)
    ed.load(parse_analysis({"key": "G major", "tempo": 120}))
    s = ed.create_section_from_time_range(TimeRange(0.0, 4.0), "Intro")
    assert len(s.measures) == 4
    assert {m.chord for m in s.measures} == {"G"}
    assert s.measures[-1].end_time == 4.0


@pytest.mark.parametrize("rng", [None, TimeRange(5.0, 5.0), TimeRange(6.0, 2.0), TimeRange(None, 3.0)])
def test_invalid_range_is_refused(editor, rng):
    assert editor.create_section_from_time_range(rng, "Solo") is None
    assert len(editor.sections) == 1


def test_unknown_type_is_refused(editor):
    assert editor.create_section_from_time_range(TimeRange(0.0, 4.0), "Unassigned") is None
    assert len(editor.sections) == 1
