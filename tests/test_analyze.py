import json

import pytest

from chordchart.analyze import (
    bar_ids_from_chords_map,
    bars_from_chords_map,
    load_analysis,
    parse_analysis,
)
from chordchart.timeline import ChordSpan, SectionType

from conftest import chord_entry


def test_multi_bar_entry_is_split_evenly(song_doc):
    res = parse_analysis(song_doc)
    bars = bars_from_chords_map(res.chords_map)
    assert [b.number for b in bars] == list(range(1, 9))
    assert (bars[0].start_time, bars[0].end_time) == (0.0, 2.0)
    assert (bars[1].start_time, bars[1].end_time) == (2.0, 4.0)
    assert bars[1].chord == "C"
    assert bars[2].chord == "Dm7"


def test_zero_based_map_is_shifted_to_one():
    spans = [ChordSpan(0, 1, 0.0, 2.0, "C"), ChordSpan(1, 2, 2.0, 4.0, "G")]
    bars = bars_from_chords_map(spans)
    assert [b.number for b in bars] == [1, 2]
    assert list(bar_ids_from_chords_map(spans).values()) == ["bar-1", "bar-2"]


def test_skipped_bar_numbers_are_filled_with_empty_bars():
    spans = [ChordSpan(1, 2, 0.0, 2.0, "C"), ChordSpan(3, 4, 4.0, 6.0, "G")]
    bars = bars_from_chords_map(spans)
    assert [b.number for b in bars] == [1, 2, 3]
    gap = bars[1]
    assert gap.chord == ""
    assert (gap.start_time, gap.end_time) == (2.0, 4.0)
    assert bar_ids_from_chords_map(spans) == {1: "bar-1", 2: "bar-2", 3: "bar-3"}


def test_entry_without_duration_uses_default_bar_length():
    bars = bars_from_chords_map([ChordSpan(1, 3, 5.0, 5.0, "D")], bar_seconds=1.5)
    assert [(b.start_time, b.end_time) for b in bars] == [(5.0, 6.5), (6.5, 8.0)]


def test_bar_ids_cover_every_mapped_bar(song_doc):
    res = parse_analysis(song_doc)
    lookup = bar_ids_from_chords_map(res.chords_map)
    assert lookup == {n: f"bar-{n}" for n in range(1, 9)}


def test_parse_reads_key_tempo_and_title(song_doc):
    res = parse_analysis(song_doc)
    assert res.key == "C major"
    assert res.tempo == 120.0
    assert res.title == "Test Song"
    assert len(res.chords_map) == 7


def test_chord_label_falls_back_between_fields():
    doc = {"chords_map": [
        {"start_bar": 1, "end_bar": 2, "start_time": 0, "end_time": 2, "chord_majmin": "Am"},
        {"start_bar": 2, "end_bar": 3, "start_time": 2, "end_time": 4, "chord": "F"},
    ]}
    res = parse_analysis(doc)
    assert [s.chord for s in res.chords_map] == ["Am", "F"]


def test_entries_without_bar_indices_are_dropped():
    doc = {"raw_data": {"chords map": [
        chord_entry(1, 2, 0.0, 2.0, "C"),
        {"start_time": 2.0, "end_time": 4.0, "chord_basic_pop": "G"},
        "junk",
    ]}}
    res = parse_analysis(doc)
    assert len(res.chords_map) == 1


def test_beats_per_bar_from_time_signature():
    res = parse_analysis({"beats": {"positions": [0, "0.5", None, 1.0], "bpm": 90, "timeSignature": "3/4"}})
    assert res.beats.beats_per_bar == 3
    assert res.beats.positions == [0.0, 0.5, 1.0]
    assert res.beats.bpm == 90.0


def test_explicit_beats_per_bar_wins():
    res = parse_analysis({"beats": {"beats_per_bar": 6, "time_signature": "3/4"}})
    assert res.beats.beats_per_bar == 6


def test_structures_map_any_to_unassigned():
    res = parse_analysis({"structures": [
        {"type": "Any", "measures": [{"number": 1}]},
        {"type": "chorus", "measures": [{"number": 2}, {"number": 3}]},
        {"type": "Breakdown", "measures": [{"number": 4}]},
    ]})
    assert [h.type for h in res.structures] == [SectionType.UNASSIGNED, SectionType.CHORUS]
    assert res.structures[1].bar_numbers == [2, 3]


def test_non_mapping_document_is_rejected():
    with pytest.raises(ValueError):
        parse_analysis([1, 2, 3])


def test_load_json_and_yaml(tmp_path, song_doc):
    jpath = tmp_path / "song.json"
    jpath.write_text(json.dumps(song_doc), encoding="utf-8")
    ypath = tmp_path / "song.yaml"
    ypath.write_text("key: G\nchords_map:\n  - {start_bar: 1, end_bar: 2, start_time: 0, end_time: 2, chord: G}\n",
                     encoding="utf-8")

    assert len(load_analysis(str(jpath)).chords_map) == 7
    res = load_analysis(str(ypath))
    assert res.key == "G"
    assert res.chords_map[0].chord == "G"


def test_load_malformed_or_missing_file(tmp_path):
    bad = tmp_path / "bad.json"
    bad.write_text("{not json", encoding="utf-8")
    with pytest.raises(ValueError):
        load_analysis(str(bad))
    with pytest.raises(ValueError):
        load_analysis(str(tmp_path / "missing.json"))
