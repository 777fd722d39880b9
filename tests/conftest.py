import pytest

from chordchart.analyze import parse_analysis
from chordchart.editor import ChartEditor

CFG = {
    "beats_per_bar": 4,
    "fallback_bpm": 120.0,
    "default_key": "C",
    "bars_per_row": 8,
    "multiple_of_beats_per_bar": True,
}


def chord_entry(start_bar, end_bar, start_time, end_time, chord):
    return {
        "start_bar": start_bar,
        "end_bar": end_bar,
        "start_time": start_time,
        "end_time": end_time,
        "chord_basic_pop": chord,
        "chord_majmin": chord,
    }


@pytest.fixture
def cfg():
    return dict(CFG)


@pytest.fixture
def song_doc():
    # eight 2-second bars, bars 1-2 share one chords-map entry
    return {
        "key": "C major",
        "tempo": 120,
        "songTitle": "Test Song",
        "raw_data": {
            "chords map": [
                chord_entry(1, 3, 0.0, 4.0, "C"),
                chord_entry(3, 4, 4.0, 6.0, "Dm7"),
                chord_entry(4, 5, 6.0, 8.0, "G7"),
                chord_entry(5, 6, 8.0, 10.0, "Am"),
                chord_entry(6, 7, 10.0, 12.0, "F"),
                chord_entry(7, 8, 12.0, 14.0, "G"),
                chord_entry(8, 9, 14.0, 16.0, "C"),
            ]
        },
    }


@pytest.fixture
def short_doc():
    # four bars covering 0-8s
    return {
        "key": "C",
        "tempo": 120,
        "raw_data": {
            "chords map": [
                chord_entry(1, 2, 0.0, 2.0, "C"),
                chord_entry(2, 3, 2.0, 4.0, "F"),
                chord_entry(3, 4, 4.0, 6.0, "G"),
                chord_entry(4, 5, 6.0, 8.0, "Am"),
            ]
        },
    }


@pytest.fixture
def editor(cfg, song_doc):
    ed = ChartEditor(cfg)
    ed.load(parse_analysis(song_doc))
    return ed


@pytest.fixture
def short_editor(cfg, short_doc):
    ed = ChartEditor(cfg)
    ed.load(parse_analysis(short_doc))
    return ed


def ids(*numbers):
    return [f"bar-{n}" for n in numbers]


def membership(section):
    return [(m.bar_number, m.chord) for m in section.measures]


def assert_partition(ed):
    assert ed.check_partition() == []
    owned = [s.bar_numbers() for s in ed.sections if not s.is_clone]
    union = set().union(*owned) if owned else set()
    assert union == set(ed.bars.numbers())
    assert sum(len(o) for o in owned) == len(union)
