import json

import pytest
import yaml

from chordchart.cli import bar_range, main, time_range


@pytest.fixture
def song_file(tmp_path, song_doc):
    p = tmp_path / "song.json"
    p.write_text(json.dumps(song_doc), encoding="utf-8")
    return p


@pytest.fixture
def no_user_config(tmp_path):
    p = tmp_path / "config.yaml"
    p.write_text("bars_per_row: 4\n", encoding="utf-8")
    return p


def test_specs_parse():
    assert bar_range("Verse:1-8") == ("Verse", 1, 8)
    assert time_range("Solo:10-18.5") == ("Solo", 10.0, 18.5)


def test_sections_are_rendered_and_written(tmp_path, song_file, no_user_config, capsys):
    out = tmp_path / "chart.yaml"
    main([
        "--in", str(song_file), "--config", str(no_user_config),
        "--section", "Verse:1-4", "--range", "Solo:16-24",
        "--duplicate", "0", "--out", str(out), "--check",
    ])
    stdout = capsys.readouterr().out
    assert "Verse:" in stdout
    assert "Verse (copy):" in stdout
    assert "Solo:" in stdout
    assert "[cli] Done. sections=4 bars=8" in stdout

    doc = yaml.safe_load(out.read_text(encoding="utf-8"))
    assert doc["title"] == "Test Song"
    assert [s["type"] for s in doc["sections"]] == ["Verse", "Verse", "Unassigned", "Solo"]
    assert [m["numeric"] for m in doc["sections"][0]["measures"]] == ["1", "1", "2m7", "57"]


def test_dissolve_by_index(song_file, no_user_config, capsys):
    main(["--in", str(song_file), "--config", str(no_user_config),
          "--section", "Chorus:5-8", "--dissolve", "1"])
    stdout = capsys.readouterr().out
    assert "Chorus:" not in stdout
    assert "sections=1" in stdout


def test_missing_input_exits_1(tmp_path):
    with pytest.raises(SystemExit) as exc:
        main(["--in", str(tmp_path / "nope.json")])
    assert exc.value.code == 1


def test_malformed_input_exits_2(tmp_path, no_user_config):
    bad = tmp_path / "bad.json"
    bad.write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(SystemExit) as exc:
        main(["--in", str(bad), "--config", str(no_user_config)])
    assert exc.value.code == 2


@pytest.mark.parametrize("value", ["Verse", "Verse:1", "Verse:a-b", "Verse:0-3", ":1-2"])
def test_bad_section_argument(song_file, value):
    with pytest.raises(SystemExit) as exc:
        main(["--in", str(song_file), "--section", value])
    assert exc.value.code == 2
