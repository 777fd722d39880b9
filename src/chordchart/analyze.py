# src/chordchart/analyze.py
from __future__ import annotations
from pathlib import Path
from typing import Any, Dict, List, Optional
import json
import logging
import yaml

from .timeline import (
    AnalysisResult, BeatInfo, Bar, ChordSpan, SectionType, StructureHint,
    DEFAULT_BEATS_PER_BAR, DEFAULT_BPM, DEFAULT_KEY, bar_id,
)

log = logging.getLogger(__name__)

CHORD_LABEL_FIELDS = ("chord_basic_pop", "chord_majmin", "chord")

def _float(value, default: float) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default

def _int(value) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None

def _chord_label(entry: Dict[str, Any]) -> str:
    for name in CHORD_LABEL_FIELDS:
        v = entry.get(name)
        if v:
            return str(v).strip()
    return ""

def _parse_span(entry: Dict[str, Any]) -> Optional[ChordSpan]:
    if not isinstance(entry, dict):
        return None
    sb, eb = _int(entry.get("start_bar")), _int(entry.get("end_bar"))
    if sb is None or eb is None:
        return None
    return ChordSpan(
        start_bar=sb,
        end_bar=eb,
        start_time=_float(entry.get("start_time"), 0.0),
        end_time=_float(entry.get("end_time"), 0.0),
        chord=_chord_label(entry),
    )

def _beats_per_bar_from_signature(sig: str) -> Optional[int]:
    num = str(sig or "").split("/", 1)[0].strip()
    n = _int(num)
    return n if n and n > 0 else None

def _parse_beats(raw: Any, default_bpb: int) -> Optional[BeatInfo]:
    if not isinstance(raw, dict):
        return None
    sig = str(raw.get("timeSignature") or raw.get("time_signature") or "")
    bpb = _int(raw.get("beatsPerBar", raw.get("beats_per_bar")))
    if not bpb or bpb <= 0:
        bpb = _beats_per_bar_from_signature(sig) or default_bpb
    positions: List[float] = []
    for p in raw.get("positions") or []:
        try:
            positions.append(float(p))
        except (TypeError, ValueError):
            continue
    bpm = raw.get("bpm")
    return BeatInfo(
        positions=sorted(positions),
        bpm=_float(bpm, 0.0) or None,
        time_signature=sig or f"{bpb}/4",
        beats_per_bar=bpb,
    )

def _parse_structures(raw: Any) -> List[StructureHint]:
    out: List[StructureHint] = []
    for entry in raw or []:
        if not isinstance(entry, dict):
            continue
        st = SectionType.parse(entry.get("type"))
        if st is None:
            log.info("skipping structure of unknown type %r", entry.get("type"))
            continue
        numbers = []
        for m in entry.get("measures") or []:
            n = _int(m.get("number")) if isinstance(m, dict) else None
            if n is not None and n >= 1:
                numbers.append(n)
        out.append(StructureHint(type=st, bar_numbers=numbers))
    return out

def parse_analysis(data: Any, default_beats_per_bar: int = DEFAULT_BEATS_PER_BAR) -> AnalysisResult:
    """
    Turns the analysis service's result document into an AnalysisResult.
    Raises ValueError if the document is not a mapping.
    """
    if not isinstance(data, dict):
        raise ValueError("analysis result must be a mapping")

    raw = data.get("raw_data") if isinstance(data.get("raw_data"), dict) else {}
    entries = raw.get("chords map") or data.get("chords_map") or data.get("chords map") or []
    spans = [s for s in (_parse_span(e) for e in entries) if s is not None]
    dropped = len(entries) - len(spans)
    if dropped:
        log.info("ignored %d chords-map entries without bar indices", dropped)

    return AnalysisResult(
        key=str(data.get("key") or DEFAULT_KEY).strip(),
        tempo=_float(data.get("tempo"), DEFAULT_BPM) or DEFAULT_BPM,
        chords_map=spans,
        beats=_parse_beats(data.get("beats"), default_beats_per_bar),
        structures=_parse_structures(data.get("structures")),
        title=data.get("songTitle") or data.get("title"),
    )

def load_analysis(path: str, default_beats_per_bar: int = DEFAULT_BEATS_PER_BAR) -> AnalysisResult:
    p = Path(path)
    try:
        text = p.read_text(encoding="utf-8")
    except OSError as e:
        raise ValueError(f"cannot read analysis {p}: {e}") from e
    try:
        data = json.loads(text) if p.suffix.lower() == ".json" else yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ValueError(f"malformed analysis {p}: {e}") from e
    return parse_analysis(data, default_beats_per_bar)

# --- bars from the chords map ---

def _bar_offset(spans: List[ChordSpan]) -> int:
    # zero-based maps are shifted so the first bar is number 1
    starts = [s.start_bar for s in spans if s.bar_count > 0]
    if starts and min(starts) < 1:
        return 1 - min(starts)
    return 0

def bar_ids_from_chords_map(spans: List[ChordSpan]) -> Dict[int, str]:
    """
    bar number -> bar id for 1 up to the last bar the chords map covers,
    including the gap bars bars_from_chords_map fills in.
    """
    offset = _bar_offset(spans)
    last = max((s.end_bar - 1 + offset for s in spans if s.bar_count > 0), default=0)
    return {n: bar_id(n) for n in range(1, last + 1)}

def bars_from_chords_map(spans: List[ChordSpan], bar_seconds: float = 2.0) -> List[Bar]:
    """
    One Bar per bar index covered by the chords map, numbered from 1.
    Multi-bar entries are split evenly over their bars; bar numbers the map
    skips are filled with empty-chord bars spanning the gap.
    """
    offset = _bar_offset(spans)
    found: Dict[int, Bar] = {}
    for span in spans:
        n = span.bar_count
        if n <= 0:
            continue
        step = (span.end_time - span.start_time) / n
        if step <= 0:
            log.info("chords-map entry %d-%d has no duration, using %.2fs bars", span.start_bar, span.end_bar, bar_seconds)
            step = bar_seconds
        for i in range(n):
            number = span.start_bar + i + offset
            if number < 1 or number in found:
                continue
            t0 = span.start_time + i * step
            found[number] = Bar(number=number, chord=span.chord, start_time=t0, end_time=t0 + step)

    bars: List[Bar] = []
    cursor, t = 1, 0.0
    for number in sorted(found):
        missing = number - cursor
        if missing > 0:
            nxt = found[number].start_time
            step = (nxt - t) / missing if nxt > t else bar_seconds
            log.info("synthesizing %d empty bars before bar %d", missing, number)
            for k in range(missing):
                bars.append(Bar(number=cursor + k, chord="", start_time=t + k * step, end_time=t + (k + 1) * step))
        bar = found[number]
        bars.append(bar)
        t = bar.end_time
        cursor = number + 1
    return bars
