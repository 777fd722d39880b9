# src/chordchart/layout.py
from __future__ import annotations
from typing import Any, Dict, List, Tuple

from .degrees import NO_CHORD, chord_to_degree, chord_to_numeric, normalize_key
from .timeline import Measure, Section

ROW_WIDTHS = (4, 8)

def section_rows(section: Section, bars_per_row: int = 8) -> List[List[Measure]]:
    width = bars_per_row if bars_per_row in ROW_WIDTHS else 8
    ms = section.measures
    return [ms[i:i + width] for i in range(0, len(ms), width)]

def row_signature(row: List[Measure], key: str) -> str:
    return "|".join(chord_to_numeric(m.chord, key) or NO_CHORD for m in row)

def fold_rows(rows: List[List[Measure]], key: str) -> List[Tuple[int, int]]:
    """
    Groups consecutive rows that read the same in numeric degrees.
    Returns (first_row_index, repeat_count) per group, in order.
    """
    sigs = [row_signature(r, key) for r in rows]
    groups: List[Tuple[int, int]] = []
    i = 0
    while i < len(sigs):
        j = i + 1
        while j < len(sigs) and sigs[j] == sigs[i]:
            j += 1
        groups.append((i, j - i))
        i = j
    return groups

def render_section(section: Section, key: str, bars_per_row: int = 8) -> List[str]:
    """Text lines of one section: numeric degrees per row, repeats as xN."""
    rows = section_rows(section, bars_per_row)
    label = section.type.value + (" (copy)" if section.is_clone else "")
    if not rows:
        return [f"{label}: (empty)"]
    lines = [f"{label}:"]
    for first, count in fold_rows(rows, key):
        cells = " | ".join(f"{chord_to_numeric(m.chord, key):>4}" for m in rows[first])
        tail = f"  x{count}" if count > 1 else ""
        lines.append(f"  | {cells} |{tail}")
    return lines

def _measure_view(m: Measure, key: str) -> Dict[str, Any]:
    return {
        "number": m.number,
        "bar_number": m.bar_number,
        "chord": m.chord,
        "degree": chord_to_degree(m.chord, key) if m.chord else "",
        "numeric": chord_to_numeric(m.chord, key),
        "startTime": round(m.start_time, 4),
        "endTime": round(m.end_time, 4),
        "barSpan": m.bar_span,
        "synthetic": m.synthetic,
    }

def export_sections(editor) -> List[Dict[str, Any]]:
    """Plain-data view of the editor's sections for renderers and exporters."""
    key = normalize_key(editor.key)
    out = []
    for s in editor.sections:
        out.append({
            "id": s.id,
            "type": s.type.value,
            "startTime": s.start_time,
            "endTime": s.end_time,
            "clone_of": s.clone_of,
            "measures": [_measure_view(m, key) for m in s.measures],
        })
    return out
