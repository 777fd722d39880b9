# src/chordchart/editor.py
from __future__ import annotations
from dataclasses import replace
from typing import Any, Dict, Iterable, List, Optional, Union
import logging
import math
import numpy as np

from .analyze import bar_ids_from_chords_map, bars_from_chords_map
from .bars import BarStore
from .config import (
    load_config, get_beats_per_bar, get_default_key, get_fallback_bpm, pad_to_beats_per_bar,
)
from .degrees import normalize_key
from .layout import export_sections
from .sections import SectionStore
from .selection import SelectionEngine
from .timeline import (
    AnalysisResult, Bar, BeatInfo, ChordSpan, Measure, Section, SectionType, TimeRange, new_id,
)
from .util.time import bar_seconds, clip, overlaps, round_up_to_multiple

log = logging.getLogger(__name__)

TypeLike = Union[SectionType, str]

class ChartEditor:
    """
    Owns the bar list, the section list and the selection of one piece.

    All structural edits go through this object. Each edit checks its
    preconditions first and only then writes, so a refused edit leaves
    nothing behind; refusals are logged and reported as None/False.
    """

    def __init__(self, cfg: Optional[Dict[str, Any]] = None):
        self.cfg = cfg if cfg is not None else load_config()
        self.bars = BarStore()
        self.sections = SectionStore()
        self.selection = SelectionEngine()
        self.key: str = get_default_key(self.cfg)
        self.tempo: float = get_fallback_bpm(self.cfg)
        self.title: Optional[str] = None
        self.beats: Optional[BeatInfo] = None
        self.chords_map: List[ChordSpan] = []

    # ------------------------------------------------------------------
    # piece-level state
    # ------------------------------------------------------------------

    @property
    def beats_per_bar(self) -> int:
        if self.beats and self.beats.beats_per_bar > 0:
            return self.beats.beats_per_bar
        return get_beats_per_bar(self.cfg)

    @property
    def default_bar_seconds(self) -> float:
        bpm = (self.beats.bpm if self.beats and self.beats.bpm else None) or self.tempo
        return bar_seconds(bpm or get_fallback_bpm(self.cfg), self.beats_per_bar)

    def load(self, analysis: AnalysisResult) -> None:
        """Replaces the whole piece with a fresh analysis result."""
        self.clear()
        self.key = analysis.key or get_default_key(self.cfg)
        self.tempo = analysis.tempo or get_fallback_bpm(self.cfg)
        self.title = analysis.title
        self.beats = analysis.beats
        self.chords_map = list(analysis.chords_map)

        bars = bars_from_chords_map(self.chords_map, self.default_bar_seconds)
        self.selection.set_lookup(bar_ids_from_chords_map(self.chords_map))
        if not bars:
            log.info("analysis has no bars")
            return

        unassigned = self.sections.ensure_unassigned()
        owners: Dict[int, str] = {}
        supplied: List[Section] = []
        for hint in analysis.structures:
            if hint.type is SectionType.UNASSIGNED:
                continue
            section = Section(type=hint.type)
            for n in hint.bar_numbers:
                owners.setdefault(n, section.id)
            supplied.append(section)

        self.bars.bulk_init(bars, unassigned.id, owners)
        self.sections.rebuild_measures(unassigned, self.bars)
        for section in supplied:
            self.sections.rebuild_measures(section, self.bars)
            if section.measures:
                self.sections.insert_by_start(section)
            else:
                log.info("dropping supplied %s section without known bars", section.type.value)
        log.info("loaded %d bars, %d sections, key=%s", len(self.bars), len(self.sections), self.key)

    def clear(self) -> None:
        self.bars.clear()
        self.sections.clear()
        self.selection.clear()
        self.selection.set_lookup({})
        self.chords_map = []
        self.beats = None
        self.title = None

    def set_key(self, key: str) -> None:
        self.key = (key or "").strip() or get_default_key(self.cfg)

    def set_tempo(self, tempo: float) -> bool:
        try:
            t = float(tempo)
        except (TypeError, ValueError):
            log.warning("set_tempo: not a number: %r", tempo)
            return False
        if t <= 0:
            log.warning("set_tempo: tempo must be positive, got %s", t)
            return False
        self.tempo = t
        return True

    def set_title(self, title: Optional[str]) -> None:
        self.title = (title or "").strip() or None

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _section_type(section_type: TypeLike, op: str) -> Optional[SectionType]:
        st = SectionType.parse(section_type)
        if st is None or st is SectionType.UNASSIGNED:
            log.warning("%s: unknown section type %r", op, section_type)
            return None
        return st

    def _ids(self, bar_ids: Optional[Iterable[str]]) -> List[str]:
        return list(bar_ids) if bar_ids is not None else self.selection.selected_bar_ids

    def _rebuild(self, section_id: Optional[str]) -> None:
        section = self.sections.get(section_id) if section_id else None
        if section is not None:
            self.sections.rebuild_measures(section, self.bars, keep_order=section.is_unassigned)

    # ------------------------------------------------------------------
    # structural edits
    # ------------------------------------------------------------------

    def create_section(self, section_type: TypeLike,
                       bar_ids: Optional[Iterable[str]] = None) -> Optional[Section]:
        """
        Moves the selected bars (or bar_ids) into a new section. Ids that do
        not resolve to a bar are skipped.
        """
        ids = self._ids(bar_ids)
        if not ids:
            log.warning("create_section: no selection")
            return None
        st = self._section_type(section_type, "create_section")
        if st is None:
            return None

        picked: Dict[int, Bar] = {}
        for bid in ids:
            bar = self.bars.resolve(bid)
            if bar is None:
                log.info("create_section: skipping unknown bar id %r", bid)
                continue
            picked.setdefault(bar.number, bar)
        if not picked:
            log.warning("create_section: none of %d selected ids is a known bar", len(ids))
            return None

        section = Section(type=st)
        losers = {bar.section_id for bar in picked.values()}
        for number in picked:
            self.bars.set_owner(number, section.id)
        self.sections.rebuild_measures(section, self.bars)
        for sid in losers:
            self._rebuild(sid)
        self.sections.insert_by_start(section)
        self.selection.clear()
        log.info("created %s with bars %s", st.value, sorted(picked))
        return section

    def dissolve_section(self, section_id: str) -> bool:
        """Returns the section's bars to the unassigned pool and removes it."""
        section = self.sections.get(section_id)
        if section is None:
            log.warning("dissolve_section: no section %r", section_id)
            return False
        if section.is_unassigned and not section.is_clone:
            log.warning("dissolve_section: the unassigned pool cannot be dissolved")
            return False

        owned = self.bars.owned_by(section.id)
        unassigned = self.sections.ensure_unassigned()
        for bar in owned:
            self.bars.set_owner(bar.number, unassigned.id)
        self.sections.remove_by_id(section.id)
        self.sections.rebuild_measures(unassigned, self.bars, keep_order=True)
        self.selection.clear()
        log.info("dissolved %s, %d bars back to unassigned", section.type.value, len(owned))
        return True

    def move_single_bar_to_unassigned(self, bar_ids: Optional[Iterable[str]] = None) -> bool:
        ids = self._ids(bar_ids)
        if len(ids) != 1:
            log.warning("move_single_bar_to_unassigned: need exactly one bar, got %d", len(ids))
            return False
        bar = self.bars.resolve(ids[0])
        if bar is None:
            log.warning("move_single_bar_to_unassigned: unknown bar id %r", ids[0])
            return False
        unassigned = self.sections.ensure_unassigned()
        if bar.section_id == unassigned.id:
            log.info("bar %d is already unassigned", bar.number)
            return False

        former = bar.section_id
        self.bars.set_owner(bar.number, unassigned.id)
        self._rebuild(former)
        self.sections.rebuild_measures(unassigned, self.bars, keep_order=True)
        self.selection.clear()
        return True

    def create_section_from_time_range(self, time_range: Optional[TimeRange],
                                       section_type: TypeLike) -> Optional[Section]:
        """
        New section covering [start, end). Analyzed bars touching the range
        move into it, clipped to the range, and the section is padded with
        synthetic bars to a beats-per-bar multiple. Over a range no bar
        touches, the whole section is synthesized.
        """
        st = self._section_type(section_type, "create_section_from_time_range")
        if st is None:
            return None
        if time_range is None or not time_range.valid:
            log.warning("create_section_from_time_range: invalid range %r", time_range)
            return None
        start, end = float(time_range.start), float(time_range.end)
        multiple = self.beats_per_bar if pad_to_beats_per_bar(self.cfg) else 1

        hits = sorted(
            (b for b in self.bars if overlaps(b.start_time, b.end_time, start, end)),
            key=lambda b: b.start_time,
        )
        if hits:
            synthetic = self._top_up(hits, start, end, multiple)
        else:
            synthetic = self._synthesize(start, end, multiple)

        section = Section(type=st, window=TimeRange(start, end), measures=synthetic)
        losers = {b.section_id for b in hits}
        for b in hits:
            self.bars.set_owner(b.number, section.id)
        self.sections.rebuild_measures(section, self.bars)
        for sid in losers:
            self._rebuild(sid)
        self.sections.insert_by_start(section)
        self.selection.clear()
        log.info("created %s over %.2f-%.2fs: %d real, %d synthetic bars",
                 st.value, start, end, len(hits), len(synthetic))
        return section

    def _top_up(self, hits: List[Bar], start: float, end: float, multiple: int) -> List[Measure]:
        target = round_up_to_multiple(len(hits), multiple)
        last = hits[-1]
        t0, t1 = clip(last.start_time, last.end_time, start, end)
        duration = (t1 - t0) if t1 > t0 else self.default_bar_seconds
        chord = last.chord or normalize_key(self.key)
        out: List[Measure] = []
        t = t1
        for i in range(len(hits), target):
            out.append(Measure(number=i + 1, chord=chord, start_time=t, end_time=t + duration, synthetic=True))
            t += duration
        return out

    def _synthesize(self, start: float, end: float, multiple: int) -> List[Measure]:
        chord, duration = normalize_key(self.key), self.default_bar_seconds
        known = list(self.bars)
        if known:
            mids = np.array([(b.start_time + b.end_time) / 2.0 for b in known])
            nearest = known[int(np.argmin(np.abs(mids - (start + end) / 2.0)))]
            chord = nearest.chord or chord
            if nearest.duration > 0:
                duration = nearest.duration
        else:
            log.info("no analyzed bars, filling %.2f-%.2fs with %s", start, end, chord)

        beats = self.beats
        if beats is not None and beats.positions:
            pos = np.asarray(beats.positions, dtype=float)
            raw = int(np.count_nonzero((pos >= start) & (pos <= end)))
        else:
            raw = int(math.ceil((end - start) / duration))
        count = max(round_up_to_multiple(raw, multiple), multiple, 1)

        edges = np.linspace(start, end, count + 1)
        return [
            Measure(number=i + 1, chord=chord, start_time=float(edges[i]),
                    end_time=end if i == count - 1 else float(edges[i + 1]), synthetic=True)
            for i in range(count)
        ]

    def reorder_sections(self, from_index: int, to_index: int) -> bool:
        if not self.sections.move_to(from_index, to_index):
            log.warning("reorder_sections: index out of range (%s -> %s)", from_index, to_index)
            return False
        return True

    def duplicate_section(self, index: int) -> Optional[Section]:
        """
        Inserts an annotation-only copy right after the section. The copy
        owns no bars and stays out of the partition.
        """
        if not (0 <= index < len(self.sections)):
            log.warning("duplicate_section: index %s out of range", index)
            return None
        original = self.sections[index]
        if original.is_unassigned:
            log.warning("duplicate_section: the unassigned pool cannot be duplicated")
            return None
        clone = Section(
            type=original.type,
            clone_of=original.clone_of or original.id,
            window=original.window,
        )
        clone.measures = [replace(m, id=new_id(), section_id=clone.id) for m in original.measures]
        clone.refresh_bounds()
        self.sections.insert_at(index + 1, clone)
        return clone

    # ------------------------------------------------------------------
    # chord edits
    # ------------------------------------------------------------------

    def set_bar_chord(self, number: int, chord: str) -> bool:
        if not self.bars.set_chord(number, chord):
            log.warning("set_bar_chord: no bar %s", number)
            return False
        self._rebuild(self.bars.owner_of(number))
        return True

    def set_measure_chord(self, section_id: str, position: int, chord: str) -> bool:
        section = self.sections.get(section_id)
        if section is None or not (0 <= position < len(section.measures)):
            log.warning("set_measure_chord: no measure %s in section %r", position, section_id)
            return False
        m = section.measures[position]
        if not section.is_clone and m.bar_number is not None:
            return self.set_bar_chord(m.bar_number, chord)
        m.chord = (chord or "").strip()
        return True

    # ------------------------------------------------------------------
    # checks / output
    # ------------------------------------------------------------------

    def check_partition(self) -> List[str]:
        """Violations of the one-owner-per-bar rule; empty when it holds."""
        problems: List[str] = []
        seen: Dict[int, str] = {}
        for section in self.sections:
            if section.is_clone:
                continue
            for n in sorted(section.bar_numbers()):
                if n in seen:
                    problems.append(f"bar {n} listed in {seen[n]} and {section.id}")
                    continue
                seen[n] = section.id
                owner = self.bars.owner_of(n)
                if owner is None:
                    problems.append(f"bar {n} in {section.id} is not a known bar")
                elif owner != section.id:
                    problems.append(f"bar {n} listed in {section.id} but owned by {owner}")
        for n in self.bars.numbers():
            if n not in seen:
                problems.append(f"bar {n} is in no section")
        if len(self.bars) and self.sections.unassigned() is None:
            problems.append("no unassigned section")
        return problems

    def export(self) -> List[Dict[str, Any]]:
        return export_sections(self)
