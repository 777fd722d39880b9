# src/chordchart/sections.py
from __future__ import annotations
from dataclasses import replace
from typing import Iterable, Iterator, List, Optional
import logging

from .timeline import Bar, Measure, Section, SectionType, new_id
from .util.time import clip

log = logging.getLogger(__name__)

class SectionStore:
    """Ordered section list. Only edits the order; bar ownership lives in BarStore."""

    def __init__(self):
        self._sections: List[Section] = []

    def __len__(self) -> int:
        return len(self._sections)

    def __iter__(self) -> Iterator[Section]:
        return iter(list(self._sections))

    def __getitem__(self, index: int) -> Section:
        return self._sections[index]

    def clear(self) -> None:
        self._sections = []

    def get(self, section_id: str) -> Optional[Section]:
        for s in self._sections:
            if s.id == section_id:
                return s
        return None

    def index_of(self, section_id: str) -> int:
        for i, s in enumerate(self._sections):
            if s.id == section_id:
                return i
        return -1

    def unassigned(self) -> Optional[Section]:
        for s in self._sections:
            if s.is_unassigned and not s.is_clone:
                return s
        return None

    def ensure_unassigned(self) -> Section:
        s = self.unassigned()
        if s is None:
            s = Section(type=SectionType.UNASSIGNED)
            self._sections.append(s)
        return s

    # --- list edits ---

    def insert_at(self, index: int, section: Section) -> None:
        index = max(0, min(int(index), len(self._sections)))
        self._sections.insert(index, section)

    def insert_by_start(self, section: Section) -> int:
        """
        Inserts before the first section that does not start earlier.
        Sections without bars (no start time) are skipped over.
        """
        start = section.start_time
        i = 0
        if start is not None:
            while i < len(self._sections):
                other = self._sections[i].start_time
                if other is not None and other >= start:
                    break
                i += 1
        self._sections.insert(i, section)
        return i

    def remove_by_id(self, section_id: str) -> Optional[Section]:
        i = self.index_of(section_id)
        if i < 0:
            return None
        return self._sections.pop(i)

    def move_to(self, from_index: int, to_index: int) -> bool:
        n = len(self._sections)
        if not (0 <= from_index < n and 0 <= to_index < n):
            return False
        s = self._sections.pop(from_index)
        self._sections.insert(to_index, s)
        return True

    # --- snapshots ---

    def rebuild_measures(self, section: Section, bars: Iterable[Bar], keep_order: bool = False) -> Section:
        """
        Recomputes section.measures and its time bounds from the bars it owns.

        Owned bars come out sorted by number, or with keep_order in their
        previous snapshot order followed by newly owned bars. Sections cut
        from a time range additionally clip their bars to the range, keep
        their synthetic bars and number everything 1..N by start time.
        Annotation clones are left alone.
        """
        if section.is_clone:
            return section

        owned = sorted((b for b in bars if b.section_id == section.id), key=lambda b: b.number)
        if keep_order:
            previous = [m.bar_number for m in section.measures if m.bar_number is not None]
            rank = {n: i for i, n in enumerate(previous)}
            owned.sort(key=lambda b: (b.number not in rank, rank.get(b.number, 0), b.number))

        measures = [
            Measure(
                number=b.number, chord=b.chord,
                start_time=b.start_time, end_time=b.end_time,
                bar_number=b.number, section_id=section.id,
            )
            for b in owned
        ]

        w = section.window
        if w is not None and w.valid:
            for m in measures:
                m.start_time, m.end_time = clip(m.start_time, m.end_time, float(w.start), float(w.end))
            synthetic = [replace(m, id=new_id(), section_id=section.id) for m in section.measures if m.synthetic]
            measures = sorted(measures + synthetic, key=lambda m: m.start_time)
            for i, m in enumerate(measures):
                m.number = i + 1

        section.measures = measures
        section.refresh_bounds()
        return section
