# src/chordchart/bars.py
from __future__ import annotations
from dataclasses import replace
from typing import Dict, Iterable, Iterator, List, Optional
import logging

from .timeline import Bar, bar_number_from_id

log = logging.getLogger(__name__)

class BarStore:
    """
    The flat list of bars for the whole piece, keyed by bar number.
    Every bar's section_id here is the final word on ownership; section
    snapshots are rebuilt from it.
    """

    def __init__(self):
        self._bars: Dict[int, Bar] = {}

    def __len__(self) -> int:
        return len(self._bars)

    def __iter__(self) -> Iterator[Bar]:
        for n in sorted(self._bars):
            yield self._bars[n]

    def __contains__(self, number) -> bool:
        return number in self._bars

    def bulk_init(self, bars: Iterable[Bar], unassigned_id: str,
                  owners: Optional[Dict[int, str]] = None) -> None:
        """
        Replaces every bar. Each bar goes to owners[number] when given,
        otherwise to the unassigned section.
        """
        owners = owners or {}
        fresh: Dict[int, Bar] = {}
        for bar in bars:
            fresh[bar.number] = replace(bar, section_id=owners.get(bar.number, unassigned_id))
        self._bars = fresh

    def clear(self) -> None:
        self._bars = {}

    def get(self, number: int) -> Optional[Bar]:
        return self._bars.get(number)

    def resolve(self, bar_id: str) -> Optional[Bar]:
        n = bar_number_from_id(bar_id)
        return self._bars.get(n) if n is not None else None

    def numbers(self) -> List[int]:
        return sorted(self._bars)

    def owner_of(self, number: int) -> Optional[str]:
        bar = self._bars.get(number)
        return bar.section_id if bar else None

    def owned_by(self, section_id: str) -> List[Bar]:
        return [b for b in self if b.section_id == section_id]

    def set_owner(self, number: int, section_id: str) -> bool:
        bar = self._bars.get(number)
        if bar is None:
            log.debug("set_owner: no bar %s", number)
            return False
        bar.section_id = section_id
        return True

    def set_chord(self, number: int, chord: str) -> bool:
        bar = self._bars.get(number)
        if bar is None:
            log.debug("set_chord: no bar %s", number)
            return False
        bar.chord = (chord or "").strip()
        return True
