# src/chordchart/selection.py
from __future__ import annotations
from typing import Dict, List, Optional

from .timeline import Selection

class SelectionEngine:
    """
    Drag and click selection of bars.

    Drag anchors are 0-based bar ordinals; ordinal i is bar number i + 1.
    Ordinals are resolved through the chords-map lookup (bar number -> id),
    so a selection can be made before any section exists.
    """

    def __init__(self, bar_ids: Optional[Dict[int, str]] = None):
        self.state = Selection()
        self.bar_ids: Dict[int, str] = dict(bar_ids or {})

    def set_lookup(self, bar_ids: Dict[int, str]) -> None:
        self.bar_ids = dict(bar_ids or {})

    @property
    def is_selecting(self) -> bool:
        return self.state.is_selecting

    @property
    def selected_bar_ids(self) -> List[str]:
        return list(self.state.selected_bar_ids)

    def begin(self, index: int) -> None:
        self.state = Selection(is_selecting=True, start_index=index, end_index=index, selected_bar_ids=[])

    def extend(self, index: int) -> bool:
        st = self.state
        if not st.is_selecting or st.start_index is None:
            return False
        lo, hi = sorted((st.start_index, index))
        first, last = lo + 1, hi + 1
        st.end_index = index
        st.selected_bar_ids = [self.bar_ids[n] for n in sorted(self.bar_ids) if first <= n <= last]
        return True

    def end(self) -> None:
        # the realized selection outlives the gesture
        self.state.is_selecting = False

    def toggle(self, bar_id: str, additive: bool = False) -> None:
        if not additive:
            self.state.selected_bar_ids = [bar_id]
            return
        ids = self.state.selected_bar_ids
        if bar_id in ids:
            ids.remove(bar_id)
        else:
            ids.append(bar_id)

    def clear(self) -> None:
        self.state = Selection()
