# src/chordchart/commands.py
"""
One command type per user action. UI code submits commands to a
CommandQueue instead of calling into the editor from wherever the
gesture happened; the queue runs them one at a time, in order.
"""
from __future__ import annotations
from collections import deque
from dataclasses import dataclass
from typing import Any, Callable, Deque, Dict, List, Optional, Tuple
import logging

from .editor import ChartEditor
from .timeline import TimeRange

log = logging.getLogger(__name__)

# --- selection ---

@dataclass(frozen=True)
class BeginSelection:
    index: int

@dataclass(frozen=True)
class ExtendSelection:
    index: int

@dataclass(frozen=True)
class EndSelection:
    pass

@dataclass(frozen=True)
class ToggleBar:
    bar_id: str
    additive: bool = False

@dataclass(frozen=True)
class ClearSelection:
    pass

# --- structure ---

@dataclass(frozen=True)
class CreateSection:
    section_type: str
    bar_ids: Optional[Tuple[str, ...]] = None     # None: use the current selection

@dataclass(frozen=True)
class DissolveSection:
    section_id: str

@dataclass(frozen=True)
class RemoveBarFromSection:
    bar_ids: Optional[Tuple[str, ...]] = None

@dataclass(frozen=True)
class CreateSectionFromTimeRange:
    start: float
    end: float
    section_type: str

@dataclass(frozen=True)
class ReorderSections:
    from_index: int
    to_index: int

@dataclass(frozen=True)
class DuplicateSection:
    index: int

# --- chords ---

@dataclass(frozen=True)
class SetBarChord:
    number: int
    chord: str

@dataclass(frozen=True)
class SetMeasureChord:
    section_id: str
    position: int
    chord: str


_HANDLERS: Dict[type, Callable[[ChartEditor, Any], Any]] = {
    BeginSelection: lambda ed, c: ed.selection.begin(c.index),
    ExtendSelection: lambda ed, c: ed.selection.extend(c.index),
    EndSelection: lambda ed, c: ed.selection.end(),
    ToggleBar: lambda ed, c: ed.selection.toggle(c.bar_id, c.additive),
    ClearSelection: lambda ed, c: ed.selection.clear(),
    CreateSection: lambda ed, c: ed.create_section(c.section_type, c.bar_ids),
    DissolveSection: lambda ed, c: ed.dissolve_section(c.section_id),
    RemoveBarFromSection: lambda ed, c: ed.move_single_bar_to_unassigned(c.bar_ids),
    CreateSectionFromTimeRange: lambda ed, c: ed.create_section_from_time_range(TimeRange(c.start, c.end), c.section_type),
    ReorderSections: lambda ed, c: ed.reorder_sections(c.from_index, c.to_index),
    DuplicateSection: lambda ed, c: ed.duplicate_section(c.index),
    SetBarChord: lambda ed, c: ed.set_bar_chord(c.number, c.chord),
    SetMeasureChord: lambda ed, c: ed.set_measure_chord(c.section_id, c.position, c.chord),
}

def dispatch(editor: ChartEditor, command) -> Any:
    handler = _HANDLERS.get(type(command))
    if handler is None:
        raise TypeError(f"unknown command {type(command).__name__}")
    return handler(editor, command)


class CommandQueue:
    def __init__(self, editor: ChartEditor):
        self.editor = editor
        self._pending: Deque[Any] = deque()

    def __len__(self) -> int:
        return len(self._pending)

    def submit(self, command) -> None:
        if type(command) not in _HANDLERS:
            raise TypeError(f"unknown command {type(command).__name__}")
        self._pending.append(command)

    def run_pending(self) -> List[Any]:
        """Runs every queued command to completion, oldest first."""
        results = []
        while self._pending:
            cmd = self._pending.popleft()
            log.debug("running %s", cmd)
            results.append(dispatch(self.editor, cmd))
        return results
