# src/chordchart/timeline.py
from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, List, Set
import re
import uuid

DEFAULT_BEATS_PER_BAR = 4
DEFAULT_BPM = 120.0
DEFAULT_KEY = "C"

_BAR_ID_RE = re.compile(r"^bar-(\d+)$")

def new_id() -> str:
    return uuid.uuid4().hex

def bar_id(number: int) -> str:
    return f"bar-{int(number)}"

def bar_number_from_id(value: str) -> Optional[int]:
    m = _BAR_ID_RE.match(str(value or ""))
    return int(m.group(1)) if m else None


class SectionType(str, Enum):
    INTRO = "Intro"
    VERSE = "Verse"
    CHORUS = "Chorus"
    BRIDGE = "Bridge"
    SOLO = "Solo"
    OUTRO = "Outro"
    UNASSIGNED = "Unassigned"

    @classmethod
    def parse(cls, value) -> Optional["SectionType"]:
        """
        Case-insensitive lookup by name. The analysis service calls the
        unassigned pool "Any". Returns None for anything else.
        """
        if isinstance(value, SectionType):
            return value
        name = str(value or "").strip().lower()
        if name == "any":
            return cls.UNASSIGNED
        for t in cls:
            if t.value.lower() == name:
                return t
        return None


# --- bar store entries ---

@dataclass
class Bar:
    number: int            # 1-based position in the piece, never renumbered by edits
    chord: str
    start_time: float      # seconds
    end_time: float        # seconds
    section_id: Optional[str] = None

    @property
    def id(self) -> str:
        return bar_id(self.number)

    @property
    def duration(self) -> float:
        return self.end_time - self.start_time


# --- section snapshots ---

@dataclass
class Measure:
    number: int                     # display number (bar number, or 1..N in time-range sections)
    chord: str
    start_time: float
    end_time: float
    bar_number: Optional[int] = None   # None for synthetic bars
    synthetic: bool = False
    bar_span: int = 1
    section_id: Optional[str] = None
    id: str = field(default_factory=new_id)

    @property
    def bars(self) -> int:
        return self.bar_span

    @property
    def duration(self) -> float:
        return self.end_time - self.start_time

@dataclass
class TimeRange:
    start: Optional[float]
    end: Optional[float]

    @property
    def valid(self) -> bool:
        return self.start is not None and self.end is not None and float(self.start) < float(self.end)

@dataclass
class Section:
    type: SectionType
    id: str = field(default_factory=new_id)
    measures: List[Measure] = field(default_factory=list)
    start_time: Optional[float] = None
    end_time: Optional[float] = None
    window: Optional[TimeRange] = None     # set for sections cut from a time range
    clone_of: Optional[str] = None         # set for annotation-only duplicates

    @property
    def is_unassigned(self) -> bool:
        return self.type is SectionType.UNASSIGNED

    @property
    def is_clone(self) -> bool:
        return self.clone_of is not None

    def bar_numbers(self) -> Set[int]:
        return {m.bar_number for m in self.measures if m.bar_number is not None}

    def refresh_bounds(self) -> None:
        if not self.measures:
            self.start_time = self.end_time = None
            return
        self.start_time = min(m.start_time for m in self.measures)
        self.end_time = max(m.end_time for m in self.measures)


@dataclass
class Selection:
    is_selecting: bool = False
    start_index: Optional[int] = None     # 0-based bar ordinals of a drag gesture
    end_index: Optional[int] = None
    selected_bar_ids: List[str] = field(default_factory=list)


# --- upstream analysis result ---

@dataclass
class ChordSpan:
    start_bar: int
    end_bar: int          # exclusive
    start_time: float
    end_time: float
    chord: str = ""

    @property
    def bar_count(self) -> int:
        return max(0, self.end_bar - self.start_bar)

@dataclass
class BeatInfo:
    positions: List[float] = field(default_factory=list)
    bpm: Optional[float] = None
    time_signature: str = "4/4"
    beats_per_bar: int = DEFAULT_BEATS_PER_BAR

@dataclass
class StructureHint:
    type: SectionType
    bar_numbers: List[int] = field(default_factory=list)

@dataclass
class AnalysisResult:
    key: str = DEFAULT_KEY
    tempo: float = DEFAULT_BPM
    chords_map: List[ChordSpan] = field(default_factory=list)
    beats: Optional[BeatInfo] = None
    structures: List[StructureHint] = field(default_factory=list)
    title: Optional[str] = None
