# src/chordchart/degrees.py
"""
Chord name -> roman scale degree -> numeric degree token.

    chord_to_degree("Dm7", "C")      -> "ii7"
    degree_to_numeric("ii7")         -> "2m7"
    chord_to_numeric("F#dim", "G")   -> "7m°"

The numeric form keeps everything the roman numeral says (case becomes a
trailing "m", accidentals and quality suffixes are copied), so
numeric_to_degree() gives the numeral back.
"""
from __future__ import annotations
from typing import Dict, Optional
import re

REPEAT = "%"       # "same chord as before"
NO_CHORD = "-"

NUMERALS = ["I", "II", "III", "IV", "V", "VI", "VII"]

# every spelling a root may be written in
SPELLINGS = {
    0: ["C", "B#"], 1: ["C#", "Db"], 2: ["D"], 3: ["D#", "Eb"],
    4: ["E", "Fb"], 5: ["F", "E#"], 6: ["F#", "Gb"], 7: ["G"],
    8: ["G#", "Ab"], 9: ["A"], 10: ["A#", "Bb"], 11: ["B", "Cb"],
}

# written chord suffix (after dim/aug folding) -> canonical quality
QUALITY_ALIASES = {
    "": "", "maj": "", "M": "",
    "m": "m", "min": "m", "-": "m",
    "°": "°", "+": "+",
    "7": "7", "dom7": "7",
    "m7": "m7", "min7": "m7", "-7": "m7",
    "maj7": "maj7", "M7": "maj7", "Δ7": "maj7", "Δ": "maj7",
    "m7b5": "m7b5", "ø": "m7b5", "ø7": "m7b5",
    "°7": "°7",
}

# canonical quality -> (numeral is uppercase, suffix written after the numeral)
QUALITY_ROMAN = {
    "": (True, ""), "m": (False, ""), "°": (False, "°"), "+": (True, "+"),
    "7": (True, "7"), "m7": (False, "7"), "maj7": (True, "maj7"),
    "m7b5": (False, "ø7"), "°7": (False, "°7"),
}
ROMAN_SUFFIXES = ("", "°", "+", "7", "maj7", "ø7", "°7")

# (semitones above tonic, quality) -> scale degree, "b" marks a lowered degree
MAJOR_DEGREES = {
    # diatonic triads
    (0, ""): "1", (2, "m"): "2", (4, "m"): "3", (5, ""): "4",
    (7, ""): "5", (9, "m"): "6", (11, "°"): "7",
    # diatonic sevenths
    (0, "maj7"): "1", (2, "m7"): "2", (4, "m7"): "3", (5, "maj7"): "4",
    (7, "7"): "5", (9, "m7"): "6", (11, "m7b5"): "7",
    # majorized degrees and secondary dominants
    (2, ""): "2", (4, ""): "3", (9, ""): "6", (11, ""): "7",
    (0, "7"): "1", (2, "7"): "2", (4, "7"): "3", (5, "7"): "4", (9, "7"): "6",
    # borrowed from the parallel minor
    (5, "m"): "4", (7, "m"): "5", (3, ""): "b3", (8, ""): "b6", (10, ""): "b7",
}

MINOR_DEGREES = {
    # natural minor triads
    (0, "m"): "1", (2, "°"): "2", (3, ""): "3", (5, "m"): "4",
    (7, "m"): "5", (8, ""): "6", (10, ""): "7",
    # natural minor sevenths
    (0, "m7"): "1", (2, "m7b5"): "2", (3, "maj7"): "3", (5, "m7"): "4",
    (7, "m7"): "5", (8, "maj7"): "6", (10, "7"): "7", (8, "7"): "6",
    # harmonic minor
    (7, ""): "5", (7, "7"): "5", (11, "°"): "7", (11, "°7"): "7", (3, "+"): "3",
    # dorian ii/IV and the picardy tonic
    (2, "m"): "2", (5, ""): "4", (0, ""): "1",
}

_KEY_SUFFIXES = [
    (re.compile(r"\s+major$", re.I), ""),
    (re.compile(r"\s+minor$", re.I), "m"),
    (re.compile(r"\s+maj$", re.I), ""),
    (re.compile(r"\s+min$", re.I), "m"),
]
_CHORD_RE = re.compile(r"^([A-G])([#b]?)(.*)$")
_ROMAN_RE = re.compile(r"^([b#]?)(VII|VI|IV|V|III|II|I|vii|vi|iv|v|iii|ii|i)(.*)$")
_NUMERIC_RE = re.compile(r"^([b#]?)([1-7])(.*)$")


def _roman(degree: str, quality: str) -> str:
    acc, digit = degree[:-1], int(degree[-1])
    upper, suffix = QUALITY_ROMAN[quality]
    numeral = NUMERALS[digit - 1]
    return acc + (numeral if upper else numeral.lower()) + suffix

def _build_table() -> Dict[str, Dict[str, str]]:
    table: Dict[str, Dict[str, str]] = {}
    for degrees, tag in ((MAJOR_DEGREES, ""), (MINOR_DEGREES, "m")):
        for tonic_pc, tonic_names in SPELLINGS.items():
            chords: Dict[str, str] = {}
            for (interval, quality), degree in degrees.items():
                roman = _roman(degree, quality)
                for root in SPELLINGS[(tonic_pc + interval) % 12]:
                    chords[root + quality] = roman
            for name in tonic_names:
                table[name + tag] = chords
    return table

# key token ("C", "F#m", "Bb") -> {normalized chord name -> roman degree}
DEGREE_TABLE: Dict[str, Dict[str, str]] = _build_table()


def normalize_chord(chord: str) -> str:
    if not chord or chord == REPEAT:
        return chord
    s = re.sub(r"\s+", "", chord).replace("♭", "b").replace("♯", "#")
    return s.replace("dim", "°").replace("aug", "+")

def normalize_key(key: Optional[str]) -> str:
    """ "E major" -> "E", "E minor" -> "Em", "" -> "C". """
    if not key or not str(key).strip():
        return "C"
    s = str(key).strip().replace("♭", "b").replace("♯", "#")
    for pattern, repl in _KEY_SUFFIXES:
        if pattern.search(s):
            s = pattern.sub(repl, s)
            break
    return s[:1].upper() + s[1:]

def canonical_chord(chord: str) -> Optional[str]:
    """Root as written plus canonical quality, or None if the suffix is unknown."""
    m = _CHORD_RE.match(normalize_chord(chord) or "")
    if not m:
        return None
    root, acc, rest = m.groups()
    quality = QUALITY_ALIASES.get(rest)
    if quality is None:
        return None
    return root + acc + quality

def chord_to_degree(chord: str, key: str) -> str:
    if chord == REPEAT:
        return REPEAT
    if not chord:
        return chord
    chords = DEGREE_TABLE.get(normalize_key(key))
    canon = canonical_chord(chord)
    if chords is None or canon is None:
        return chord
    return chords.get(canon, chord)

def degree_to_numeric(degree: str) -> str:
    if degree == REPEAT:
        return REPEAT
    if not degree:
        return NO_CHORD
    m = _ROMAN_RE.match(degree)
    if not m or m.group(3) not in ROMAN_SUFFIXES:
        return degree
    acc, numeral, suffix = m.groups()
    digit = NUMERALS.index(numeral.upper()) + 1
    return f"{acc}{digit}{'' if numeral.isupper() else 'm'}{suffix}"

def numeric_to_degree(token: str) -> str:
    m = _NUMERIC_RE.match(token or "")
    if not m:
        return token
    acc, digit, rest = m.groups()
    numeral = NUMERALS[int(digit) - 1]
    if rest in ROMAN_SUFFIXES:
        return acc + numeral + rest
    if rest.startswith("m") and rest[1:] in ROMAN_SUFFIXES:
        return acc + numeral.lower() + rest[1:]
    return token

def chord_to_numeric(chord: str, key: str) -> str:
    if not chord or not chord.strip():
        return NO_CHORD
    return degree_to_numeric(chord_to_degree(chord, key)) or NO_CHORD
