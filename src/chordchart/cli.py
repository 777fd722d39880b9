from __future__ import annotations
import argparse, logging, pathlib, sys
from typing import List, Tuple
import yaml

from .analyze import load_analysis
from .commands import (
    BeginSelection, CommandQueue, CreateSection, CreateSectionFromTimeRange,
    DissolveSection, DuplicateSection, EndSelection, ExtendSelection,
)
from .config import load_config, get_beats_per_bar, get_bars_per_row
from .editor import ChartEditor
from .layout import render_section

def _split_arg(value: str) -> Tuple[str, str, str]:
    """'Verse:1-8' -> ('Verse', '1', '8')"""
    kind, sep, rest = value.partition(":")
    lo, dash, hi = rest.partition("-")
    if not sep or not dash or not kind.strip():
        raise argparse.ArgumentTypeError(f"expected TYPE:FROM-TO, got {value!r}")
    return kind.strip(), lo.strip(), hi.strip()

def bar_range(value: str) -> Tuple[str, int, int]:
    kind, lo, hi = _split_arg(value)
    try:
        first, last = int(lo), int(hi)
    except ValueError:
        raise argparse.ArgumentTypeError(f"bar numbers must be integers: {value!r}")
    if first < 1 or last < 1:
        raise argparse.ArgumentTypeError(f"bar numbers start at 1: {value!r}")
    return kind, first, last

def time_range(value: str) -> Tuple[str, float, float]:
    kind, lo, hi = _split_arg(value)
    try:
        return kind, float(lo), float(hi)
    except ValueError:
        raise argparse.ArgumentTypeError(f"times must be seconds: {value!r}")

def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Bar/section chord chart editor")
    p.add_argument("--in", dest="infile", required=True, help="Analysis result (.json/.yaml)")
    p.add_argument("--config", dest="config", default=None, help="YAML config (defaults applied if omitted)")
    p.add_argument("--section", dest="sections", action="append", type=bar_range, default=[],
                   metavar="TYPE:FIRST-LAST", help="Create a section from bars FIRST..LAST (repeatable)")
    p.add_argument("--range", dest="ranges", action="append", type=time_range, default=[],
                   metavar="TYPE:START-END", help="Create a section from a time range in seconds (repeatable)")
    p.add_argument("--dissolve", action="append", type=int, default=[], metavar="INDEX",
                   help="Dissolve the section at INDEX back into the unassigned pool (repeatable)")
    p.add_argument("--duplicate", action="append", type=int, default=[], metavar="INDEX",
                   help="Add an annotation copy of the section at INDEX (repeatable)")
    p.add_argument("--bars-per-row", dest="bars_per_row", type=int, choices=(4, 8), default=None)
    p.add_argument("--out", dest="outfile", default=None, help="Write the edited sections as YAML")
    p.add_argument("--check", action="store_true", help="Fail if a bar is not in exactly one section")
    p.add_argument("--verbose", "-v", action="store_true", help="Log editor decisions")
    return p

def main(argv=None):
    args = build_parser().parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.INFO, format="[%(name)s] %(levelname)s: %(message)s")

    in_path = pathlib.Path(args.infile).expanduser().resolve()
    if not in_path.exists():
        print(f"[cli] ERROR: Input not found: {in_path}", file=sys.stderr)
        sys.exit(1)

    cfg = load_config(args.config)
    print(f"[cli] infile = {in_path}")

    try:
        analysis = load_analysis(str(in_path), get_beats_per_bar(cfg))
    except ValueError as e:
        print(f"[cli] ERROR: {e}", file=sys.stderr)
        sys.exit(2)

    editor = ChartEditor(cfg)
    editor.load(analysis)
    queue = CommandQueue(editor)

    failed = 0
    for kind, first, last in args.sections:
        queue.submit(BeginSelection(first - 1))
        queue.submit(ExtendSelection(last - 1))
        queue.submit(EndSelection())
        queue.submit(CreateSection(kind))
        failed += queue.run_pending()[-1] is None
    for kind, start, end in args.ranges:
        queue.submit(CreateSectionFromTimeRange(start, end, kind))
    failed += sum(r is None for r in queue.run_pending())

    # indices refer to the section order after the creations above
    targets = [editor.sections[i].id for i in args.dissolve if 0 <= i < len(editor.sections)]
    if len(targets) < len(args.dissolve):
        print("[cli] WARNING: ignoring --dissolve index out of range", file=sys.stderr)
    for sid in targets:
        queue.submit(DissolveSection(sid))
    for i in sorted(args.duplicate, reverse=True):
        queue.submit(DuplicateSection(i))
    failed += sum(r is None or r is False for r in queue.run_pending())
    if failed:
        print("[cli] WARNING: some edits were not applied (see --verbose)", file=sys.stderr)

    bars_per_row = args.bars_per_row or get_bars_per_row(cfg)
    title = editor.title or in_path.stem
    print(f"[cli] {title}  key={editor.key}  tempo={editor.tempo:g}  bars={len(editor.bars)}")
    lines: List[str] = []
    for section in editor.sections:
        lines.extend(render_section(section, editor.key, bars_per_row))
    print("\n".join(lines))

    if args.outfile:
        out_path = pathlib.Path(args.outfile).expanduser().resolve()
        doc = {"title": editor.title, "key": editor.key, "tempo": editor.tempo, "sections": editor.export()}
        out_path.write_text(yaml.safe_dump(doc, allow_unicode=True, sort_keys=False), encoding="utf-8")
        print(f"[cli] sections  -> {out_path}")

    if args.check:
        problems = editor.check_partition()
        for msg in problems:
            print(f"[cli] PARTITION: {msg}", file=sys.stderr)
        if problems:
            sys.exit(3)

    print(f"[cli] Done. sections={len(editor.sections)} bars={len(editor.bars)}")

if __name__ == "__main__":
    main()
