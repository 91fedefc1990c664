"""
TALC Command Line Interface (CLI)
=================================

Interactive terminal program, run like:

    talc --csv "path/to/destinations.csv"
    python -m talc.cli --csv "path/to/destinations.csv"

It demonstrates:
- Argument parsing (argparse)
- A REPL loop (Read-Eval-Print Loop) for commands
- Mapping user commands to engine methods (filters, year slider, details)

The CLI never modifies the destinations file. The only thing it writes is the
watch list (and exports/reports you ask for).
"""

from __future__ import annotations
import argparse
import logging
import shlex
import time
from typing import Callable, List, Optional
from .dataset import Dataset
from .engine import YEAR_STEPS, TALCEngine
from .errors import LoadFailure
from .loader import load_path
from .views import insights
from .watchlist import WatchListStore, default_path

logger = logging.getLogger(__name__)

HELP = """
TALC commands (grouped)
-----------------------

1) View / Inspect
   help
   stats
   insights
   show [n]                         (visible destinations, default 10)
   charts

2) Filtering
   search <text>                    (example: search ital)
   stage <stage|all>                (example: stage decline)
   type <country|location|all>
   legend <stage>                   (select stage and clear search)
   year <1980..2020|current>        (example: year 1990)
   play [seconds]                   (step the year slider through all snapshots)
   reset
   undo | redo

3) Details
   details "<name>" [country|location]
   similar "<name>" [n]
   suggest <text>

4) Watch list
   watch "<name>" [country|location]   (adds or removes)
   watchlist
   clear-watchlist

5) Export / Report
   export csv "<out.csv>"  |  export json "<out.json>"
   report "<out.docx>" [current|full]

6) Exit
   quit
"""


def _ask_yes(prompt: str = "Clear the whole watch list? [y/N] ") -> bool:
    try:
        return input(prompt).strip().lower() in ("y", "yes")
    except EOFError:
        return False


def build_engine(path: str, watchlist_path: Optional[str] = None) -> TALCEngine:
    """Load the table once. A failed load is reported once and leaves an empty dataset."""
    try:
        report = load_path(path)
        dataset = report.dataset
        print(f"Loaded {report.accepted} destinations ({len(report.rejected)} rows skipped).")
    except LoadFailure as e:
        logger.error("Load failed: %s", e)
        print(f"Could not load destinations: {e}")
        dataset = Dataset()
    return TALCEngine(dataset=dataset, watchlist=WatchListStore(watchlist_path))


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for the TALC CLI.

    1) Load dataset
    2) Build the engine (filters + sink)
    3) Start an interactive REPL
    """
    ap = argparse.ArgumentParser(description="TALC Tourism Analyzer")
    ap.add_argument("--csv", required=True, help="Path to destinations table (.csv or .xlsx)")
    ap.add_argument("--watchlist", default=None,
                    help=f"Watch list JSON file (default: $TALC_WATCHLIST or {default_path()})")
    ap.add_argument("--verbose", action="store_true", help="Log skipped rows and refresh details")
    args = ap.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    print("Loading dataset...")
    engine = build_engine(args.csv, args.watchlist)
    print("Type 'help' for commands.")
    while True:
        try:
            line = input("talc> ")
        except EOFError:
            break
        line = line.strip()
        if not line:
            continue
        if line.lower() in ("quit", "exit"):
            break
        try:
            handle(engine, line)
        except (ValueError, KeyError, RuntimeError, OSError, ImportError) as e:
            print(f"Error: {e}")
    engine.close()


def handle(engine: TALCEngine, line: str, confirm: Callable[[], bool] = _ask_yes,
           sleep: Callable[[float], None] = time.sleep) -> None:
    """Handle one CLI command line.

    This parses the command and calls the appropriate engine method.
    """
    parts = shlex.split(line)
    cmd = parts[0].lower()
    args = parts[1:]

    if cmd == "help":
        print(HELP)
        return

    if cmd == "stats":
        s = engine.stats()
        print(f"Total: {s.total} | Visible: {s.visible} | Countries: {s.countries}")
        print(f"Filters: {_describe(engine)}")
        return

    if cmd == "insights":
        f = insights(engine.dataset)
        dom = f.dominant_stage.label if f.dominant_stage else "-"
        print(f"Dominant stage: {dom} ({f.dominant_count} destinations)")
        print(f"Emerging (exploration + involvement): {f.emerging_percent}%")
        print(f"Mature (consolidation + stagnation): {f.mature_percent}%")
        print(f"Coverage: {f.country_count} countries, {f.location_count} locations")
        return

    if cmd == "show":
        n = int(args[0]) if args else 10
        rows = engine.visible()
        for d in rows[:n]:
            shown = engine.result.display_stage[d.identity]
            print(f"{d.name} ({d.entry_type.value}) | {d.country} | {shown.label}")
        if len(rows) > n:
            print(f"... ({len(rows)} visible, showing {n})")
        return

    if cmd == "charts":
        for name, series in engine.charts().items():
            pairs = ", ".join(f"{l}={v}" for l, v in zip(series.labels, series.values))
            print(f"{name}: {pairs}")
        return

    if cmd == "search":
        engine.search(" ".join(args)); _print_size(engine); return
    if cmd == "stage":
        engine.filter_stage(_need(args, "stage <name|all>")); _print_size(engine); return
    if cmd == "type":
        engine.filter_type(_need(args, "type <country|location|all>")); _print_size(engine); return
    if cmd == "legend":
        engine.quick_filter(_need(args, "legend <stage>")); _print_size(engine); return
    if cmd == "year":
        engine.set_year(_need(args, "year <year|current>")); _print_size(engine); return
    if cmd == "reset":
        engine.reset(); print("Filters reset."); _print_size(engine); return
    if cmd == "undo":
        print("Undone." if engine.undo() else "Nothing to undo."); return
    if cmd == "redo":
        print("Redone." if engine.redo() else "Nothing to redo."); return

    if cmd == "play":
        delay = float(args[0]) if args else 1.0
        for _ in YEAR_STEPS:
            engine.step_year()
            _print_size(engine)
            sleep(delay)
        return

    if cmd == "details":
        p = engine.details(_need(args, 'details "<name>"'), args[1] if len(args) > 1 else None)
        print(f"{p.name} - {p.country} [{p.type_label}]")
        if p.parent:
            print(f"Part of: {p.parent}")
        print(f"{p.stage_label} Stage: {p.description}")
        for k, v in p.characteristics:
            print(f"  {k}: {v}")
        if p.history:
            print("History: " + ", ".join(f"{y}={s}" for y, s in p.history))
        if p.children:
            print(f"Locations in {p.name}:")
            for n, s in p.children:
                print(f"  {n} ({s})")
        if p.justification:
            print(f"Why: {p.justification}")
        print(f"Coordinates: {p.coordinates}")
        print("In watch list" if p.in_watchlist else "Not in watch list")
        if p.similar:
            print("Similar: " + ", ".join(f"{s.destination.name} ({s.score})" for s in p.similar))
        return

    if cmd == "similar":
        name = _need(args, 'similar "<name>" [n]')
        n = int(args[1]) if len(args) > 1 else 5
        for s in engine.similar(name, limit=n):
            print(f"{s.score}  {s.destination.name} | {s.destination.country} | {s.destination.stage.label}")
        return

    if cmd == "suggest":
        for s in engine.suggest(" ".join(args)):
            name = s.name
            if s.highlight:
                a, b = s.highlight
                name = f"{name[:a]}[{name[a:b]}]{name[b:]}"
            print(f"{name} | {s.country} | {s.stage}")
        return

    if cmd == "watch":
        added = engine.toggle_watch(_need(args, 'watch "<name>"'), args[1] if len(args) > 1 else None)
        print("Added to watch list." if added else "Removed from watch list.")
        return

    if cmd == "watchlist":
        entries = engine.watchlist.list() if engine.watchlist is not None else []
        if not entries:
            print("Watch list is empty.")
        for e in entries:
            print(f"{e.name} ({e.type}) | {e.country} | {e.stage} | added {e.added_at}")
        return

    if cmd == "clear-watchlist":
        if engine.watchlist is None:
            raise RuntimeError("No watch list configured")
        print("Watch list cleared." if engine.watchlist.clear(confirm) else "Watch list unchanged.")
        return

    if cmd == "export":
        if len(args) < 2:
            print('Usage: export csv "out.csv"  OR  export json "out.json"')
            return
        fmt, out_path = args[0].lower(), args[1]
        if not engine.result.visible:
            print("Nothing to export: current selection is empty.")
            return
        if fmt == "csv":
            engine.export_csv(out_path); print(f"Exported CSV to {out_path}"); return
        if fmt == "json":
            engine.export_json(out_path); print(f"Exported JSON to {out_path}"); return
        print("Unknown export format. Use: csv or json")
        return

    if cmd == "report":
        from .report import generate_docx_report, ReportConfig
        path = _need(args, 'report "<path.docx>" [current|full]')
        scope = args[1].lower() if len(args) > 1 else "current"
        if scope not in ("current", "full"):
            raise ValueError("report scope must be: current | full")
        generate_docx_report(
            engine.dataset, path,
            config=ReportConfig(),
            result=engine.result if scope == "current" else None,
            watchlist=engine.watchlist,
            region_table=engine.region_table,
        )
        print(f"Report written to {path}")
        return

    print("Unknown command. Type 'help'.")


def _need(args: List[str], usage: str) -> str:
    if not args:
        raise ValueError(f"Usage: {usage}")
    return args[0]


def _describe(engine: TALCEngine) -> str:
    c = engine.criteria
    return f"search={c.query!r} stage={c.stage} type={c.entry_type} year={c.year}"


def _print_size(engine: TALCEngine) -> None:
    print(f"Visible: {len(engine.result)} of {len(engine.dataset)} ({_describe(engine)})")


if __name__ == "__main__":
    main()
