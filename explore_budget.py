"""
Budget Mind Map Explorer

Browse a hierarchical budget dataset from the terminal: totals and shares
for any node, name search, drill-down with back/reset, validation checks,
and per-node notes.

Usage:
    python explore_budget.py "Ministry of Finance"
    python explore_budget.py --path "/Thailand National Budget (FY2025)/Ministry of Finance"
    python explore_budget.py --summary
    python explore_budget.py --validate
    python explore_budget.py --interactive
    python explore_budget.py --path /Budget/Ministry --add-note "Check Q3 figures"
"""

import argparse
import json
import logging
import sys
import textwrap
from pathlib import Path

from budget_tree.aggregator import percentage_share, summarize
from budget_tree.dataset import DatasetSession
from budget_tree.errors import BudgetTreeError, NotesUnavailableError
from budget_tree.models import BudgetNode
from budget_tree.navigator import Navigator
from budget_tree.notes import JsonFileNotesStore, NotesStore, export_filename
from utils.config import AppConfig
from utils.formatting import (
    ReportFormatter,
    TableFormatter,
    format_amount,
    format_count,
    format_path,
    format_share,
    truncate_text,
)
from utils.validation import validate_tree

logger = logging.getLogger("explore_budget")


# ── Display ───────────────────────────────────────────────────────────────────

def show_summary(session: DatasetSession, currency: str = "THB") -> None:
    """Show dataset summary statistics."""
    info = session.dataset.summary()
    print("=" * 65)
    print(f"  {info['name']}")
    print("=" * 65)
    print(f"\n  Source:            {info['source']}"
          + ("  (demo data)" if info["is_demo"] else ""))
    print(f"  Grand total:       {format_amount(info['total'], currency)}")
    print(f"  Top-level items:   {format_count(info['top_level_count'])}")
    print(f"  Nodes:             {format_count(info['node_count'])}")
    print(f"  Leaves:            {format_count(info['leaf_count'])}")
    meta = info.get("meta") or {}
    for key, value in meta.items():
        print(f"  {key + ':':<19}{value}")
    for warning in session.dataset.warnings:
        print(f"\n  WARNING: {warning}")
    print()


def show_node(node: BudgetNode, path, parent_total=None,
              currency: str = "THB") -> None:
    """Print a node's figures and its children's shares as a table."""
    summary = summarize(node, parent_total)
    report = ReportFormatter(title=format_path(path))
    details = {
        "Total": format_amount(summary.total, currency),
        "Share of parent": format_share(summary.share),
        "Leaves": format_count(summary.leaf_count),
    }
    if summary.value is not None:
        details["Explicit value"] = format_amount(summary.value, currency)
    report.add_section("Details", details)
    if summary.desc:
        report.add_section("Description", truncate_text(summary.desc, 300))
    print(report.to_string())

    if not summary.children:
        print("  (no children)\n")
        return
    table = TableFormatter(["", "Name", "Total", "Share"])
    table.right_align = {2, 3}
    for child in summary.children:
        marker = "+" if child.has_children else " "
        table.add_row([marker, truncate_text(child.name, 50),
                       format_amount(child.total, currency),
                       format_share(child.share)])
    print(table.to_string())
    print()


def show_current(navigator: Navigator, currency: str = "THB") -> None:
    path = navigator.current_path
    show_node(navigator.current_root, path, navigator.parent_total(path), currency)


def show_search(navigator: Navigator, query: str, limit: int = 25,
                currency: str = "THB") -> int:
    """Print search results; returns the number of matches shown."""
    results = navigator.search(query, limit=limit)
    if not results:
        print(f"\n  No node matches '{query}'.\n")
        return 0
    print(f"\n  {len(results)} match(es) for '{query}':\n")
    table = TableFormatter(["Path", "Total", "Share"])
    table.right_align = {1, 2}
    for entry in results:
        table.add_row([truncate_text(format_path(entry.path), 70),
                       format_amount(entry.total, currency),
                       format_share(percentage_share(entry.total, entry.parent_total))])
    print(table.to_string())
    print()
    return len(results)


def show_validation(session: DatasetSession) -> bool:
    """Run the tree checks and print the report; True when no errors."""
    result = validate_tree(session.root)
    print(result.summary_text())
    for issue in result.issues:
        line = f"  [{issue.severity.upper()}] {issue.check_name}: {issue.detail}"
        if issue.sample:
            line += f" (e.g. {issue.sample})"
        print(line)
    return result.is_valid()


def show_notes(notes: NotesStore, path) -> None:
    entries = notes.list(path)
    if not entries:
        print("  (no notes)")
        return
    for entry in entries:
        print(f"  [{entry.timestamp}] {entry.text}")


def export_notes(notes: NotesStore, path, out_dir: Path = Path(".")) -> Path:
    """Write a node's notes to notes_<path>.json and return the file path."""
    target = out_dir / export_filename(path)
    with open(target, "w", encoding="utf-8") as f:
        json.dump(notes.export(path), f, indent=2, ensure_ascii=False)
    return target


# ── Interactive mode ──────────────────────────────────────────────────────────

HELP_TEXT = """\
  Commands:
    ls                     Show the current node and its children
    cd <child>             Drill into a child of the current node
    cd /<path>             Drill to an absolute path
    find <query>           Search node names
    go <query>             Drill to the best search match
    back                   Go back one level
    reset                  Return to the dataset root
    info                   Dataset summary
    notes                  Show notes for the current node
    note <text>            Add a note to the current node
    quit / exit            Exit
"""


def interactive_mode(session: DatasetSession, notes: NotesStore,
                     currency: str = "THB") -> None:
    """Interactive navigation REPL."""
    print("=" * 65)
    print("  BUDGET MIND MAP - Interactive Explorer")
    print("=" * 65)
    print()
    print(HELP_TEXT)

    navigator = session.navigator
    show_current(navigator, currency)

    while True:
        try:
            raw = input(f"{navigator.current_root.name}> ").strip()
        except (EOFError, KeyboardInterrupt):
            print("\nGoodbye.")
            break

        if not raw:
            continue
        command, _, arg = raw.partition(" ")
        command = command.lower()
        arg = arg.strip()

        if command in ("quit", "exit", "q"):
            print("Goodbye.")
            break
        if command in ("help", "?"):
            print(HELP_TEXT)
        elif command == "ls":
            show_current(navigator, currency)
        elif command == "cd":
            if not arg or arg == "..":
                navigator.go_back()
                show_current(navigator, currency)
                continue
            target = arg if arg.startswith("/") else navigator.current_path + (arg,)
            if navigator.drill_to_path(target) is None:
                print(f"  Not found: {arg}")
            else:
                show_current(navigator, currency)
        elif command == "find":
            try:
                show_search(navigator, arg, currency=currency)
            except BudgetTreeError as exc:
                print(f"  {exc}")
        elif command == "go":
            try:
                frame = navigator.drill_to_query(arg)
            except BudgetTreeError as exc:
                print(f"  {exc}")
                continue
            if frame is None:
                print(f"  No node matches '{arg}'")
            else:
                show_current(navigator, currency)
        elif command == "back":
            if not navigator.go_back():
                print("  Already at the start.")
            show_current(navigator, currency)
        elif command == "reset":
            navigator.reset()
            show_current(navigator, currency)
        elif command == "info":
            show_summary(session, currency)
        elif command == "notes":
            show_notes(notes, navigator.current_path)
        elif command == "note":
            try:
                notes.append(navigator.current_path, arg)
                print("  Note saved.")
            except NotesUnavailableError as exc:
                print(f"  Could not save note: {exc}")
            except ValueError as exc:
                print(f"  {exc}")
        else:
            print(f"  Unknown command: {command} (type 'help')")


# ── Main ──────────────────────────────────────────────────────────────────────

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Explore a hierarchical budget dataset",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""
            Examples:
              python explore_budget.py "Ministry of Finance"
              python explore_budget.py --path "/Thailand National Budget (FY2025)"
              python explore_budget.py --data my_budget.json --summary
              python explore_budget.py --validate
              python explore_budget.py --interactive
              python explore_budget.py --path /Budget/Ministry --list-notes
              python explore_budget.py --notes-index
        """),
    )
    parser.add_argument("query", nargs="?", default=None,
                        help="Search node names (use quotes for multi-word)")
    parser.add_argument("--data", type=Path, default=None,
                        help="Dataset JSON file (default: BUDGET_DATA_PATH or "
                             "data/th_budget_FY2025.json; demo data if missing)")
    parser.add_argument("--path", default=None,
                        help="Show the node at this path, e.g. /Root/Ministry")
    parser.add_argument("--top", type=int, default=25,
                        help="Number of search results (default: 25)")
    parser.add_argument("--summary", action="store_true",
                        help="Show dataset summary")
    parser.add_argument("--validate", action="store_true",
                        help="Run dataset validation checks")
    parser.add_argument("--interactive", "-i", action="store_true",
                        help="Interactive explorer")
    parser.add_argument("--notes-file", type=Path, default=None,
                        help="Notes JSON file (default: BUDGET_NOTES_PATH or notes.json)")
    parser.add_argument("--add-note", default=None, metavar="TEXT",
                        help="Add a note to the node given by --path")
    parser.add_argument("--list-notes", action="store_true",
                        help="List notes for the node given by --path")
    parser.add_argument("--clear-notes", action="store_true",
                        help="Delete all notes for the node given by --path")
    parser.add_argument("--export-notes", action="store_true",
                        help="Write notes for --path to notes_<path>.json")
    parser.add_argument("--notes-index", action="store_true",
                        help="List every node path that has notes")
    return parser


def _notes_command(args, navigator: Navigator, notes: NotesStore) -> int:
    if args.path is None:
        print("ERROR: --path is required for note commands")
        return 2
    resolved = navigator.resolve_by_path(args.path)
    if resolved is None:
        print(f"ERROR: Node not found: {args.path}")
        return 1
    _, names = resolved
    try:
        if args.add_note is not None:
            notes.append(names, args.add_note)
            print(f"Note added to {format_path(names)}")
        if args.clear_notes:
            notes.clear(names)
            print(f"Notes cleared for {format_path(names)}")
        if args.export_notes:
            target = export_notes(notes, names)
            print(f"Notes written to {target}")
    except NotesUnavailableError as exc:
        print(f"ERROR: {exc}")
        return 1
    except ValueError as exc:
        print(f"ERROR: {exc}")
        return 2
    if args.list_notes:
        show_notes(notes, names)
    return 0


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    cfg = AppConfig.from_env()
    logging.basicConfig(level=getattr(logging, cfg.log_level, logging.INFO),
                        format="%(levelname)s %(name)s %(message)s")

    session = DatasetSession(max_depth=cfg.max_depth)
    if args.data is not None:
        try:
            session.load_file(args.data)
        except BudgetTreeError as exc:
            print(f"ERROR: {exc}")
            return 1
    else:
        session.load_default(cfg.data_path)
    navigator = session.navigator
    notes = JsonFileNotesStore(args.notes_file or cfg.notes_path)
    currency = cfg.currency

    if args.notes_index:
        for path_str in notes.keys():
            print(path_str)
        return 0
    if args.add_note is not None or args.list_notes or args.clear_notes or args.export_notes:
        return _notes_command(args, navigator, notes)

    if args.summary:
        show_summary(session, currency)
    elif args.validate:
        return 0 if show_validation(session) else 1
    elif args.interactive:
        interactive_mode(session, notes, currency)
    elif args.path:
        resolved = navigator.resolve_by_path(args.path)
        if resolved is None:
            print(f"ERROR: Node not found: {args.path}")
            return 1
        node, names = resolved
        show_node(node, names, navigator.parent_total(names), currency)
    elif args.query:
        try:
            found = show_search(navigator, args.query, limit=args.top, currency=currency)
        except BudgetTreeError as exc:
            print(f"ERROR: {exc}")
            return 2
        return 0 if found else 1
    else:
        parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
