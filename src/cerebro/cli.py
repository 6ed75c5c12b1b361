"""
CLI for Cerebro.

Minimal CLI using stdlib argument handling.
Subcommands are imported lazily to keep startup fast.

Usage:
    cerebro "your capture here"     # Classify and save (primary interface)
    cerebro board                   # Kanban board of tasks
    cerebro --help                  # Show help
"""

import sys


def print_help() -> None:
    """Print help message."""
    print("""cerebro - capture-first productivity tracker

Usage:
    cerebro "your capture here"      Classify and save a capture

Commands:
    cerebro list [options]           List entries (--type, --status, --all)
    cerebro board [--by priority]    Kanban board of tasks
    cerebro goals [--period P]       Goals and their progress
    cerebro find <query>             Full-text search
    cerebro done <id>                Mark an entry as done
    cerebro move <id> <status>       Move an entry (pending, in_progress, done)
    cerebro priority <id> <p>        Set priority (low, medium, high, urgent, none)
    cerebro check <id> <n>           Toggle checklist item n
    cerebro progress <id> [amount]   Add progress to a goal (default 1)
    cerebro delete <id>              Delete an entry
    cerebro classify <text>          Show the raw model classification
    cerebro stats                    Show database statistics
    cerebro health                   Check configuration and services
    cerebro telegram                 Run the Telegram bot

Options:
    cerebro --help, -h               Show this help
    cerebro --version, -v            Show version

Examples:
    cerebro "comprar leite urgente"
    cerebro "correr 10km por mês"
    cerebro list --type task --status in_progress
    cerebro move 3f9a1c2e done

IDs can be shortened to their first 8 characters.""")


def print_version() -> None:
    """Print version."""
    from cerebro import __version__
    print(f"cerebro {__version__}")


def _parse_options(args: list[str], flags: dict[str, str], switches: dict[str, str] | None = None) -> dict:
    """Parse `--flag value` pairs and bare `--switch` options."""
    options: dict = {}
    switches = switches or {}
    i = 0
    while i < len(args):
        arg = args[i]
        if arg in flags and i + 1 < len(args):
            options[flags[arg]] = args[i + 1]
            i += 2
        elif arg in switches:
            options[switches[arg]] = True
            i += 1
        else:
            i += 1
    return options


def _resolve(db, identifier: str, table: str = "entries") -> str | None:
    """Resolve an ID prefix, reporting failures."""
    record_id = db.resolve_id(identifier, table=table)
    if not record_id:
        print(f"Not found or ambiguous: {identifier}", file=sys.stderr)
    return record_id


def capture(text: str) -> int:
    """Classify and save a capture."""
    from cerebro.capture import capture as run_capture
    from cerebro.classifier import Classifier
    from cerebro.config import ensure_dirs, load_config, load_session
    from cerebro.db import Database
    from cerebro.errors import AuthenticationError, PersistenceError
    from cerebro.surfacing import format_capture_result

    config = load_config()
    ensure_dirs()

    try:
        result = run_capture(
            text,
            session=load_session(config),
            classifier=Classifier(config),
            db=Database(),
        )
    except AuthenticationError as e:
        print(f"Error: {e}. Set CEREBRO_USER_ID or [session] user_id.", file=sys.stderr)
        return 1
    except PersistenceError as e:
        print(f"Save failed, try again: {e}", file=sys.stderr)
        return 1
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if result.ai_failed:
        print("Warning: AI classification unavailable, saved with defaults.", file=sys.stderr)
    print(format_capture_result(result))
    return 0


def cmd_list(args: list[str]) -> int:
    """List entries with optional filters."""
    from cerebro.surfacing import get_entries_formatted

    options = _parse_options(
        args,
        flags={"--type": "entry_type", "-t": "entry_type", "--status": "status", "-s": "status"},
        switches={"--all": "include_done", "-a": "include_done"},
    )

    try:
        print(get_entries_formatted(**options))
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_board(args: list[str]) -> int:
    """Show the Kanban board."""
    from cerebro.surfacing import get_board_formatted

    group_by = _parse_options(args, flags={"--by": "group_by"}).get("group_by", "status")
    if group_by not in ("status", "priority"):
        print("Usage: cerebro board [--by status|priority]", file=sys.stderr)
        return 1

    try:
        print(get_board_formatted(group_by=group_by))
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_goals(args: list[str]) -> int:
    """Show goals and their progress."""
    from cerebro.db import Database
    from cerebro.surfacing import format_goals

    period = _parse_options(args, flags={"--period": "period", "-p": "period"}).get("period")

    try:
        print(format_goals(Database().get_goals(period_type=period)))
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_find(args: list[str]) -> int:
    """Full-text search entries."""
    from cerebro.surfacing import search_entries_formatted

    if not args:
        print("Usage: cerebro find <query>", file=sys.stderr)
        return 1

    query = " ".join(args)

    try:
        print(search_entries_formatted(query))
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_done(args: list[str]) -> int:
    """Mark an entry as done."""
    from cerebro.db import Database

    if not args:
        print("Usage: cerebro done <id>", file=sys.stderr)
        return 1

    db = Database()
    entry_id = _resolve(db, args[0])
    if not entry_id:
        return 1

    if db.complete_entry(entry_id):
        print(f"Completed: {args[0]}")
        return 0
    print(f"Already done: {args[0]}", file=sys.stderr)
    return 1


def cmd_move(args: list[str]) -> int:
    """Move an entry to another status column."""
    from cerebro.db import Database
    from cerebro.models import STATUSES

    if len(args) < 2 or args[1] not in STATUSES:
        print(f"Usage: cerebro move <id> <{'|'.join(STATUSES)}>", file=sys.stderr)
        return 1

    db = Database()
    entry_id = _resolve(db, args[0])
    if not entry_id:
        return 1

    db.update_status(entry_id, args[1])
    print(f"Moved {args[0]} → {args[1]}")
    return 0


def cmd_priority(args: list[str]) -> int:
    """Set an entry's priority."""
    from cerebro.db import Database
    from cerebro.models import PRIORITIES

    if len(args) < 2 or args[1] not in PRIORITIES + ("none",):
        print(f"Usage: cerebro priority <id> <{'|'.join(PRIORITIES)}|none>", file=sys.stderr)
        return 1

    db = Database()
    entry_id = _resolve(db, args[0])
    if not entry_id:
        return 1

    priority = None if args[1] == "none" else args[1]
    db.update_priority(entry_id, priority)
    print(f"Priority of {args[0]} → {args[1]}")
    return 0


def cmd_check(args: list[str]) -> int:
    """Toggle a checklist item (1-based on the command line)."""
    from cerebro.db import Database

    if len(args) < 2 or not args[1].isdigit():
        print("Usage: cerebro check <id> <item number>", file=sys.stderr)
        return 1

    db = Database()
    entry_id = _resolve(db, args[0])
    if not entry_id:
        return 1

    try:
        db.toggle_checklist_item(entry_id, int(args[1]) - 1)
    except IndexError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    item = db.get_entry(entry_id)["checklist"][int(args[1]) - 1]
    mark = "x" if item["done"] else " "
    print(f"[{mark}] {item['text']}")
    return 0


def cmd_progress(args: list[str]) -> int:
    """Add progress to a goal."""
    from cerebro.db import Database
    from cerebro.errors import PersistenceError
    from cerebro.surfacing import format_goals

    if not args:
        print("Usage: cerebro progress <goal id> [amount]", file=sys.stderr)
        return 1

    try:
        amount = float(args[1]) if len(args) > 1 else 1.0
    except ValueError:
        print(f"Invalid amount: {args[1]}", file=sys.stderr)
        return 1

    db = Database()
    goal_id = _resolve(db, args[0], table="goals")
    if not goal_id:
        return 1

    try:
        goal = db.add_goal_progress(goal_id, amount)
    except PersistenceError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(format_goals([goal]))
    return 0


def cmd_delete(args: list[str]) -> int:
    """Delete an entry."""
    from cerebro.db import Database

    if not args:
        print("Usage: cerebro delete <id>", file=sys.stderr)
        return 1

    db = Database()
    entry_id = _resolve(db, args[0])
    if not entry_id:
        return 1

    db.delete_entry(entry_id)
    print(f"Deleted: {args[0]}")
    return 0


def cmd_classify(args: list[str]) -> int:
    """Run the model classification directly and print its JSON."""
    import json

    from cerebro.errors import ClassificationServiceError
    from cerebro.service import ClassificationService

    if not args:
        print("Usage: cerebro classify <text>", file=sys.stderr)
        return 1

    try:
        service = ClassificationService()
        result = service.classify(" ".join(args))
    except (ValueError, ClassificationServiceError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(json.dumps(result, indent=2, ensure_ascii=False))
    return 0


def cmd_stats() -> int:
    """Show database statistics."""
    from cerebro.db import Database

    try:
        db = Database()
        stats = db.get_stats()

        print("Cerebro Statistics")
        print("-" * 30)
        print(f"Total entries: {stats['total_entries']}")
        print("\nBy type:")
        for entry_type, count in stats.get("by_type", {}).items():
            print(f"  {entry_type}: {count}")
        print("\nBy status:")
        for status, count in stats.get("by_status", {}).items():
            print(f"  {status}: {count}")
        print(f"\nGoals: {stats['total_goals']}")
        print(f"Saved without AI: {stats['classifier_fallbacks']}")

        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_health() -> int:
    """Run health checks."""
    from cerebro.health import format_health_report, run_health_check

    print(format_health_report(run_health_check()))
    return 0


def cmd_telegram() -> int:
    """Run the Telegram bot."""
    from cerebro.telegram_bot import main as bot_main

    return bot_main()


COMMANDS = {
    "list": cmd_list,
    "board": cmd_board,
    "goals": cmd_goals,
    "find": cmd_find,
    "done": cmd_done,
    "move": cmd_move,
    "priority": cmd_priority,
    "check": cmd_check,
    "progress": cmd_progress,
    "delete": cmd_delete,
    "classify": cmd_classify,
}


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    from cerebro.config import load_config, setup_logging

    args = sys.argv[1:] if argv is None else argv
    setup_logging(load_config())

    # No args - check for piped input
    if not args:
        if not sys.stdin.isatty():
            text = sys.stdin.read().strip()
            if text:
                return capture(text)
        print_help()
        return 0

    first_arg = args[0]

    if first_arg in ("--help", "-h", "help"):
        print_help()
        return 0

    if first_arg in ("--version", "-v", "version"):
        print_version()
        return 0

    if first_arg in COMMANDS:
        return COMMANDS[first_arg](args[1:])

    if first_arg == "stats":
        return cmd_stats()

    if first_arg == "health":
        return cmd_health()

    if first_arg == "telegram":
        return cmd_telegram()

    # Everything else is a capture
    # Join all args (allows: cerebro comprar leite urgente)
    text = " ".join(args)

    if not text.strip():
        print("Error: Empty capture", file=sys.stderr)
        return 1

    return capture(text)


if __name__ == "__main__":
    sys.exit(main())
