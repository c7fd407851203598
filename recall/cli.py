"""CLI: command-line interface for recall."""

import argparse
import pathlib
import sys
from datetime import datetime, timedelta, timezone

from recall.app import App
from recall.audit import audit_cards, prune_card
from recall.config import review_config
from recall.db import load_cards, log_review, review_counts, update_cards
from recall.errors import RecallError
from recall.formatting import format_card_line, format_datetime_opt, format_tags
from recall.review_session import ReviewSession, due_cards
from recall.schedulers import ALGORITHMS, MAX_GRADE, MIN_GRADE
from recall.sync import ScanMode


def cmd_scan(args, app: App):
    paths = [pathlib.Path(p).resolve() for p in args.path] or [pathlib.Path.cwd()]
    file_types = args.file_types.split(",") if args.file_types else None
    mode = ScanMode.FULL if args.full else ScanMode.INCREMENTAL

    with app.lock():
        app.init_db()
        print(f"Scanning {len(paths)} path(s) ({mode.value})...")
        report = app.scan(paths, mode=mode, file_types=file_types)
        app.close()
    print(f"Synced: {report.new} new, {report.updated} updated, "
          f"{report.orphaned} orphaned, {report.unchanged} unchanged")


def _review_config(args, app: App):
    return review_config(
        app.settings,
        algorithm=args.algorithm,
        tags=set(args.tag) if args.tag else None,
        include_orphans=True if args.include_orphans else None,
        maximum_cards_per_session=args.maximum_cards_per_session,
        maximum_duration_minutes=args.maximum_duration,
        leech_failure_threshold=args.leech_failure_threshold,
        leech_method=args.leech_method,
        reverse_probability=args.reverse_probability,
        cram=True if args.cram else None,
        cram_hours=args.cram_hours,
    )


def _read_grade() -> int | None:
    """Prompt until a valid grade is entered. Returns None to stop."""
    while True:
        answer = input(f"Grade [{MIN_GRADE}-{MAX_GRADE}], s=skip, q=quit: ").strip().lower()
        if answer == "q":
            return None
        if answer == "s":
            return -1
        if answer.isdigit() and MIN_GRADE <= int(answer) <= MAX_GRADE:
            return int(answer)
        print(f"Enter a number from {MIN_GRADE} to {MAX_GRADE}.")


def _run_session(session: ReviewSession):
    while True:
        item = session.get_next_card()
        if item is None:
            break
        print()
        print(f"[{session.remaining_count()} left] {format_tags(item.card.tags)}")
        if item.leech_warning:
            print("Warning: this card is a leech")
        if item.card.orphaned:
            print("Warning: this card is orphaned")
        print(item.front)
        try:
            input("(press Enter to reveal)")
        except EOFError:
            break
        print(item.back)
        try:
            grade = _read_grade()
        except EOFError:
            break
        if grade is None:
            break
        if grade < 0:
            session.skip_current()
            continue
        session.grade_current(grade)


def cmd_revise(args, app: App):
    config = _review_config(args, app)
    with app.lock():
        app.init_db()
        session = ReviewSession(load_cards(app.conn).values(), config)
        if not session.queue:
            print("No cards to review.")
            app.close()
            return
        print(f"{len(session.queue)} card(s) to review ({config.algorithm}"
              f"{', cram' if config.cram else ''})")
        try:
            _run_session(session)
        except KeyboardInterrupt:
            print()
        finally:
            update_cards(app.conn, session.reviewed.values())
            for card_id, grade, graded_at in session.grades:
                log_review(app.conn, card_id, grade, graded_at,
                           config.algorithm, config.cram)
            app.close()
    print(f"Reviewed {len(session.grades)} card(s).")


def _resolve_card(cards: dict, prefix: str):
    matches = [cid for cid in cards if cid.startswith(prefix)]
    if len(matches) != 1:
        raise KeyError(f"{'No' if not matches else 'Ambiguous'} card id: {prefix}")
    return matches[0]


def cmd_audit(args, app: App):
    with app.lock():
        app.init_db()
        cards = load_cards(app.conn)
        if args.delete:
            try:
                card = prune_card(app.conn, _resolve_card(cards, args.delete))
            except (KeyError, ValueError) as e:
                print(f"Error: {e.args[0]}", file=sys.stderr)
                app.close()
                sys.exit(1)
            print(f"Deleted {card.id[:12]}: {card.prompt}")
        else:
            flagged = audit_cards(cards.values())
            if not flagged:
                print("No orphaned or leeched cards.")
            for card in flagged:
                print(format_card_line(card))
        app.close()


def cmd_status(args, app: App):
    if not app.db_path.exists():
        print("No database found. Run 'recall scan' first.")
        return

    app.init_db()
    now = datetime.now(timezone.utc)
    cards = load_cards(app.conn)
    algorithm = app.settings.get("algorithm", "sm2")
    due = due_cards(cards.values(), now, algorithm=algorithm, warn=False)
    orphans = sum(1 for c in cards.values() if c.orphaned)
    leeches = sum(1 for c in cards.values() if c.review_history.leech)
    reviewed_today, total_reviews = review_counts(app.conn, now - timedelta(days=1))
    last = max((c.review_history.last_reviewed for c in cards.values()
                if c.review_history.last_reviewed), default=None)

    print(f"Cards:          {len(cards)} total ({orphans} orphaned, {leeches} leeches)")
    print(f"Due now:        {len(due)}")
    print(f"Reviewed (24h): {reviewed_today}")
    print(f"Total reviews:  {total_reviews}")
    print(f"Last review:    {format_datetime_opt(last)}")

    sources: dict[str, int] = {}
    for card in cards.values():
        if not card.orphaned:
            sources[card.source_location.file_path] = sources.get(card.source_location.file_path, 0) + 1
    if sources:
        print("\nSources:")
        for path in sorted(sources):
            print(f"  {path}: {sources[path]} cards")

    app.close()


def main():
    parser = argparse.ArgumentParser(prog="recall", description="Flashcards from plain-text notes")
    subparsers = parser.add_subparsers(dest="command")

    p_scan = subparsers.add_parser("scan", help="Scan notes and sync cards to the DB")
    p_scan.add_argument("path", nargs="*", help="Paths to scan (default: cwd)")
    p_scan.add_argument("--full", action="store_true",
                        help="Treat the paths as the whole collection; orphan every missing card")
    p_scan.add_argument("--file-types", help="Comma-separated extensions (default: md,txt,org)")

    p_revise = subparsers.add_parser("revise", help="Review due cards")
    p_revise.add_argument("--algorithm", choices=ALGORITHMS)
    p_revise.add_argument("--tag", action="append", help="Only cards with this tag (repeatable)")
    p_revise.add_argument("--include-orphans", action="store_true")
    p_revise.add_argument("--maximum-cards-per-session", type=int)
    p_revise.add_argument("--maximum-duration", type=int, help="Session length in minutes")
    p_revise.add_argument("--leech-failure-threshold", type=int)
    p_revise.add_argument("--leech-method", choices=["skip", "warn"])
    p_revise.add_argument("--reverse-probability", type=float)
    p_revise.add_argument("--cram", action="store_true", help="Review cards regardless of due date")
    p_revise.add_argument("--cram-hours", type=int,
                          help="Skip cards reviewed within this many hours when cramming")

    p_audit = subparsers.add_parser("audit", help="List orphaned and leeched cards")
    p_audit.add_argument("--delete", metavar="ID", help="Delete an orphaned or leeched card")

    subparsers.add_parser("status", help="Show card counts and stats")

    args = parser.parse_args()
    if not args.command:
        parser.print_help()
        sys.exit(1)

    app = App()
    if not app.recall_dir.exists():
        app.recall_dir.mkdir(parents=True, exist_ok=True)
        print(f"Created recall directory: {app.recall_dir}")

    commands = {
        "scan": cmd_scan,
        "revise": cmd_revise,
        "audit": cmd_audit,
        "status": cmd_status,
    }
    try:
        commands[args.command](args, app)
    except (RecallError, ValueError) as e:
        app.close()
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
