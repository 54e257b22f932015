"""
Feedback Runner - Command-line front end for the feedback store.

Provides a CLI for:
- Submitting a rating for a student
- Listing responses in the chosen order
- Changing the stored sort preference
- Exporting responses to Feedback.csv
- Resetting all saved data

Usage:
    python -m src.feedback.runner --interactive
"""

import argparse
import logging
from pathlib import Path
from typing import Callable, Optional

from src.config import FEEDBACK_BACKEND, FEEDBACK_STORE_PATH, LOG_LEVEL
from src.feedback.display import format_row
from src.feedback.errors import FeedbackError
from src.feedback.export import EXPORT_FILENAME
from src.feedback.gateway import create_gateway
from src.feedback.models import DEFAULT_RATING, MAX_RATING, MIN_RATING, SortMode
from src.feedback.store import ResponseStore


logger = logging.getLogger(__name__)


def build_store(backend: str = FEEDBACK_BACKEND, path: Path = FEEDBACK_STORE_PATH) -> ResponseStore:
    """Create and load a store for the configured backend."""
    store = ResponseStore(create_gateway(backend, path))
    store.initialize()
    return store


class FeedbackRunner:
    """
    Interactive feedback collection.

    Mirrors the actions of the rating form: submit, sort, export, reset.
    """

    def __init__(self, store: ResponseStore, input_func: Callable[[str], str] = input):
        self.store = store
        self.input = input_func

    def submit(self, student_id: str, rating: int = DEFAULT_RATING) -> bool:
        """Submit a rating. Returns False if it was rejected."""
        try:
            record = self.store.upsert(student_id, rating)
        except FeedbackError as e:
            print(f"Error: {e}")
            return False
        print(f"Rating saved: {record.student_id} -> {rating}")
        return True

    def show_list(self, sort_mode: Optional[str] = None):
        """Print responses in display order."""
        records = self.store.sorted_records(sort_mode)
        if not records:
            print("No responses yet.")
            return
        width = max(len(r.student_id) for r in records)
        for record in records:
            print(format_row(record, width=width))

    def set_sort(self, sort_mode: str) -> bool:
        try:
            mode = self.store.set_sort_mode(sort_mode)
        except (ValueError, FeedbackError) as e:
            print(f"Error: {e}")
            return False
        print(f"Sorting by {mode.value}")
        return True

    def export(self, output_path: Optional[str] = None) -> Optional[Path]:
        """Write the CSV export. Returns the path written, or None."""
        if not self.store.can_export():
            print("Nothing to export.")
            return None

        path = Path(output_path or EXPORT_FILENAME)
        try:
            with open(path, "w", encoding="utf-8", newline="") as f:
                f.write(self.store.export_csv())
        except OSError as e:
            print(f"Error: could not write {path}: {e}")
            return None
        print(f"CSV saved successfully: {path}")
        return path

    def reset(self, confirm: bool = True) -> int:
        """Delete all responses after confirmation. Returns count removed."""
        if not self.store.can_reset():
            print("Nothing to reset.")
            return 0

        if confirm:
            answer = self.input("Reset all saved data? [y/N]: ").strip().lower()
            if answer not in ("y", "yes"):
                print("Cancelled.")
                return 0

        try:
            removed = self.store.clear_all()
        except FeedbackError as e:
            print(f"Error: {e}")
            return 0
        print("All entries deleted.")
        return removed

    def show_stats(self):
        """Display feedback statistics."""
        stats = self.store.stats()
        print("\nFeedback Statistics")
        print("=" * 40)
        print(f"Total entries: {stats['total']}")
        if stats["average"] is not None:
            print(f"Average rating: {stats['average']:.2f}")
        print("\nBy rating:")
        for rating, count in sorted(stats["by_rating"].items(), reverse=True):
            pct = count / stats["total"] * 100 if stats["total"] > 0 else 0
            print(f"  {rating}: {count} ({pct:.1f}%)")

    def interactive(self):
        """Run interactive feedback mode."""
        print("\n" + "=" * 60)
        print("Student Feedback")
        print("=" * 60)
        print("\nCommands:")
        print("  Type a student id to rate them")
        print("  'list' - Show responses")
        print("  'sort id' / 'sort rating' - Change ordering")
        print("  'export' - Save Feedback.csv")
        print("  'stats' - Show statistics")
        print("  'reset' - Delete all responses")
        print("  'quit' - Exit\n")

        while True:
            try:
                user_input = self.input("Student ID: ").strip()
            except (KeyboardInterrupt, EOFError):
                print("\nGoodbye!")
                break

            if not user_input:
                continue

            command = user_input.lower()

            if command in ("quit", "exit", "q"):
                print("Goodbye!")
                break

            if command == "list":
                self.show_list()
                continue

            if command.startswith("sort "):
                choice = command.split(None, 1)[1]
                self.set_sort(_SORT_SHORTCUTS.get(choice, choice))
                continue

            if command == "export":
                self.export()
                continue

            if command == "stats":
                self.show_stats()
                continue

            if command == "reset":
                self.reset()
                continue

            rating = self._get_rating()
            if rating is not None:
                self.submit(user_input, rating)

    def _get_rating(self) -> Optional[int]:
        """Prompt for a rating. Returns None if skipped."""
        while True:
            choice = self.input(f"Rating {MIN_RATING}-{MAX_RATING} [{DEFAULT_RATING}], 's' to skip: ").strip().lower()

            if choice == "s":
                print("Skipped.")
                return None

            if not choice:
                return DEFAULT_RATING

            if choice.isdigit() and MIN_RATING <= int(choice) <= MAX_RATING:
                return int(choice)

            print(f"Invalid choice. Use {MIN_RATING}-{MAX_RATING} or s")


_SORT_SHORTCUTS = {
    "id": SortMode.BY_IDENTIFIER.value,
    "rating": SortMode.BY_RATING.value,
}


def main(argv: Optional[list[str]] = None):
    parser = argparse.ArgumentParser(description="Student Feedback Runner")
    parser.add_argument("--interactive", "-i", action="store_true", help="Interactive mode")
    parser.add_argument("--submit", type=str, metavar="STUDENT_ID", help="Submit a rating for a student")
    parser.add_argument("--rating", type=int, default=DEFAULT_RATING, help="Rating for --submit (1-5)")
    parser.add_argument("--list", action="store_true", help="List responses")
    parser.add_argument("--sort", type=str, choices=[m.value for m in SortMode], help="Order for --list")
    parser.add_argument("--set-sort", type=str, choices=[m.value for m in SortMode], help="Save sort preference")
    parser.add_argument("--export", nargs="?", const=EXPORT_FILENAME, metavar="PATH", help="Export to CSV")
    parser.add_argument("--reset", action="store_true", help="Delete all responses")
    parser.add_argument("--yes", "-y", action="store_true", help="Skip reset confirmation")
    parser.add_argument("--stats", action="store_true", help="Show statistics")
    parser.add_argument("--backend", type=str, default=FEEDBACK_BACKEND, help="Storage backend")
    parser.add_argument("--store", type=Path, default=FEEDBACK_STORE_PATH, help="Storage file path")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    runner = FeedbackRunner(build_store(args.backend, args.store))

    if args.interactive:
        runner.interactive()
    elif args.submit is not None:
        runner.submit(args.submit, args.rating)
    elif args.set_sort:
        runner.set_sort(args.set_sort)
    elif args.list:
        runner.show_list(args.sort)
    elif args.export:
        runner.export(args.export)
    elif args.reset:
        runner.reset(confirm=not args.yes)
    elif args.stats:
        runner.show_stats()
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
