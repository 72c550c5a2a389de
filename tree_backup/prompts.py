"""Console menu asking whether to reprocess a failure manifest."""

from __future__ import annotations

from typing import Callable

from .ledger import ConfirmChoice, ManifestSummary

MENU_CHOICES = {
    "1": ConfirmChoice.LIST,
    "2": ConfirmChoice.PROCEED,
    "3": ConfirmChoice.CANCEL,
}


def print_menu(summary: ManifestSummary) -> None:
    """Print the reprocessing menu."""
    print()
    print(f"File Reprocessing Menu for Backup Performed On: {summary.created_at}")
    print(f"  Bucket: {summary.bucket}  Failed files: {summary.failed_count:,}")
    print()
    print("1: List files to reprocess")
    print("2: Reprocess now")
    print("3: Cancel reprocessing")
    print()


def console_confirm(
    summary: ManifestSummary, input_func: Callable[[str], str] = input
) -> ConfirmChoice:
    """Ask on the console until a valid menu choice is entered."""
    while True:
        print_menu(summary)
        try:
            response = input_func("Enter choice: ").strip()
        except EOFError:
            print("\nConfirmation not received.")
            return ConfirmChoice.CANCEL
        choice = MENU_CHOICES.get(response)
        if choice is not None:
            return choice
