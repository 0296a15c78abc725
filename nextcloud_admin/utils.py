"""
Utility functions for Nextcloud Admin.

Console output helpers, logging setup and input validation.
"""

import json
import logging
import re
import sys
from enum import Enum
from typing import Any, List, Sequence

import click

# Printable ASCII except "@" before the separator; the domain needs at least
# one dot and every label after the first dot is two characters or more.
# Matched with fullmatch so a trailing newline is rejected.
EMAIL_PATTERN = re.compile(
    r"[\x21-\x3f\x41-\x7e]+@[a-zA-Z0-9-]+(?:\.[a-zA-Z0-9-][a-zA-Z0-9-]+)+"
)


class OutputFormat(str, Enum):
    """Output format options."""
    TABLE = "table"
    JSON = "json"


def is_valid_email(value: str) -> bool:
    """Check whether a string looks like an email address."""
    return bool(value) and EMAIL_PATTERN.fullmatch(value) is not None


def setup_logging(verbose: bool = False, quiet: bool = False) -> None:
    """
    Configure logging for the CLI.

    Args:
        verbose: Enable debug output
        quiet: Only show errors
    """
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR
    else:
        level = logging.WARNING

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
        force=True,
    )


def print_success(message: str) -> None:
    """Print a success message."""
    click.echo(click.style("✓ ", fg="green") + message)


def print_error(message: str, details: str = "") -> None:
    """Print an error message to stderr."""
    click.echo(click.style("✗ ", fg="red") + message, err=True)
    if details:
        click.echo(f"  {details}", err=True)


def print_info(message: str) -> None:
    """Print an informational message."""
    click.echo(click.style("ℹ ", fg="blue") + message)


def print_json(data: Any) -> None:
    """Print data as indented JSON."""
    click.echo(json.dumps(data, indent=2, default=str))


def print_table(headers: Sequence[str], rows: List[Sequence[Any]]) -> None:
    """Print rows as a plain aligned table."""
    widths = [len(str(h)) for h in headers]
    for row in rows:
        for i, cell in enumerate(row):
            widths[i] = max(widths[i], len(str(cell)))

    def fmt(cells: Sequence[Any]) -> str:
        return "  ".join(str(c).ljust(widths[i]) for i, c in enumerate(cells)).rstrip()

    click.echo(fmt(headers))
    click.echo("  ".join("-" * w for w in widths))
    for row in rows:
        click.echo(fmt(row))


def print_list(title: str, items: List[str]) -> None:
    """Print a titled bullet list."""
    click.echo(f"\n{title} ({len(items)} total):\n")
    for item in items:
        click.echo(f"  • {item}")


def truncate_string(value: str, max_length: int = 50) -> str:
    """Truncate a string, marking the cut with an ellipsis."""
    if len(value) <= max_length:
        return value
    return value[: max_length - 3] + "..."


def confirm_action(message: str, default: bool = False) -> bool:
    """Ask the user to confirm an action."""
    return click.confirm(message, default=default)
