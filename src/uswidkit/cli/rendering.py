"""CLI error and summary rendering with Rich."""

from __future__ import annotations

from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from uswidkit.collection import IdentityCollection
from uswidkit.errors import UswidError


def render_error(console: Console, exc: Exception) -> None:
    """Render one failure as a red panel.

    Args:
        console: Console to print on (normally stderr).
        exc: Failure to show.
    """
    code = exc.code.value if isinstance(exc, UswidError) else type(exc).__name__
    console.print(
        Panel(
            escape(str(exc)),
            title=escape(f"Error [{code}]"),
            border_style="bold red",
            expand=True,
        )
    )


def render_written(
    console: Console, collection: IdentityCollection, output_file: Path
) -> None:
    """Render a table of written identities and the target path.

    Args:
        console: Console to print on.
        collection: Collection that was written.
        output_file: Destination path.
    """
    table = Table(
        title=f"Identities ({len(collection)})",
        show_header=True,
        header_style="bold cyan",
    )
    table.add_column("Tag ID", style="green", no_wrap=True)
    table.add_column("Name", style="bold")
    table.add_column("Version", style="magenta")
    table.add_column("Links", justify="right")
    for identity in collection:
        table.add_row(
            escape(identity.tag_id),
            escape(identity.software_name),
            escape(identity.software_version or ""),
            str(len(identity.links)),
        )
    console.print(table)
    console.print(f"Wrote [bold]{escape(str(output_file))}[/bold]")
