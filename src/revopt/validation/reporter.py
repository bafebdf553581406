"""
Console reporter for load results.

Formats provenance and a row preview using Rich.
"""

from rich.console import Console
from rich.table import Table

from revopt.schemas.provenance import DataSource, LoadResult, Provenance


class ConsoleReporter:
    """Formats and displays load results to the console."""

    def __init__(self, console: Console) -> None:
        """
        Initialize console reporter.

        Args:
            console: Rich Console instance for output.
        """
        self.console = console

    def print_result(self, result: LoadResult, preview_rows: int = 5) -> None:
        """
        Print provenance and the first rows of a load result.

        Args:
            result: Result to display.
            preview_rows: Number of rows to show (0 disables the preview).
        """
        self.print_provenance(result.meta, result.row_count)
        if preview_rows > 0 and result.rows:
            self.print_rows(result, preview_rows)

    def print_provenance(self, meta: Provenance, row_count: int) -> None:
        """Print a provenance summary table."""
        table = Table(title="Dataset Provenance", show_header=True)
        table.add_column("Field", style="cyan", no_wrap=True)
        table.add_column("Value")

        table.add_row("Source", self._format_source(meta.source))
        table.add_row("Rows", str(row_count))
        table.add_row("Loaded at", meta.loaded_at.isoformat() if meta.loaded_at else "-")

        manifest = meta.manifest
        if manifest is not None:
            table.add_row("Payload URL", manifest.url)
            table.add_row("Version", manifest.version or "-")
            table.add_row("Schema version", manifest.schema_version or "-")
            table.add_row("SHA-256", manifest.sha256 or "[dim]not published[/dim]")

        self.console.print(table)

    def print_rows(self, result: LoadResult, limit: int) -> None:
        """Print the first rows of a result."""
        columns = list(result.rows[0].keys())
        table = Table(
            title=f"First {min(limit, result.row_count)} of {result.row_count} rows",
            show_header=True,
        )
        for col in columns:
            table.add_column(col, overflow="fold")

        for row in result.rows[:limit]:
            table.add_row(*(row.get(col, "") for col in columns))

        self.console.print(table)

    def _format_source(self, source: DataSource) -> str:
        if source == DataSource.NETWORK:
            return "[green]network[/green]"
        return "[yellow]cache (last known good)[/yellow]"
