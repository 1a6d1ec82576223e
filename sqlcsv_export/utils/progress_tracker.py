"""Progress tracking utilities."""

from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.progress import (
    Progress,
    BarColumn,
    TextColumn,
    TimeElapsedColumn,
    MofNCompleteColumn,
)


class ProgressTracker:
    """Manages console output and progress bar creation."""

    def __init__(
            self,
            console: Optional[Console] = None,
            error_console: Optional[Console] = None
    ):
        """
        Initialize progress tracker with consoles.

        Args:
            console: Console for progress output (stdout by default)
            error_console: Console for warnings and errors (stderr by default)
        """
        self.console = console or Console()
        self.error_console = error_console or Console(stderr=True)

    def create_progress_bar(self) -> Progress:
        """
        Create configured Progress instance.

        Returns:
            Configured Progress instance for context manager use
        """
        return Progress(
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            "[progress.percentage]{task.percentage:>3.0f}%",
            "•",
            MofNCompleteColumn(),
            "•",
            TimeElapsedColumn(),
            console=self.console,
            expand=True
        )

    def print_header(self, message: str):
        """Print formatted header message."""
        self.console.print(f"🚀 [bold magenta]{escape(message)}[/bold magenta]\n")

    def print_info(self, message: str):
        """Print information message."""
        self.console.print(escape(message))

    def print_success(self, message: str):
        """Print success message."""
        self.console.print(f"✅ {escape(message)}")

    def print_error(self, message: str):
        """Print error message."""
        self.error_console.print(f"❌ [red]{escape(message)}[/red]")

    def print_warning(self, message: str):
        """Print warning message."""
        self.error_console.print(f"⚠️  [yellow]{escape(message)}[/yellow]")

    def print_processing(self, message: str):
        """Print processing status message."""
        self.console.print(f"📅 Processing: [bold blue]{escape(message)}[/bold blue]")
