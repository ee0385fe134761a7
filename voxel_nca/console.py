"""Console output for the voxel automaton.

Usage:
    from voxel_nca.console import console

    with console.spinner("Loading model..."):
        backend = load_torchscript(path)

    console.success("Backend attached", detail="TorchModuleBackend")
    console.warn("No backend attached")
    console.error("Inference failed", detail=str(err))
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Optional

from rich.console import Console as RichConsole
from rich.panel import Panel
from rich.text import Text


class Console:
    """Rich-backed status output shared by the engine, session and CLI."""

    __slots__ = ("_console", "quiet")

    def __init__(self, *, stderr: bool = True) -> None:
        self._console = RichConsole(stderr=stderr)
        self.quiet = False

    @contextmanager
    def spinner(self, message: str):
        """Show a spinner while work is in progress."""
        if self.quiet:
            yield
            return
        with self._console.status(f"[bold cyan]{message}", spinner="dots"):
            yield

    def success(self, message: str, *, detail: Optional[str] = None, title: Optional[str] = None) -> None:
        if self.quiet:
            return
        if title:
            text = Text(message, style="bold green")
            if detail:
                text.append(f"\n{detail}", style="dim")
            self._console.print(Panel(text, title=f"[cyan]{title}[/cyan]", border_style="green"))
            return
        self._console.print(f"[bold green]✓[/bold green] {message}" + (f" [dim]{detail}[/dim]" if detail else ""))

    def warn(self, message: str, *, detail: Optional[str] = None) -> None:
        if self.quiet:
            return
        self._console.print(f"[yellow]⚠[/yellow] {message}" + (f" [dim]{detail}[/dim]" if detail else ""))

    def error(self, message: str, *, detail: Optional[str] = None) -> None:
        # Errors are never silenced.
        self._console.print(f"[bold red]✗[/bold red] {message}" + (f" [dim]{detail}[/dim]" if detail else ""))

    def info(self, message: str, *, detail: Optional[str] = None) -> None:
        if self.quiet:
            return
        self._console.print(f"[blue]•[/blue] {message}" + (f" [dim]{detail}[/dim]" if detail else ""))

    def block(self, title: str, body: str) -> None:
        """Show preformatted text (tables, reports) verbatim in a panel."""
        if self.quiet:
            return
        self._console.print(Panel(Text(body), title=f"[cyan]{title}[/cyan]", border_style="blue", expand=False))

    def header(self, title: str, **fields: str) -> None:
        """Show a panel with key-value fields."""
        if self.quiet:
            return
        lines = [f"[bold]{k}:[/bold] {v}" for k, v in fields.items()]
        self._console.print(Panel("\n".join(lines), title=f"[cyan]{title}[/cyan]", border_style="blue"))


console = Console()
