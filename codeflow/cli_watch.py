"""Watch mode: rebuild the component map when source files change."""

from __future__ import annotations

import threading
import time
from pathlib import Path
from typing import Callable, List, Optional, Set

import typer
from rich.console import Console

from .config import DEFAULT_EXPORT_FILE
from .parser import LANGUAGE_MAP, SKIP_DIRS

console = Console()

watch_app = typer.Typer(help="👀 Watch mode for auto-refreshing the component map")


class CodeChangeHandler:
    """Collect source-file change events and flush them after a quiet period.

    Events for unsupported extensions, hidden paths and dependency/build
    directories under *root* are ignored.  :meth:`flush` hands the pending
    paths to the callback once *debounce_seconds* have passed since the last
    relevant event.
    """

    def __init__(
        self,
        root: Path,
        refresh_callback: Callable[[List[Path]], None],
        debounce_seconds: float = 2.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.root = Path(root)
        self.refresh_callback = refresh_callback
        self.debounce_seconds = debounce_seconds
        self.clock = clock
        self.last_event = 0.0
        self._pending_files: Set[str] = set()
        self._lock = threading.Lock()

    @property
    def pending(self) -> List[str]:
        with self._lock:
            return sorted(self._pending_files)

    def dispatch(self, event):
        """Route events to handler methods."""
        if event.is_directory:
            return
        for attr in ("src_path", "dest_path"):
            path = getattr(event, attr, None)
            if path:
                self._handle_change(path)

    def _handle_change(self, src_path: str):
        file_path = Path(src_path)
        if file_path.suffix.lower() not in LANGUAGE_MAP:
            return
        try:
            parts = file_path.relative_to(self.root).parts
        except ValueError:
            parts = file_path.parts
        # Skip hidden/temp files and dependency trees
        if any(part.startswith(".") or part in SKIP_DIRS for part in parts):
            return

        with self._lock:
            self._pending_files.add(str(file_path))
            self.last_event = self.clock()

    def flush(self) -> bool:
        """Run the callback if changes are pending and the debounce has elapsed."""
        with self._lock:
            if not self._pending_files:
                return False
            if self.clock() - self.last_event < self.debounce_seconds:
                return False
            files = [Path(f) for f in sorted(self._pending_files)]
            self._pending_files.clear()
        self.refresh_callback(files)
        return True


@watch_app.command("start")
def watch(
    path: Path = typer.Argument(Path("."), exists=True, file_okay=False, help="Path to watch for changes."),
    interval: Optional[float] = typer.Option(None, "--interval", "-i", min=0.0, help="Debounce interval in seconds."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help=f"Markdown file (default: PATH/{DEFAULT_EXPORT_FILE})."),
    title: str = typer.Option("Component Map", "--title", "-t", help="Document title."),
):
    """👀 Watch mode: refresh the component map on file changes.

    Monitors the directory for source changes and rewrites the Markdown
    component map after each debounced batch.

    Example:
      codeflow watch start
      codeflow watch start ./src --interval 5
    """
    from watchdog.events import FileSystemEventHandler
    from watchdog.observers import Observer

    from .session import CodeFlowSession

    session = CodeFlowSession(path)
    target = output or session.root / DEFAULT_EXPORT_FILE
    debounce = session.settings.debounce_seconds if interval is None else interval
    refresh_count = 0

    def refresh(changed: List[Path]):
        nonlocal refresh_count
        if not session.settings.auto_refresh:
            console.print(f"  [yellow]•[/yellow] {len(changed)} file(s) changed (auto refresh disabled)")
            return
        try:
            graph = session.refresh()
            target.write_text(session.markdown(title), encoding="utf-8")
        except OSError as e:
            console.print(f"  [red]✗[/red] Refresh failed: {e}")
            return
        refresh_count += 1
        names = ", ".join(p.name for p in changed[:3]) + ("..." if len(changed) > 3 else "")
        console.print(
            f"  [green]✓[/green] {len(graph.nodes)} components, {len(graph.edges)} relationships ({names} changed)"
        )

    graph = session.refresh()
    target.write_text(session.markdown(title), encoding="utf-8")

    console.print(f"\n[bold green]👀 Watching[/bold green] [cyan]{session.root}[/cyan] for changes...")
    console.print(f"[dim]  Debounce:  {debounce}s")
    console.print(f"  Output:    {target}")
    console.print(f"  Initial:   {len(graph.nodes)} components, {len(graph.edges)} relationships")
    console.print("  Press Ctrl+C to stop[/dim]\n")

    handler = CodeChangeHandler(session.root, refresh, debounce_seconds=debounce)

    class WatchdogAdapter(FileSystemEventHandler):
        def on_modified(self, event):
            handler.dispatch(event)

        def on_created(self, event):
            handler.dispatch(event)

        def on_deleted(self, event):
            handler.dispatch(event)

        def on_moved(self, event):
            handler.dispatch(event)

    observer = Observer()
    observer.schedule(WatchdogAdapter(), str(session.root), recursive=True)
    observer.start()

    try:
        while True:
            time.sleep(0.5)
            handler.flush()
    except KeyboardInterrupt:
        observer.stop()
        console.print(f"\n[yellow]Stopped watching.[/yellow] Refreshed {refresh_count} time(s).")

    observer.join()
