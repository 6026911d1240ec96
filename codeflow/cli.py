"""Typer-based CLI for codeflow component maps."""

from __future__ import annotations

import json
import logging
from dataclasses import replace
from pathlib import Path
from typing import List, Optional

import toml
import typer
from rich.console import Console
from rich.table import Table

from . import __version__, config_manager
from .cli_watch import watch_app
from .config import DEFAULT_EXPORT_FILE
from .errors import UnknownNodeError
from .session import CodeFlowSession

console = Console()

app = typer.Typer(
    help="🗺️  codeflow: map the components of a code base as Mermaid diagrams.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)
config_app = typer.Typer(help="⚙️  Inspect and change codeflow settings.", no_args_is_help=True)

app.add_typer(watch_app, name="watch")
app.add_typer(config_app, name="config")


def version_callback(value: bool):
    """Print version and exit."""
    if value:
        typer.echo(f"codeflow v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-V", help="Enable debug logging."),
):
    """codeflow: scan a source tree and render its components and relationships."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )


def _open_session(path: Path, exclude: Optional[List[str]] = None) -> CodeFlowSession:
    settings = config_manager.load_settings(path.resolve())
    if exclude:
        settings.exclude_patterns.extend(exclude)
    session = CodeFlowSession(path, settings)
    session.refresh()
    if not session.graph.nodes:
        typer.echo(f"No components found under {session.root}.", err=True)
    return session


def _write_or_echo(text: str, output: Optional[Path], what: str) -> None:
    if output is None:
        typer.echo(text)
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(text + "\n", encoding="utf-8")
    typer.echo(f"Wrote {what} to {output}")


@app.command("map")
def map_components(
    path: Path = typer.Argument(..., exists=True, file_okay=False, help="Root of the source tree."),
    exclude: Optional[List[str]] = typer.Option(None, "--exclude", "-e", help="Glob to exclude (repeatable)."),
    max_nodes: Optional[int] = typer.Option(None, "--max-nodes", "-n", min=1, help="Node cap for the diagram."),
    direction: Optional[str] = typer.Option(None, "--direction", "-d", help="Flowchart direction: TB, LR, BT, RL."),
    no_labels: bool = typer.Option(False, "--no-labels", help="Omit imported names on edges."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write to a file instead of stdout."),
    as_json: bool = typer.Option(False, "--json", help="Emit the graph as JSON instead of Mermaid."),
):
    """Scan PATH and print its component diagram."""
    session = _open_session(path, exclude)

    if as_json:
        _write_or_echo(json.dumps(session.graph.to_dict(), indent=2), output, "graph JSON")
        return

    overrides = {}
    if max_nodes is not None:
        overrides["max_nodes"] = max_nodes
    if direction is not None:
        overrides["direction"] = direction.upper()
    if no_labels:
        overrides["show_labels"] = False
    try:
        diagram_config = replace(session.settings.diagram, **overrides)
    except ValueError as exc:
        raise typer.BadParameter(str(exc))

    _write_or_echo(session.diagram(diagram_config), output, "diagram")


@app.command("focus")
def focus(
    path: Path = typer.Argument(..., exists=True, file_okay=False, help="Root of the source tree."),
    node: str = typer.Argument(..., help="Component id or exact name."),
    depth: Optional[int] = typer.Option(None, "--depth", "-d", min=0, help="Maximum hops from the component."),
    exclude: Optional[List[str]] = typer.Option(None, "--exclude", "-e", help="Glob to exclude (repeatable)."),
):
    """Print the diagram of the components around NODE."""
    session = _open_session(path, exclude)
    try:
        text = session.focus_diagram(node, depth)
    except UnknownNodeError:
        typer.echo(f"❌ Component '{node}' not found.", err=True)
        suggestions = [n for n in session.graph.nodes if node.lower() in n.name.lower()][:5]
        if suggestions:
            typer.echo("\n💡 Did you mean one of these?", err=True)
            for candidate in suggestions:
                typer.echo(f"   - {candidate.name} ({candidate.kind.value}) {candidate.id}", err=True)
        raise typer.Exit(code=1)
    typer.echo(text)


@app.command("stats")
def stats(
    path: Path = typer.Argument(..., exists=True, file_okay=False, help="Root of the source tree."),
    exclude: Optional[List[str]] = typer.Option(None, "--exclude", "-e", help="Glob to exclude (repeatable)."),
):
    """Show component counts by type and language."""
    session = _open_session(path, exclude)
    summary = session.stats()

    console.print(f"\n[bold cyan]📊 {session.root}[/bold cyan]")
    console.print(
        f"Components: [bold]{summary.total_nodes}[/bold]  "
        f"Relationships: [bold]{summary.total_edges}[/bold]  "
        f"Avg connections: [bold]{summary.avg_connections}[/bold]\n"
    )

    table = Table(title="By Type", show_header=True)
    table.add_column("Type", style="cyan")
    table.add_column("Count", justify="right")
    for kind, count in sorted(summary.by_type.items(), key=lambda item: (-item[1], item[0])):
        table.add_row(kind, str(count))
    console.print(table)

    table = Table(title="By Language", show_header=True)
    table.add_column("Language", style="cyan")
    table.add_column("Count", justify="right")
    for language, count in sorted(summary.by_language.items(), key=lambda item: (-item[1], item[0])):
        table.add_row(language, str(count))
    console.print(table)


@app.command("export")
def export(
    path: Path = typer.Argument(..., exists=True, file_okay=False, help="Root of the source tree."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help=f"Markdown file (default: PATH/{DEFAULT_EXPORT_FILE})."),
    title: str = typer.Option("Component Map", "--title", "-t", help="Document title."),
    exclude: Optional[List[str]] = typer.Option(None, "--exclude", "-e", help="Glob to exclude (repeatable)."),
):
    """Write a Markdown report with the diagram and statistics."""
    session = _open_session(path, exclude)
    target = output or session.root / DEFAULT_EXPORT_FILE
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(session.markdown(title), encoding="utf-8")
    typer.echo(f"Exported component map to {target}")


@app.command("errors")
def errors(
    path: Path = typer.Argument(..., exists=True, file_okay=False, help="Root of the source tree."),
    exclude: Optional[List[str]] = typer.Option(None, "--exclude", "-e", help="Glob to exclude (repeatable)."),
):
    """List files that could not be read or extracted."""
    session = _open_session(path, exclude)
    failed = session.errors
    if not failed:
        typer.echo("No parse errors.")
        return
    for result in failed:
        typer.echo(result.file_path)
        for message in result.errors:
            typer.echo(f"  - {message}")
    typer.echo(f"\n{len(failed)} file(s) with errors.")


# ------------------------------------------------------------------
# Configuration
# ------------------------------------------------------------------

@config_app.command("show")
def config_show(
    path: Optional[Path] = typer.Argument(None, exists=True, file_okay=False, help="Include PATH/.codeflow.toml overrides."),
):
    """Print the effective configuration."""
    effective = config_manager.load_config(path.resolve() if path else None)
    console.print(f"[dim]# {config_manager.CONFIG_FILE}[/dim]")
    typer.echo(toml.dumps(effective))


@config_app.command("set")
def config_set(
    key: str = typer.Argument(..., help="Setting as section.name, e.g. diagram.max_nodes."),
    value: str = typer.Argument(..., help="New value (comma separated for lists)."),
):
    """Change one setting in the user config file."""
    try:
        stored = config_manager.save_setting(key, value)
    except KeyError:
        known = ", ".join(
            f"{section}.{name}"
            for section, values in config_manager.DEFAULT_CONFIG.items()
            for name in values
        )
        raise typer.BadParameter(f"Unknown setting '{key}'. Known settings: {known}")
    except ValueError as exc:
        raise typer.BadParameter(str(exc))
    except OSError as exc:
        console.print(f"[red]✗[/red] {exc}")
        raise typer.Exit(code=1)
    console.print(f"[green]✓[/green] {key} = {stored!r}")


@config_app.command("reset")
def config_reset():
    """Remove the user config file and return to defaults."""
    if not config_manager.reset_config():
        console.print("[red]✗[/red] Could not reset configuration.")
        raise typer.Exit(code=1)
    console.print("[green]✓[/green] Configuration reset to defaults.")
