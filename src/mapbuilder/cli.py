"""Command Line Interface for Map Builder.

This module provides a simple CLI for checking layout invariants, applying
scripted operations and synthesizing connectors between adjacent rooms.
"""

import json
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .config import load_config
from .core.model import Layout
from .core.topology import build_room_graph, connected_groups, room_neighbors
from .engine.api import apply_operations
from .engine.persistence import InMemoryStore
from .engine.session import LayoutSession
from .engine.validators import find_isolated_rooms, find_violations
from .io.parser import load_layout, save_layout

app = typer.Typer(
    name="map-builder",
    help="A CLI tool for map layout checks and operations",
    no_args_is_help=True,
)
console = Console()


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging")):
    """Map Builder command line."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _open_session(layout: Layout, config_path: Optional[Path]) -> LayoutSession:
    session = LayoutSession(InMemoryStore(layout), config=load_config(config_path), camera=layout.camera)
    session.load()
    return session


def _save(session: LayoutSession, output: Path) -> None:
    output.parent.mkdir(parents=True, exist_ok=True)
    save_layout(session.to_layout(), output)
    console.print(f"[green]✓[/green] Layout saved to {output}")


@app.command()
def check(
    layout: Path = typer.Option(..., "--layout", "-l", help="Path to layout JSON file"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to engine config JSON file"),
):
    """Check a layout for invariant violations and isolated rooms."""
    try:
        layout_obj = load_layout(layout)
        engine_config = load_config(config)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    console.print(f"[green]✓[/green] Loaded layout from {layout}")
    violations = find_violations(layout_obj, engine_config.min_room_size)

    if violations:
        table = Table(title="Violations")
        table.add_column("Rule", style="cyan")
        table.add_column("Entities")
        table.add_column("Message")
        for violation in violations:
            table.add_row(violation.rule, ", ".join(violation.entity_ids), violation.message)
        console.print(table)

    for floor in layout_obj.floors:
        isolated = find_isolated_rooms(layout_obj, floor)
        if isolated:
            console.print(f"[yellow]![/yellow] Floor {floor}: rooms without connectors: {', '.join(isolated)}")

    if violations:
        console.print(f"\n[bold red]✗ {len(violations)} violation(s) found[/bold red]")
        raise typer.Exit(1)
    console.print("\n[bold green]✓ Layout is consistent[/bold green]")


@app.command()
def apply(
    layout: Path = typer.Option(..., "--layout", "-l", help="Path to layout JSON file"),
    operations: Path = typer.Option(..., "--operations", "-p", help="Path to operations JSON file"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Output path (defaults to the layout file)"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to engine config JSON file"),
):
    """Apply a list of operations to a layout and save the result."""
    try:
        session = _open_session(load_layout(layout), config)
        with open(operations, encoding="utf-8") as f:
            operations_data = json.load(f)
    except FileNotFoundError as e:
        console.print(f"[red]Error: File not found - {e}[/red]")
        raise typer.Exit(1)
    except (json.JSONDecodeError, ValueError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    if isinstance(operations_data, dict):
        operations_data = [operations_data]
    console.print(f"[green]✓[/green] Loaded {len(operations_data)} operations from {operations}")

    results = apply_operations(session, operations_data)

    table = Table(title="Operations")
    table.add_column("#", justify="right")
    table.add_column("Op", style="cyan")
    table.add_column("Status", justify="center")
    table.add_column("Details")
    for result in results:
        details = result.get("error") or "; ".join(w["message"] for w in result["warnings"])
        status = "[green]✓[/green]" if result["success"] else "[red]✗[/red]"
        table.add_row(str(result["operation_index"] + 1), str(result["operation"].get("op")), status, details)
    console.print(table)

    _save(session, output or layout)

    failed = sum(1 for r in results if not r["success"])
    if failed:
        console.print(f"[red]✗ {failed}/{len(results)} operations failed[/red]")
        raise typer.Exit(1)
    console.print(f"[green]✓[/green] Applied {len(results)} operations successfully")


@app.command()
def connect(
    layout: Path = typer.Option(..., "--layout", "-l", help="Path to layout JSON file"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Output path (defaults to the layout file)"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to engine config JSON file"),
):
    """Create connectors for every pair of exactly adjacent rooms."""
    try:
        session = _open_session(load_layout(layout), config)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    created = []
    for room in sorted(session.rooms.values(), key=lambda r: (r.floor, r.id)):
        created.extend(session.connect_adjacent(room))

    for connector in created:
        console.print(
            f"  + {connector.id}: {connector.from_room} <-> {connector.to_room} "
            f"at ({connector.x:g}, {connector.y:g})"
        )
    console.print(f"[green]✓[/green] Created {len(created)} connector(s)")
    _save(session, output or layout)


@app.command()
def info(
    layout: Path = typer.Option(..., "--layout", "-l", help="Path to layout JSON file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="List room neighbors"),
):
    """Show per-floor statistics for a layout."""
    try:
        layout_obj = load_layout(layout)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    table = Table(title=f"Layout {layout.name}")
    table.add_column("Floor", justify="right")
    table.add_column("Rooms", justify="right")
    table.add_column("Connectors", justify="right")
    table.add_column("Furniture", justify="right")
    table.add_column("Groups", justify="right")

    for floor in layout_obj.floors:
        graph = build_room_graph(layout_obj.rooms.values(), layout_obj.connectors.values(), floor)
        room_ids = {r.id for r in layout_obj.rooms_on_floor(floor)}
        furniture = [f for f in layout_obj.furniture.values() if f.room_id in room_ids]
        connectors = [
            c for c in layout_obj.connectors.values() if c.from_room in room_ids or c.to_room in room_ids
        ]
        table.add_row(
            str(floor),
            str(graph.number_of_nodes()),
            str(len(connectors)),
            str(len(furniture)),
            str(len(connected_groups(graph))),
        )
    console.print(table)

    if verbose:
        graph = build_room_graph(layout_obj.rooms.values(), layout_obj.connectors.values())
        for room_id, neighbors in room_neighbors(graph).items():
            console.print(f"  {room_id}: {', '.join(neighbors) or '-'}")


if __name__ == "__main__":
    app()
