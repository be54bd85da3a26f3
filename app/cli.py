from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Optional

import typer
import uvicorn
from rich.console import Console
from rich.table import Table

from adapters.filesystem.json_utils import dump_json_bytes, load_json, write_json_atomic
from adapters.layout.closed_form import ClosedFormLayoutEngine
from app.config import AppSettings, configure_logging, load_settings
from app.session import SystemSession
from app.wiring import build_normalizer, build_system_source
from domain.errors import SystematicsError, UnsupportedSystemSize, describe_error
from domain.models import GeometryLayout
from domain.services.interaction import EdgeClicked, NodeClicked, ToggleEdgeLabels
from domain.services.viewport import LOCAL_VIEWPORT, LOCAL_WORKING_SIZE

app = typer.Typer(no_args_is_help=True)
console = Console()

ConfigOption = typer.Option(None, "--config", help="YAML settings file.")


def _settings(config_path: Path | None) -> AppSettings:
    settings = load_settings(config_path)
    configure_logging(settings.log_level)
    return settings


def _emit(payload: Any, output: Path | None) -> None:
    if output is None:
        console.print_json(dump_json_bytes(payload).decode("utf-8"))
        return
    write_json_atomic(output, payload)
    console.print(f"[green]Wrote[/] {output}")


def _fail(exc: SystematicsError) -> typer.Exit:
    console.print(f"[red]{describe_error(exc)}[/]")
    return typer.Exit(code=1)


def layout_to_dict(layout: GeometryLayout) -> dict[str, Any]:
    return {
        "node_radius": layout.node_radius,
        "nodes": [
            {"number": number, "x": point.x, "y": point.y}
            for number, point in enumerate(layout.nodes, start=1)
        ],
        "edges": [[edge.a + 1, edge.b + 1] for edge in layout.edges],
        "decorative_circles": [
            {"x": circle.center.x, "y": circle.center.y, "radius": circle.radius}
            for circle in layout.decorative_circles
        ],
    }


@app.command("systems")
def list_systems(config: Optional[Path] = ConfigOption) -> None:
    session = SystemSession(build_system_source(_settings(config)))
    asyncio.run(session.load_systems())
    if session.error is not None:
        console.print(f"[red]{session.error}[/]")
        raise typer.Exit(code=1)

    table = Table(title="Systems")
    table.add_column("Id")
    table.add_column("Name")
    table.add_column("K")
    table.add_column("Nodes", justify="right")
    table.add_column("Edges", justify="right")
    for model in session.systems:
        table.add_row(
            model.system_id,
            model.display_name,
            model.k_notation,
            str(model.node_count),
            str(len(model.edges)),
        )
    console.print(table)


@app.command("layout")
def layout(
    node_count: int = typer.Argument(..., help="Number of nodes (1..12)."),
    size: float = typer.Option(LOCAL_WORKING_SIZE, help="Working size of the layout."),
    center_x: float = typer.Option(LOCAL_VIEWPORT.center_x, help="Layout center X."),
    center_y: float = typer.Option(LOCAL_VIEWPORT.center_y, help="Layout center Y."),
    output: Optional[Path] = typer.Option(None, help="Write JSON here instead of stdout."),
) -> None:
    try:
        geometry = ClosedFormLayoutEngine().layout(node_count, center_x, center_y, size)
    except UnsupportedSystemSize as exc:
        raise _fail(exc) from exc
    _emit(layout_to_dict(geometry), output)


@app.command("normalize")
def normalize(
    input_path: Path = typer.Argument(..., help="System payload JSON file."),
    output: Optional[Path] = typer.Option(None, help="Write JSON here instead of stdout."),
    config: Optional[Path] = ConfigOption,
) -> None:
    if not input_path.exists():
        console.print(f"[red]File not found:[/] {input_path}")
        raise typer.Exit(code=1)
    normalizer = build_normalizer(_settings(config))
    try:
        model = normalizer.normalize(load_json(input_path))
    except SystematicsError as exc:
        raise _fail(exc) from exc
    for warning in model.warnings:
        console.print(f"[yellow]Warning:[/] {warning}", highlight=False)
    _emit(model.to_dict(), output)


@app.command("view")
def view(
    system_id: str = typer.Argument(..., help="System id, e.g. tetrad."),
    node: Optional[int] = typer.Option(None, help="Click this node (1-based)."),
    edge: Optional[str] = typer.Option(None, help="Click this edge, e.g. 1,3."),
    labels: bool = typer.Option(False, "--labels", help="Show connective labels."),
    output: Optional[Path] = typer.Option(None, help="Write JSON here instead of stdout."),
    config: Optional[Path] = ConfigOption,
) -> None:
    clicked_edge = _parse_edge(edge) if edge is not None else None
    session = SystemSession(build_system_source(_settings(config)))

    async def _run() -> None:
        await session.select_system(system_id)
        if session.model is None:
            return
        if node is not None:
            await session.dispatch(NodeClicked(node - 1))
        if clicked_edge is not None:
            await session.dispatch(EdgeClicked(*clicked_edge))
        if labels:
            await session.dispatch(ToggleEdgeLabels())

    asyncio.run(_run())
    graph_view = session.view()
    if graph_view is None:
        console.print(f"[red]{session.error or 'Nothing to show'}[/]")
        raise typer.Exit(code=1)
    if session.breadcrumbs:
        trail = " > ".join([*session.breadcrumbs, graph_view.system_id])
        console.print(f"[cyan]Navigated:[/] {trail}")
    _emit(graph_view.to_dict(), output)


@app.command("serve")
def serve(
    host: str = typer.Option("127.0.0.1", help="Bind address."),
    port: int = typer.Option(8080, help="Bind port."),
) -> None:
    uvicorn.run("app.web_main:app", host=host, port=port)


def _parse_edge(value: str) -> tuple[int, int]:
    parts = [part.strip() for part in value.split(",")]
    if len(parts) != 2 or not all(part.isdigit() for part in parts):
        raise typer.BadParameter("edge must look like 'a,b'", param_hint="--edge")
    first, second = int(parts[0]), int(parts[1])
    if first < 1 or second < 1 or first == second:
        raise typer.BadParameter("edge must join two distinct 1-based nodes", param_hint="--edge")
    return first - 1, second - 1


if __name__ == "__main__":
    app()
