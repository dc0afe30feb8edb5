"""Typer-based CLI for inspecting code-graph layouts and trace paths."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table
from rich.tree import Tree

from . import __version__
from .cli_groups import config_grp
from .config import LAYOUT_MODES, LayoutSettings
from .errors import GraphFileError
from .graph_export import export_dot, export_json, export_svg, layout_to_dict, render_dot, render_svg
from .graph_index import build_index
from .graph_io import focus_subgraph, load_graph, read_path_list
from .hierarchy import build_hierarchy
from .layout_manager import LayoutManager
from .models import GraphData, TreeNode
from .pathfinding import find_path
from .ranking import assign_ranks

console = Console()

app = typer.Typer(
    help="🕸️  CodeGraph Viz — lay out code graphs and trace paths between symbols.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

app.add_typer(config_grp, name="config")


def version_callback(value: bool):
    """Print version and exit."""
    if value:
        typer.echo(f"CodeGraph Viz v{__version__}")
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
    verbose: bool = typer.Option(False, "--verbose", help="Log engine diagnostics."),
):
    """CodeGraph Viz: layout strategies and shortest paths for code-structure graphs."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        )


def _load(graph_file: Path, focus: str = "", paths_file: Optional[Path] = None) -> GraphData:
    try:
        graph = load_graph(graph_file)
        if paths_file is not None:
            graph.file_paths = list(graph.file_paths) + read_path_list(paths_file)
    except GraphFileError as exc:
        raise typer.BadParameter(str(exc))
    return focus_subgraph(graph, focus)


def _require_nodes(graph: GraphData) -> None:
    if not graph.nodes:
        typer.echo("Graph has no nodes; nothing to lay out.")
        raise typer.Exit(code=1)


@app.command("layout")
def layout_command(
    graph_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON file with nodes and links."),
    mode: str = typer.Option("force", "--mode", "-m", help=f"Layout mode: {', '.join(LAYOUT_MODES)}."),
    width: Optional[float] = typer.Option(None, help="Canvas width (defaults to config)."),
    height: Optional[float] = typer.Option(None, help="Canvas height (defaults to config)."),
    select: Optional[str] = typer.Option(None, "--select", "-s", help="Node id to highlight and focus."),
    focus: str = typer.Option("", "--focus", "-f", help="Only lay out matches and their neighbours."),
    paths_file: Optional[Path] = typer.Option(None, "--paths", exists=True, dir_okay=False, help="Extra file paths, one per line."),
    output_format: str = typer.Option("table", "--format", help="table, json, dot or svg."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write to file instead of stdout."),
):
    """Compute node positions and edge routes for one layout mode."""
    if mode not in LAYOUT_MODES:
        raise typer.BadParameter(f"Unknown mode '{mode}'. Choose one of: {', '.join(LAYOUT_MODES)}")
    if output_format not in ("table", "json", "dot", "svg"):
        raise typer.BadParameter(f"Unknown format '{output_format}'.")

    graph = _load(graph_file, focus, paths_file)
    _require_nodes(graph)
    settings = LayoutSettings.load(width=width, height=height)

    manager = LayoutManager(settings)
    handle = manager.start_layout(mode, graph.nodes, graph.links, graph.file_paths, selected_id=select)
    result = handle.result()
    manager.cancel(handle)

    if output_format == "json":
        if output:
            export_json(result, output)
        else:
            typer.echo(json.dumps(layout_to_dict(result), indent=2))
    elif output_format == "dot":
        if output:
            export_dot(result, graph, output)
        else:
            typer.echo(render_dot(result, graph))
    elif output_format == "svg":
        if output:
            export_svg(result, graph, output)
        else:
            typer.echo(render_svg(result, graph))
    else:
        table = Table(title=f"{mode} layout ({settings.width:g}×{settings.height:g})")
        table.add_column("Node", style="cyan", overflow="fold")
        table.add_column("x", justify="right")
        table.add_column("y", justify="right")
        for node_id, pos in result.positions.items():
            marker = " ◉" if node_id == result.selected_id else ""
            table.add_row(f"{node_id}{marker}", f"{pos.x:.1f}", f"{pos.y:.1f}")
        console.print(table)

    if output:
        typer.echo(f"Wrote {output_format} layout to {output}")
    if output_format == "table":
        typer.echo(f"Mode: {mode} | Positions: {len(result.positions)} | Edges: {len(result.edges)} | Ticks: {result.tick}")


@app.command("trace")
def trace_command(
    graph_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON file with nodes and links."),
    start: str = typer.Argument(..., help="Start node id."),
    end: str = typer.Argument(..., help="End node id."),
    weighted: bool = typer.Option(True, "--weighted/--unweighted", help="Use link weights when present."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Also write an SVG with the path highlighted."),
    mode: str = typer.Option("force", "--mode", "-m", help="Layout mode for the SVG."),
):
    """Find the shortest connection between two nodes (edges walked either way)."""
    graph = _load(graph_file)
    known = {node.id for node in graph.nodes}
    missing = [node_id for node_id in (start, end) if node_id not in known]
    if missing:
        raise typer.BadParameter(f"Unknown node id(s): {', '.join(missing)}")

    result = find_path(graph.nodes, graph.links, start, end, use_weights=weighted)
    if result is None:
        typer.echo(f"No path between {start} and {end}.")
        return

    typer.echo(" → ".join(result.path))
    typer.echo(f"Hops: {len(result.links)} | Length: {result.length:g}")
    for link in result.links:
        weight = f" (weight {link.weight:g})" if link.weight is not None else ""
        console.print(f"  [dim]{link.source_id}[/dim] --{link.relation}--> [dim]{link.target_id}[/dim]{weight}")

    if output:
        manager = LayoutManager(LayoutSettings.load())
        handle = manager.start_layout(mode, graph.nodes, graph.links, graph.file_paths)
        export_svg(handle.result(), graph, output, trace=result)
        manager.cancel(handle)
        typer.echo(f"Wrote highlighted path to {output}")


def _add_branch(branch: Tree, node: TreeNode) -> None:
    for name, child in sorted(node.children.items()):
        icon = "📁" if child.is_folder else "📄"
        sub = branch.add(f"{icon} {name}")
        _add_branch(sub, child)
    for leaf in sorted(node.symbols, key=lambda s: s.name):
        sub_kind = leaf.node.kind if leaf.node.kind != "unknown" else "symbol"
        branch.add(f"[green]{leaf.name}[/green] [dim]({sub_kind})[/dim]")


@app.command("tree")
def tree_command(
    graph_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON file with nodes and links."),
    paths_file: Optional[Path] = typer.Option(None, "--paths", exists=True, dir_okay=False, help="Extra file paths, one per line."),
):
    """Show the folder → file → symbol hierarchy."""
    graph = _load(graph_file, paths_file=paths_file)
    root = build_hierarchy(graph.nodes, graph.file_paths)
    tree = Tree(f"[bold]{graph_file.name}[/bold]")
    _add_branch(tree, root)
    console.print(tree)


@app.command("stats")
def stats_command(
    graph_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON file with nodes and links."),
    top: int = typer.Option(20, "--top", "-n", help="Rows to show."),
):
    """Degree and rank per node, most connected first."""
    graph = _load(graph_file)
    index = build_index(graph.nodes, graph.links)
    ranks = assign_ranks(graph.nodes, graph.links)

    rows: List[tuple] = sorted(
        ((node_id, node.kind, index.degree[node_id], ranks[node_id]) for node_id, node in index.node_map.items()),
        key=lambda row: (-row[2], row[0]),
    )
    table = Table(title="Connectivity")
    table.add_column("Node", style="cyan", overflow="fold")
    table.add_column("Kind")
    table.add_column("Degree", justify="right")
    table.add_column("Rank", justify="right")
    for node_id, kind, degree, rank in rows[:top]:
        table.add_row(node_id, kind, str(degree), str(rank))
    console.print(table)
    typer.echo(f"Nodes: {len(index.node_map)} | Links: {len(index.links)} | Max rank: {max(ranks.values(), default=0)}")


if __name__ == "__main__":
    app()
