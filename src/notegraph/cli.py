from __future__ import annotations

import json
import logging
from dataclasses import asdict
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table
from rich.text import Text

from .config import Settings
from .errors import InvalidArgument
from .graph.autolink import find_auto_links
from .graph.clustering import cluster as cluster_nodes
from .graph.clustering import summarize_clusters
from .graph.emerging import find_emerging
from .graph.query import expand_query
from .graph.relationships import classify, infer_relationships, score
from .graph.tagstats import build_tag_cooccurrence, expand_tags, expand_tags_full, suggest_tags, tag_counts
from .index.embedder import embed, embed_nodes
from .index.vector_store import VectorEntry, find_nearest, make_search
from .model import Node, nodes_from_payload


app = typer.Typer(add_completion=False, help="notegraph: similarity, clustering and trends over your notes.")
console = Console()
err_console = Console(stderr=True)

logger = logging.getLogger("notegraph")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging to stderr"),
):
    """Analyze a JSON export of knowledge-graph nodes."""
    settings = Settings()
    level = logging.DEBUG if verbose else getattr(logging, settings.log_level.upper(), logging.WARNING)
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def _load_nodes(path: Path) -> list[Node]:
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
        nodes = nodes_from_payload(payload)
    except (OSError, json.JSONDecodeError, InvalidArgument) as e:
        console.print(f"Could not load nodes from {path}: {e}", style="red", markup=False)
        raise typer.Exit(code=2)
    logger.debug("Loaded %d nodes from %s", len(nodes), path)
    return nodes


def _find(nodes: list[Node], node_id: str) -> Node:
    for n in nodes:
        if n.id == node_id:
            return n
    console.print(f"No node with id {node_id!r}", style="red", markup=False)
    raise typer.Exit(code=2)


def _preview(text: str, n: int = 120) -> str:
    t = " ".join(text.split())
    if len(t) > n:
        t = t[:n].rstrip() + "..."
    return t


@app.command()
def similar(
    nodes_path: Path = typer.Option(..., "--nodes", exists=True, file_okay=True, dir_okay=False, help="JSON export of nodes"),
    query: str = typer.Argument(...),
    k: int = typer.Option(10, "-k", help="Number of neighbors"),
    method: str | None = typer.Option(None, "--method", help="brute or hyperplane (default from settings)"),
    expand: bool = typer.Option(False, "--expand", help="Add tag synonyms to the query before embedding"),
):
    """Find the nodes most similar to a free-text query."""
    settings = Settings()
    nodes = _load_nodes(nodes_path)
    by_id = {n.id: n for n in nodes}

    try:
        ids, vectors = embed_nodes(nodes, settings.dimension, tag_weight=settings.tag_weight)
        entries = [VectorEntry(id=i, vector=v) for i, v in zip(ids, vectors)]
        search = make_search(
            method or settings.neighbor_search,
            settings.dimension,
            num_planes=settings.ann_planes,
            seed=settings.ann_seed,
        )
        search.build(entries)
        text = expand_query(query).text if expand else query
        logger.debug("Query text: %s", text)
        qvec = embed(text, (), settings.dimension)
        hits = find_nearest(qvec, entries, k=int(k), index=search)
    except InvalidArgument as e:
        console.print(str(e), style="red", markup=False)
        raise typer.Exit(code=2)

    table = Table(title=f"Top {k} nodes")
    table.add_column("#", justify="right", width=4)
    table.add_column("score", justify="right", width=8)
    table.add_column("id")
    table.add_column("preview")
    for i, h in enumerate(hits, start=1):
        table.add_row(Text(str(i)), Text(f"{h.score:.3f}"), Text(h.node_id), Text(_preview(by_id[h.node_id].content)))
    console.print(table)


@app.command()
def cluster(
    nodes_path: Path = typer.Option(..., "--nodes", exists=True, file_okay=True, dir_okay=False, help="JSON export of nodes"),
    threshold: float | None = typer.Option(None, "--threshold", help="Similarity threshold (0-1)"),
    limit: int | None = typer.Option(None, "--limit", help="Cluster at most this many of the newest nodes"),
    singletons: bool = typer.Option(False, "--singletons/--no-singletons", help="Also list size-1 clusters"),
):
    """Group nodes into similarity-connected topic clusters."""
    settings = Settings()
    nodes = _load_nodes(nodes_path)
    cap = int(limit if limit is not None else settings.cluster_limit)
    if len(nodes) > cap:
        logger.debug("Capping clustering input to the newest %d of %d nodes", cap, len(nodes))
        nodes = sorted(nodes, key=lambda n: n.created_at, reverse=True)[:cap]

    try:
        clusters = cluster_nodes(
            nodes,
            settings.cluster_threshold if threshold is None else float(threshold),
            dimension=settings.dimension,
            tag_weight=settings.tag_weight,
        )
        summaries = summarize_clusters(nodes, clusters, dimension=settings.dimension, tag_weight=settings.tag_weight)
    except InvalidArgument as e:
        console.print(str(e), style="red", markup=False)
        raise typer.Exit(code=2)

    console.print(f"Nodes: {len(nodes)}  Clusters: {len(clusters)}", markup=False)
    table = Table(title="Clusters")
    table.add_column("name")
    table.add_column("size", justify="right")
    table.add_column("coherence", justify="right")
    table.add_column("center")
    table.add_column("members")
    for s in summaries:
        if s.cluster.size == 1 and not singletons:
            continue
        table.add_row(
            Text(s.name),
            Text(str(s.cluster.size)),
            Text(f"{s.coherence:.3f}"),
            Text(s.center_node),
            Text(", ".join(sorted(s.cluster.members))),
        )
    console.print(table)


@app.command()
def emerging(
    nodes_path: Path = typer.Option(..., "--nodes", exists=True, file_okay=True, dir_okay=False, help="JSON export of nodes"),
    window_days: float | None = typer.Option(None, "--window-days", help="Size of the recent window in days"),
    min_recent: int | None = typer.Option(None, "--min-recent", help="Minimum weighted count in the window"),
    min_lift: float | None = typer.Option(None, "--min-lift", help="Minimum smoothed recent/past ratio"),
    limit: int = typer.Option(50, "--limit", help="Max concepts to show"),
):
    """Show keywords trending in the recent window."""
    settings = Settings()
    nodes = _load_nodes(nodes_path)
    try:
        concepts = find_emerging(
            nodes,
            settings.emerging_window_days if window_days is None else window_days,
            settings.emerging_min_recent if min_recent is None else min_recent,
            settings.emerging_min_lift if min_lift is None else min_lift,
            limit=limit,
        )
    except InvalidArgument as e:
        console.print(str(e), style="red", markup=False)
        raise typer.Exit(code=2)

    if not concepts:
        console.print("No emerging concepts.", style="yellow")
        return

    table = Table(title="Emerging concepts")
    table.add_column("keyword")
    table.add_column("recent", justify="right")
    table.add_column("past", justify="right")
    table.add_column("lift", justify="right")
    for c in concepts:
        table.add_row(Text(c.keyword), Text(str(c.recent_count)), Text(str(c.past_count)), Text(f"{c.lift:.2f}"))
    console.print(table)


@app.command()
def relate(
    nodes_path: Path = typer.Option(..., "--nodes", exists=True, file_okay=True, dir_okay=False, help="JSON export of nodes"),
    a_id: str = typer.Argument(...),
    b_id: str = typer.Argument(...),
):
    """Score and classify the relationship between two nodes."""
    settings = Settings()
    nodes = _load_nodes(nodes_path)
    a = _find(nodes, a_id)
    b = _find(nodes, b_id)

    try:
        s = score(a, b, dimension=settings.dimension, tag_counts=tag_counts(nodes))
        rel = classify(a, b, factors=s.factors)
    except InvalidArgument as e:
        console.print(str(e), style="red", markup=False)
        raise typer.Exit(code=2)

    console.print(f"relation: {rel.value}", markup=False)
    console.print(f"strength: {s.strength:.3f}", markup=False)
    for name, value in asdict(s.factors).items():
        console.print(f"- {name}: {value:.3f}", markup=False)


@app.command()
def infer(
    nodes_path: Path = typer.Option(..., "--nodes", exists=True, file_okay=True, dir_okay=False, help="JSON export of nodes"),
    node_id: str = typer.Argument(...),
    min_strength: float = typer.Option(0.35, "--min-strength", help="Minimum strength to suggest an edge"),
    limit: int = typer.Option(5, "--limit", help="Max suggestions"),
):
    """Suggest edges from one node to the rest of the graph."""
    settings = Settings()
    nodes = _load_nodes(nodes_path)
    node = _find(nodes, node_id)

    try:
        suggestions = infer_relationships(
            node,
            nodes,
            min_strength=min_strength,
            limit=limit,
            dimension=settings.dimension,
            tag_counts=tag_counts(nodes),
        )
    except InvalidArgument as e:
        console.print(str(e), style="red", markup=False)
        raise typer.Exit(code=2)
    if not suggestions:
        console.print("No relationships above the threshold.", style="yellow")
        return
    for sug in suggestions:
        console.print(f"{node.id} -[{sug.relation.value}]-> {sug.node_id} ({sug.score.strength:.3f})", markup=False)


@app.command()
def links(
    nodes_path: Path = typer.Option(..., "--nodes", exists=True, file_okay=True, dir_okay=False, help="JSON export of nodes"),
    text: str = typer.Argument(..., help="Content of the note being captured"),
    limit: int = typer.Option(5, "--limit"),
):
    """Suggest auto-links for new note content."""
    nodes = _load_nodes(nodes_path)
    ids = find_auto_links(nodes, text, limit=limit)
    if not ids:
        console.print("No auto-links.", style="yellow")
        return
    for node_id in ids:
        console.print(node_id, markup=False)


@app.command()
def tags(
    nodes_path: Path = typer.Option(..., "--nodes", exists=True, file_okay=True, dir_okay=False, help="JSON export of nodes"),
    base_tags: list[str] | None = typer.Argument(None, help="Tags to expand"),
    content: str | None = typer.Option(None, "--content", help="Also suggest vocabulary tags for this text"),
    limit: int = typer.Option(5, "--limit"),
):
    """Expand tags with synonyms, child tags and co-occurring tags."""
    nodes = _load_nodes(nodes_path)
    base = list(base_tags or [])

    if base:
        console.print(f"expanded: {', '.join(expand_tags_full(base))}", markup=False)
        related = expand_tags(base, build_tag_cooccurrence(nodes), limit=limit)
        console.print(f"co-occurring: {', '.join(related) or '-'}", markup=False)
    if content:
        suggested = suggest_tags(content, base, limit=limit)
        console.print(f"suggested: {', '.join(suggested) or '-'}", markup=False)
    if not base and not content:
        console.print("Give tags to expand or --content to suggest from.", style="yellow")


if __name__ == "__main__":
    app()
