"""Command-line interface for xthreads."""

from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.tree import Tree

from xthreads import ThreadBuilder, save_json, __version__
from xthreads.config import LogFormat, load_config
from xthreads.core.exporter import load_batch, save_csv
from xthreads.exceptions import XThreadsError
from xthreads.logging import configure_logging
from xthreads.models.forest import ThreadForest
from xthreads.models.post import CanonicalPost

app = typer.Typer(
    name="xthreads",
    help="Rebuild reply threads from saved X/Twitter API responses",
    add_completion=False,
)
console = Console()


def version_callback(value: bool):
    if value:
        console.print(f"xthreads version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
):
    """xthreads - reply thread reconstruction."""
    pass


def _build(path: Path, backfill: bool, quiet: bool) -> ThreadForest:
    try:
        config = load_config(
            backfill_conversations=backfill,
            log_format=LogFormat.CONSOLE if not quiet else LogFormat.JSON,
            log_level="WARNING" if quiet else "INFO",
        )
        configure_logging(config)
        batch = load_batch(path)
    except XThreadsError as e:
        console.print(f"[red]✗[/red] {escape(str(e))}")
        raise typer.Exit(1)
    return ThreadBuilder(config).build(batch)


@app.command()
def show(
    path: Path = typer.Argument(..., help="Saved API response (JSON)"),
    backfill: bool = typer.Option(
        True, "--backfill/--no-backfill", help="Infer missing conversation ids"
    ),
    width: int = typer.Option(
        100, "--width", "-w", help="Truncate post text to this many characters"
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Only log warnings and errors"
    ),
):
    """Print the reconstructed conversations as trees."""
    forest = _build(path, backfill, quiet)

    if forest.is_empty:
        console.print("[dim]No posts found[/dim]")
        return

    for conversation in forest.conversations:
        tree = Tree(f"[bold cyan]Conversation {escape(conversation.conversation_id)}[/bold cyan]")
        for root in conversation.threads:
            _add_node(tree, root, width)
        console.print(tree)
        console.print()

    if forest.standalone:
        tree = Tree("[bold]Standalone[/bold]")
        for root in forest.standalone:
            _add_node(tree, root, width)
        console.print(tree)

    console.print(
        f"\n[bold]{len(forest.post_ids())} posts in {len(forest.conversations)} conversations, "
        f"{len(forest.standalone)} standalone threads[/bold]"
    )


@app.command()
def export(
    path: Path = typer.Argument(..., help="Saved API response (JSON)"),
    output: Path = typer.Option(..., "--output", "-o", help="Output file"),
    csv: bool = typer.Option(False, "--csv", help="Write a flat CSV instead of JSON"),
    backfill: bool = typer.Option(True, "--backfill/--no-backfill"),
):
    """Write the reconstructed forest to JSON or CSV."""
    forest = _build(path, backfill, quiet=True)

    if csv:
        try:
            saved = save_csv(forest, output)
        except ImportError as e:
            console.print(f"[red]✗[/red] {e}")
            raise typer.Exit(1)
    else:
        saved = save_json(forest, output)

    console.print(f"[green]✓[/green] Saved {len(forest.post_ids())} posts to {saved}")


def _post_label(post: CanonicalPost, width: int) -> str:
    """Tree label for a post: header, text, counts and reply context."""
    when = post.created_at.strftime("%Y-%m-%d %H:%M") if post.created_at else "undated"
    text = post.display_text or post.text
    text = text[:width] + "..." if len(text) > width else text
    tag = "" if post.is_primary else f" [blue]\\[{post.provenance.value}][/blue]"

    label = (
        f"[bold]{escape(post.author.display_name)}[/bold] "
        f"[dim]@{escape(post.author.username)} · {when}[/dim]{tag}\n"
        f"{escape(text.replace(chr(10), ' '))}\n"
        f"[dim]{post.like_count:,}♥ {post.retweet_count:,}⟲ {post.reply_count:,}💬[/dim]"
    )
    if post.replied_to is not None:
        parent = post.replied_to
        snippet = parent.text[:60] + "..." if len(parent.text) > 60 else parent.text
        label = f"[dim]↩ @{escape(parent.author.username)}: {escape(snippet.replace(chr(10), ' '))}[/dim]\n" + label
    elif post.in_reply_to_username:
        label = f"[dim]↩ replying to @{escape(post.in_reply_to_username)}[/dim]\n" + label
    return label


def _add_node(tree: Tree, post: CanonicalPost, width: int) -> None:
    branch = tree.add(_post_label(post, width))
    for child in post.children:
        _add_node(branch, child, width)


if __name__ == "__main__":
    app()
