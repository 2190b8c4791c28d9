import asyncio

import click
from rich.console import Console
from rich.table import Table

from threadsearch.config import Config, get_config
from threadsearch.logging import UVICORN_LOG_CONFIG, configure_logging
from threadsearch.search.store import count_indexed

console = Console()


@click.group(invoke_without_command=True)
@click.pass_context
def main(ctx):
    """threadsearch - ask questions about your message history"""
    try:
        ctx.ensure_object(dict)
        ctx.obj["config"] = get_config()
    except ValueError as e:
        ctx.obj["config_error"] = str(e)

    if ctx.invoked_subcommand is None:
        console.print("[bold]threadsearch[/bold] - ask questions about your message history\n")
        console.print("Run [cyan]threadsearch serve[/cyan] to start the server.")
        console.print("\nUse [cyan]threadsearch --help[/cyan] for all commands.")


def _require_config(ctx) -> Config:
    if "config_error" in ctx.obj:
        console.print(f"[red]Error:[/red] {ctx.obj['config_error']}")
        raise SystemExit(1)
    return ctx.obj["config"]


@main.command()
@click.pass_context
def status(ctx):
    """Show configuration and index size."""
    config = _require_config(ctx)

    console.print("[bold]threadsearch status[/bold]")
    console.print()
    console.print(f"Data dir: [cyan]{config.data_dir}[/cyan]")
    console.print(f"Embedding model: {config.embedding_model}")
    console.print(f"Chat model: {config.chat_model}")
    console.print(f"OpenAI key: {'set' if config.openai_api_key else '[red]missing[/red]'}")
    console.print(f"Anthropic key: {'set' if config.anthropic_api_key else '[dim]not set[/dim]'}")

    if config.index_db_path.exists():
        count = asyncio.run(count_indexed(config.index_db_path))
        console.print(f"Indexed messages: [green]{count}[/green]")
    else:
        console.print("Indexed messages: [dim]no index yet[/dim]")


@main.command()
@click.option("--host", default="127.0.0.1", help="Host to bind to")
@click.option("--port", default=8000, help="Port to bind to")
@click.option("--reload", is_flag=True, help="Enable auto-reload for development")
@click.pass_context
def serve(ctx, host: str, port: int, reload: bool):
    """Start the threadsearch API server."""
    _require_config(ctx)

    import uvicorn

    console.print(f"[bold]threadsearch server[/bold] starting on http://{host}:{port}")
    console.print("[dim]Press Ctrl+C to stop[/dim]")
    console.print()

    uvicorn.run(
        "threadsearch.server.app:app",
        host=host,
        port=port,
        reload=reload,
        log_config=UVICORN_LOG_CONFIG,
    )


@main.command()
@click.option("-q", "--query", required=True, help="Question to ask")
@click.option("-u", "--user", "user_id", required=True, help="Id of the user asking")
@click.pass_context
def ask(ctx, query: str, user_id: str):
    """Answer one question from the command line."""
    config = _require_config(ctx)
    configure_logging(config.log_level, config.log_json)
    asyncio.run(_ask(config, query, user_id))


async def _ask(config: Config, query: str, user_id: str):
    from threadsearch.errors import SearchFailedError
    from threadsearch.server.runtime import Runtime

    runtime = Runtime(config=config)
    await runtime.connect()
    try:
        result = await runtime.search.perform_search(query, user_id)
    except SearchFailedError as e:
        console.print(f"[red]Search failed:[/red] {e}")
        raise SystemExit(1)
    finally:
        await runtime.close()

    console.print(result.answer)
    console.print()
    if result.evidence:
        table = Table("#", "Type", "From", "Message", "When")
        for i, item in enumerate(result.evidence, start=1):
            table.add_row(str(i), item.type, item.user_name or "?", item.content, item.timestamp)
        console.print(table)
    if result.additional_context:
        console.print(f"[dim]{result.additional_context}[/dim]")


if __name__ == "__main__":
    main()
