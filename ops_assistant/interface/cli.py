"""CLI interface for the IT operations assistant."""

import asyncio
import json
import os

import typer
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table

from ..common.exception_handler import format_exception_json
from ..config import settings
from ..config.logging import setup_logging
from ..core.domain import AgentResponse, ChatMessage

app = typer.Typer(
    name="ops-assistant",
    help="IT operations assistant answering questions from the company knowledge sources",
    add_completion=False,
)

console = Console(force_terminal=True, legacy_windows=False)

# Determine if we're in debug mode (shows full stack traces)
DEBUG_MODE = os.getenv("DEBUG", "false").lower() == "true"

HISTORY_LIMIT = 10


def handle_cli_error(exc: Exception) -> None:
    """Display an error with its code; full JSON details in debug mode."""
    error_data = format_exception_json(exc, include_trace=DEBUG_MODE)

    if DEBUG_MODE:
        console.print(
            Panel(
                json.dumps(error_data, indent=2, ensure_ascii=False),
                title="[bold red]Error Details[/]",
                border_style="red",
            )
        )
        return

    error_code = error_data["error"].get("code", "UNKNOWN")
    console.print(f"\n[red]Error [{error_code}]:[/] {error_data['error']['message']}")
    console.print(f"[dim]Type: {error_data['error']['type']}[/]")
    console.print("[dim]Set DEBUG=true for full details[/]")


def get_agent():
    """Get the shared agent service, exiting when it cannot be built."""
    from ..composition.container import get_agent_service

    if not settings.google_api_key:
        console.print(
            "[red]Error:[/] Google API key not set.\n"
            "Get a key at https://aistudio.google.com/ and set GOOGLE_API_KEY in .env"
        )
        raise typer.Exit(1)

    try:
        return get_agent_service()
    except Exception as exc:
        handle_cli_error(exc)
        raise typer.Exit(1) from exc


def print_response(response: AgentResponse) -> None:
    """Render an answer with its flags and sources."""
    if not response.success:
        border = "red"
    elif response.low_confidence or response.needs_clarification:
        border = "yellow"
    else:
        border = "green"

    flags = [response.domain, response.intent]
    if response.from_cache:
        flags.append("cached")
    if response.low_confidence:
        flags.append("low confidence")

    console.print(
        Panel(
            Markdown(response.answer),
            title="[bold]Assistant[/]",
            subtitle=f"[dim]{' | '.join(flags)}[/]",
            border_style=border,
        )
    )

    if response.sources_used:
        console.print("[dim]Sources:[/]")
        for source in response.sources_used[:5]:
            console.print(f"  [dim]{source}[/]")

    if response.error_code:
        console.print(f"[dim]Error code: {response.error_code}[/]")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show log output"),
) -> None:
    """Configure logging before any command runs."""
    setup_logging(
        level=settings.log_level if verbose else "WARNING",
        json_format=settings.log_json,
    )


@app.command()
def ask(
    question: str = typer.Argument(..., help="IT question, in Spanish or English"),
) -> None:
    """Ask a single question and get an answer."""
    agent = get_agent()

    with console.status("[bold green]Thinking...[/]"):
        response = asyncio.run(agent.ask(question))

    print_response(response)
    if not response.success:
        raise typer.Exit(1)


@app.command()
def chat() -> None:
    """Start an interactive chat session that keeps conversation history."""
    console.print(
        Panel.fit(
            "[bold]IT Operations Assistant[/]\n\n"
            "Examples:\n"
            "• ¿Cómo me conecto desde casa?\n"
            "• No puedo acceder a SAP producción, usuario bloqueado\n"
            "• How do I open a ticket for Teamcenter access?\n\n"
            "[dim]/good or /bad [comment] rates the last answer, "
            "/correct <text> submits a correction, /new starts over, 'quit' leaves[/]",
            title="Welcome",
            border_style="blue",
        )
    )

    agent = get_agent()
    asyncio.run(_chat_loop(agent))


async def _chat_loop(agent) -> None:
    history: list[ChatMessage] = []
    last: AgentResponse | None = None

    while True:
        try:
            query = Prompt.ask("\n[bold cyan]You[/]")
        except (KeyboardInterrupt, EOFError):
            console.print("\n[dim]Goodbye![/]")
            return

        text = query.strip()
        if text.lower() in ("quit", "exit", "q"):
            console.print("[dim]Goodbye![/]")
            return
        if not text:
            continue

        if text.startswith("/"):
            command, _, argument = text.partition(" ")
            if command == "/new":
                history.clear()
                last = None
                console.print("[dim]Conversation cleared.[/]")
                continue
            if command in ("/good", "/bad", "/correct"):
                if last is None or last.feedback is None:
                    console.print("[yellow]There is no answer to rate yet.[/]")
                    continue
                try:
                    updated = await agent.submit_feedback(
                        last.feedback,
                        is_helpful=command == "/good",
                        comment=argument or None if command == "/bad" else None,
                        correction=argument or None if command == "/correct" else None,
                    )
                except Exception as exc:
                    handle_cli_error(exc)
                    continue
                last.feedback = updated
                console.print("[dim]Thanks for the feedback.[/]")
                continue
            console.print(f"[yellow]Unknown command: {command}[/]")
            continue

        with console.status("[bold green]Thinking...[/]"):
            response = await agent.ask(text, history)

        print_response(response)
        last = response

        if response.success:
            history.extend(
                [ChatMessage(role="user", content=text), ChatMessage(role="assistant", content=response.answer)]
            )
            del history[:-HISTORY_LIMIT]


@app.command()
def status() -> None:
    """Show configuration, document sources and feedback statistics."""
    from ..composition.container import get_retrieval_context

    console.print("[bold]IT Operations Assistant Status[/]\n")

    if settings.google_api_key:
        console.print("✅ Google API key configured")
    else:
        console.print("❌ Google API key not set (set GOOGLE_API_KEY in .env)")

    console.print(f"   LLM model: {settings.llm_model}")
    console.print(f"   Embedding model: {settings.embedding_model}")
    console.print(
        f"   Relevance threshold: {settings.relevance_threshold}  RRF k: {settings.rrf_k}  "
        f"Cache: {'on' if settings.cache_enabled else 'off'}"
    )

    try:
        context = get_retrieval_context()
    except Exception as exc:
        handle_cli_error(exc)
        raise typer.Exit(1) from exc

    async def count_documents() -> list[tuple[str, int]]:
        counts = []
        for source in context.sources:
            documents = await source.list_all()
            counts.append((source.name, len(documents)))
        return counts

    table = Table(title="Document sources")
    table.add_column("Source")
    table.add_column("Documents", justify="right")
    try:
        for name, count in asyncio.run(count_documents()):
            table.add_row(name, str(count))
    except Exception as exc:
        handle_cli_error(exc)
    console.print(table)

    if context.cache is not None:
        cache_stats = context.cache.stats()
        console.print(
            f"\n[bold]Cache:[/] {cache_stats['exact_entries']} exact, "
            f"{cache_stats['semantic_entries']}/{context.cache.max_semantic_entries} semantic, "
            f"hit rate {cache_stats['hit_rate']:.0%}"
        )

    stats_method = getattr(context.feedback_sink, "stats", None)
    if stats_method is not None:
        stats = stats_method()
        console.print(
            f"\n[bold]Feedback:[/] {stats['total']} answers, {stats['rated']} rated, "
            f"satisfaction {stats['satisfaction_rate']:.0%}, "
            f"{stats['low_confidence']} low confidence, {stats['corrections']} corrections"
        )


if __name__ == "__main__":
    app()
