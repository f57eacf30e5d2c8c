"""
ai-ox CLI - Main entry point.

Provides commands for:
- chat: Send a prompt to any provider
- providers: List registered providers
- config: Show configuration
- version: Show version information
"""

import asyncio
import logging

import typer
from rich.console import Console

app = typer.Typer(
    name="ai-ox",
    help="Unified client for AI model providers",
    add_completion=True,
)
console = Console()


async def _chat(
    model_spec: str,
    prompt: str,
    system: str | None,
    stream: bool,
    max_tokens: int | None,
    temperature: float | None,
) -> None:
    from ai_ox.content.delta import StreamStop, TextDelta, ToolCallEvent
    from ai_ox.models.base import GenerationConfig, ModelRequest
    from ai_ox.models.registry import get_registry

    generation = GenerationConfig(max_tokens=max_tokens, temperature=temperature)
    model = get_registry().create(model_spec, generation_config=generation)
    request = ModelRequest.from_messages(prompt, system_message=system)

    async with model:
        if not stream:
            response = await model.request(request)
            console.print(response.text or "")
            for call in response.tool_calls() or []:
                console.print(f"[yellow]Tool call: {call.name}({call.args})[/yellow]")
            usage = response.usage
        else:
            usage = None
            async for event in model.request_stream(request):
                if isinstance(event, TextDelta):
                    console.print(event.text, end="", markup=False, highlight=False)
                elif isinstance(event, ToolCallEvent):
                    console.print(f"\n[yellow]Tool call: {event.call.name}({event.call.args})[/yellow]")
                elif isinstance(event, StreamStop):
                    usage = event.usage
            console.print()

    if usage is not None:
        console.print(
            f"[dim]Tokens: {usage.input_tokens()} in / {usage.output_tokens()} out[/dim]"
        )


@app.command()
def chat(
    prompt: str = typer.Argument(..., help="Prompt to send"),
    model: str = typer.Option(
        "openai/gpt-4.1-mini", "--model", "-m", help="Model as provider/model"
    ),
    system: str = typer.Option(None, "--system", "-s", help="System instruction"),
    stream: bool = typer.Option(True, "--stream/--no-stream", help="Stream the response"),
    max_tokens: int = typer.Option(None, "--max-tokens", help="Maximum output tokens"),
    temperature: float = typer.Option(None, "--temperature", "-t", help="Sampling temperature"),
    log_level: str = typer.Option(
        None, "--log-level", "-l", help="Log level, defaults to the configured level"
    ),
) -> None:
    """Send a prompt to a model and print the reply."""
    from ai_ox.agent.errors import AgentError
    from ai_ox.config import get_settings
    from ai_ox.errors import GenerateContentError

    level = log_level or get_settings().core.log_level

    # Configure logging
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        asyncio.run(_chat(model, prompt, system, stream, max_tokens, temperature))
    except KeyError as e:
        console.print(f"[red]Error: {e.args[0]}[/red]")
        raise typer.Exit(1) from e
    except (GenerateContentError, AgentError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1) from e


@app.command()
def providers() -> None:
    """List registered providers."""
    from rich.table import Table

    from ai_ox.models.registry import get_registry

    info = get_registry().to_dict()

    table = Table(title="Providers")
    table.add_column("Name", style="cyan")
    table.add_column("Default model")
    table.add_column("Base URL", style="dim")
    table.add_column("Configured")

    for name, provider in info["providers"].items():
        configured = "[green]yes[/green]" if provider["configured"] else "[red]no[/red]"
        table.add_row(name, provider["default_model"], provider["base_url"], configured)

    console.print(table)
    console.print(f"[dim]{info['configured']} of {info['total']} configured[/dim]")


@app.command()
def config(
    action: str = typer.Argument("show", help="Action: show, init, path"),
) -> None:
    """Manage configuration."""
    from pathlib import Path

    from ai_ox.config import get_settings, get_settings_dict

    if action == "show":
        settings = get_settings_dict()
        console.print_json(data=settings)

    elif action == "init":
        config_path = Path("config.yaml")
        if config_path.exists():
            console.print(f"[yellow]Config file already exists: {config_path}[/yellow]")
            return

        default_config = """# ai-ox Configuration
core:
  log_level: INFO

http:
  timeout: 120
  connect_timeout: 10
  max_retries: 2
  debug: false

agent:
  max_iterations: 12

# Provider credentials are set via environment variables:
# ANTHROPIC_API_KEY=sk-ant-...
# GEMINI_API_KEY=...
# OPENAI_API_KEY=sk-...
# MISTRAL_API_KEY=...
# GROQ_API_KEY=...
# OPENROUTER_API_KEY=...
"""
        config_path.write_text(default_config)
        console.print(f"[green]Created config file: {config_path}[/green]")

    elif action == "path":
        settings = get_settings()
        if settings.core.config_path:
            console.print(str(settings.core.config_path))
        else:
            console.print("[dim]No config file specified[/dim]")

    else:
        console.print(f"[red]Unknown action: {action}[/red]")
        console.print("[dim]Available actions: show, init, path[/dim]")
        raise typer.Exit(1)


@app.command()
def version() -> None:
    """Show version information."""
    from ai_ox import __version__

    console.print(f"ai-ox version {__version__}")


if __name__ == "__main__":
    app()
