"""Command-line interface for the helpdesk agent."""

import asyncio
import json
from typing import Annotated

import typer

from .config.factory import create_agent
from .config.loader import list_profiles, load_config
from .orchestration.models import ProcessOptions

app = typer.Typer(
    name="helpdesk-agent",
    help="Answer Zoom support questions from community, support and web sources.",
    add_completion=False,
)


@app.command()
def ask(
    query: Annotated[str, typer.Argument(help="Question to answer")],
    sources: Annotated[
        list[str],
        typer.Option(
            "--source", "-s",
            help="Sources to consult (can specify multiple)",
        ),
    ] = None,
    profile: Annotated[
        str,
        typer.Option("--profile", "-p", help="Configuration profile"),
    ] = None,
    debug: Annotated[
        bool,
        typer.Option("--debug", help="Include iterations and the reasoning trace"),
    ] = False,
    output_format: Annotated[
        str,
        typer.Option("--format", "-f", help="Output format: text or json"),
    ] = "text",
):
    """
    Answer a support question.

    Examples:

        # Ask using the default sources
        helpdesk-agent ask "My Zoom audio is not working"

        # Only consult Zoom Support
        helpdesk-agent ask "How do I share my screen?" -s zoom_support

        # Offline run with the reasoning trace as JSON
        helpdesk-agent ask "camera is black" --profile test --debug --format json
    """
    if output_format not in ("text", "json"):
        typer.echo("Error: Format must be one of: text, json", err=True)
        raise typer.Exit(1)

    config = load_config(profile)
    if debug:
        config.agent.debug = True

    unknown = set(sources or []) - set(config.agent.default_sources)
    if unknown:
        typer.echo(f"Note: Unknown sources will be skipped: {', '.join(sorted(unknown))}\n", err=True)

    try:
        response = asyncio.run(_ask_async(config, query, sources or None))
    except ValueError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    if output_format == "json":
        typer.echo(json.dumps(response.to_dict(), indent=2))
        return

    if response.error:
        typer.echo(f"Error: {response.error}", err=True)
    typer.echo(response.answer)

    if response.sources:
        typer.echo("\nSources:")
        for i, e in enumerate(response.sources, 1):
            typer.echo(f"  [{i}] {e.title} ({e.origin_label})")
            typer.echo(f"      {e.locator}")

    if response.debug_info:
        typer.echo(
            f"\nIterations: {response.debug_info['iterations']} "
            f"({response.debug_info['terminationReason']})"
        )

    if response.error:
        raise typer.Exit(1)


async def _ask_async(config, query: str, sources: list[str] | None):
    """Async implementation of ask."""
    async with create_agent(config) as agent:
        return await agent.process(query, ProcessOptions(sources=sources))


@app.command()
def tools(
    profile: Annotated[
        str,
        typer.Option("--profile", "-p", help="Configuration profile"),
    ] = None,
):
    """Show the tools available to the planner."""
    try:
        agent = create_agent(load_config(profile))
    except ValueError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    for description in agent.describe_tools():
        typer.echo(description.name)
        typer.echo(f"    {description.description}")
        typer.echo(f"    Parameters: {', '.join(description.parameter_names)}")
        typer.echo()


@app.command()
def profiles():
    """List available configuration profiles."""
    typer.echo("Available profiles:\n")
    for name in list_profiles():
        config = load_config(name)
        typer.echo(f"  {name}")
        typer.echo(f"    Completion: {config.completion.backend}")
        typer.echo(f"    Sources: {', '.join(config.agent.default_sources)}")
        typer.echo(f"    Mock search: {config.sources.use_mock}")
        typer.echo()


def main():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
