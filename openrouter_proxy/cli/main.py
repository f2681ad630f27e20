"""Main CLI entry point for openrouter-proxy."""

from typing import Any, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from openrouter_proxy.core.config import Config, ConfigError
from openrouter_proxy.core.config.validation import validate_all
from openrouter_proxy.core.errors import IoError, TlsError
from openrouter_proxy.core.routing import RoutingTable

app = typer.Typer(
    name="orproxy",
    help="OpenRouter Proxy CLI - forward OpenAI-style requests with provider routing",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

console = Console()

MAPPING_HELP = "Model provider mapping (format: pattern=provider1,provider2); repeatable"


def _load_config(**overrides: Any) -> Config:
    errors = validate_all()
    if errors:
        for error in errors:
            console.print(f"[bold red]Configuration error:[/bold red] {escape(str(error))}")
        raise typer.Exit(code=1)

    try:
        return Config.load().with_overrides(**overrides)
    except ConfigError as e:
        console.print(f"[bold red]Configuration error:[/bold red] {escape(str(e))}")
        raise typer.Exit(code=1) from e


def _routing_table_view(routing_table: RoutingTable) -> Table:
    table = Table(title="Model Provider Mapping")
    table.add_column("Pattern", style="cyan")
    table.add_column("Providers", style="green")
    for rule in routing_table.rules:
        table.add_row(rule.pattern, ", ".join(rule.providers))
    return table


@app.command()
def version() -> None:
    """Show version information."""
    from openrouter_proxy import __version__

    console.print(f"[bold cyan]orproxy[/bold cyan] version [green]{__version__}[/green]")


@app.command()
def start(
    host: Optional[str] = typer.Option(None, "--host", "-i", help="Override host"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Override port"),
    base_url: Optional[str] = typer.Option(None, "--base-url", help="OpenRouter base URL"),
    model_provider_mapping: Optional[list[str]] = typer.Option(
        None, "--model-provider-mapping", "-m", help=MAPPING_HELP
    ),
    https: Optional[bool] = typer.Option(None, "--https/--no-https", help="Serve over HTTPS"),
    cert_path: Optional[str] = typer.Option(None, "--cert-path", help="TLS certificate path"),
    key_path: Optional[str] = typer.Option(None, "--key-path", help="TLS private key path"),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Logging level"),
) -> None:
    """Start the proxy server."""
    from openrouter_proxy.core.logging import configure_root_logging
    from openrouter_proxy.main import run_server

    config = _load_config(
        host=host,
        port=port,
        base_url=base_url,
        model_provider_mapping=model_provider_mapping,
        https=https,
        cert_path=cert_path,
        key_path=key_path,
        log_level=log_level,
    )

    table = Table(title="OpenRouter Proxy Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Server URL", f"{config.scheme}://{config.host}:{config.port}")
    table.add_row("Upstream Base URL", config.base_url)
    table.add_row("Log Level", config.log_level)
    table.add_row("CORS", "Enabled" if config.cors_enabled else "Disabled")
    console.print(table)

    if config.routing_table:
        console.print(_routing_table_view(config.routing_table))
    else:
        console.print("[yellow]No model provider mapping configured[/yellow]")

    configure_root_logging(config.log_level)
    try:
        run_server(config)
    except (TlsError, IoError) as e:
        console.print(f"[bold red]TLS error:[/bold red] {escape(e.message)}")
        raise typer.Exit(code=1) from e


@app.command()
def resolve(
    model: str = typer.Argument(..., help="Model name to route, e.g. gpt-4"),
    model_provider_mapping: Optional[list[str]] = typer.Option(
        None, "--model-provider-mapping", "-m", help=MAPPING_HELP
    ),
) -> None:
    """Show the provider order injected for MODEL."""
    config = _load_config(model_provider_mapping=model_provider_mapping)

    providers = config.routing_table.resolve(model)
    if providers is None:
        console.print(f"[yellow]No rule matches[/yellow] '{escape(model)}'; provider order left unchanged")
        return
    console.print(f"'{escape(model)}' -> provider.order = [green]{escape(str(list(providers)))}[/green]")


if __name__ == "__main__":
    app()
