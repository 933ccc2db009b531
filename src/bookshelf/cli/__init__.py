"""Bookshelf command line interface."""

import signal
import threading

import typer
from rich.console import Console
from rich.panel import Panel

from src.bookshelf.runtime.config.config_data import AppConfig, ConfigData, KafkaConfig
from src.bookshelf.runtime.context import get_config, with_context

console = Console()

app = typer.Typer(
    help="📚 Bookshelf service CLI",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


def _serve_overrides(
    host: str | None, port: int | None, consumer: bool | None
) -> ConfigData:
    """Config overrides for the options actually passed to ``serve``."""
    sections: dict = {}
    app_overrides = {}
    if host is not None:
        app_overrides["host"] = host
    if port is not None:
        app_overrides["port"] = port
    if app_overrides:
        sections["app"] = AppConfig(**app_overrides)
    if consumer is not None:
        sections["kafka"] = KafkaConfig(consumer_enabled=consumer)
    return ConfigData(**sections)


@app.command()
def serve(
    host: str | None = typer.Option(None, help="Host to bind the server to"),
    port: int | None = typer.Option(None, help="Port to bind the server to"),
    consumer: bool | None = typer.Option(
        None,
        "--consumer/--no-consumer",
        help="Run the event consumer in-process (default: KAFKA_CONSUMER_ENABLED)",
    ),
) -> None:
    """
    🚀 Start the HTTP API.

    Host and port default to SERVER_HOST and SERVER_PORT.
    """
    with with_context(_serve_overrides(host, port, consumer)):
        config = get_config()
        console.print(
            Panel.fit(
                f"[bold green]Starting Bookshelf API[/bold green] on "
                f"http://{config.app.host}:{config.app.port}",
                border_style="green",
            )
        )
        if not config.kafka.consumer_enabled:
            console.print("[dim]Event consumer disabled[/dim]")

        import uvicorn

        from src.bookshelf.api.http.app import app as http_app

        uvicorn.run(
            http_app,
            host=config.app.host,
            port=config.app.port,
            access_log=False,
        )


@app.command()
def consume() -> None:
    """
    📨 Run only the book events consumer until SIGINT or SIGTERM.
    """
    from src.bookshelf.api.utils.app_startup import configure_logging
    from src.bookshelf.core.events import BookEventConsumer

    configure_logging()
    config = get_config()
    if not config.kafka.enabled:
        console.print("[red]❌ Kafka is disabled (KAFKA_ENABLED=false)[/red]")
        raise typer.Exit(1)

    event_consumer = BookEventConsumer(config.kafka)
    stop_requested = threading.Event()

    def _request_stop(signum, frame):
        stop_requested.set()

    signal.signal(signal.SIGINT, _request_stop)
    signal.signal(signal.SIGTERM, _request_stop)

    console.print(
        f"[blue]Consuming[/blue] {config.kafka.topic} from "
        f"{config.kafka.bootstrap_servers} as {config.kafka.consumer_group}"
    )
    event_consumer.start()
    while not stop_requested.wait(1.0):
        pass
    event_consumer.stop()
    console.print("[yellow]Consumer stopped[/yellow]")


@app.command(name="init-db")
def init_db_command() -> None:
    """
    🗄️  Create the books table.
    """
    from src.bookshelf.api.utils.app_startup import configure_logging
    from src.bookshelf.runtime.init_db import init_db

    configure_logging()
    init_db()
    console.print("[green]✅ Database schema is ready[/green]")


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
