"""
CLI de middleai usando Click.

Comandos:
- config:   muestra la configuración resuelta (API key enmascarada)
- feedback: envía una valoración de usuario al collector
- ping:     emite un span de prueba y hace flush
"""

import asyncio
import json
import sys
import uuid
from pathlib import Path
from typing import Any

import click
from opentelemetry.sdk.trace import TracerProvider
from pydantic import ValidationError

from .config.loader import load_config
from .config.schema import AppConfig
from .logging import configure_logging
from .telemetry import FeedbackType, MiddleAITracer

# Exit codes
EXIT_SUCCESS = 0
EXIT_FAILED = 1
EXIT_CONFIG_ERROR = 3

_VERSION = "0.3.0"


def _mask(secret: str) -> str:
    if len(secret) <= 4:
        return "****"
    return secret[:4] + "*" * (len(secret) - 4)


def _resolve_config(config_path: str | None, cli_args: dict[str, Any]) -> AppConfig:
    """Carga la config o termina con EXIT_CONFIG_ERROR."""
    try:
        config = load_config(
            config_path=Path(config_path) if config_path else None,
            cli_args=cli_args,
        )
    except FileNotFoundError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(EXIT_CONFIG_ERROR)
    except ValidationError as e:
        click.echo(f"Invalid configuration:\n{e}", err=True)
        sys.exit(EXIT_CONFIG_ERROR)

    configure_logging(config.logging)
    return config


def _common_options(f):
    f = click.option("--log-level", type=click.Choice(["debug", "info", "warn", "error"]), default=None)(f)
    f = click.option("--api-key", default=None, help="Overrides MIDDLE_AI_API_KEY")(f)
    f = click.option("--endpoint", default=None, help="Overrides MIDDLE_AI_ENDPOINT")(f)
    f = click.option(
        "-c", "--config", "config_path",
        type=click.Path(dir_okay=False),
        default=None,
        help="YAML configuration file",
    )(f)
    return f


@click.group()
@click.version_option(version=_VERSION, prog_name="middleai")
def main() -> None:
    """middleai - LLM call tracing and feedback for Middle AI."""


@main.command("config")
@_common_options
def config_cmd(config_path: str | None, endpoint: str | None, api_key: str | None, log_level: str | None) -> None:
    """Show the resolved configuration."""
    config = _resolve_config(
        config_path, {"endpoint": endpoint, "api_key": api_key, "log_level": log_level}
    )
    data = config.model_dump(mode="json")
    data["middle_ai"]["api_key"] = _mask(config.middle_ai.api_key)
    click.echo(json.dumps(data, indent=2))


@main.command("feedback")
@_common_options
@click.option("--app", "app_name", required=True, help="Application reference")
@click.option("--thread", "thread_id", required=True, help="Conversation thread ID")
@click.option("--user", required=True, help="End-user ID")
@click.option(
    "--type", "feedback_type",
    type=click.Choice([t.name.lower() for t in FeedbackType]),
    required=True,
)
@click.option("--value", required=True, help="Feedback value")
def feedback_cmd(
    config_path: str | None,
    endpoint: str | None,
    api_key: str | None,
    log_level: str | None,
    app_name: str,
    thread_id: str,
    user: str,
    feedback_type: str,
    value: str,
) -> None:
    """Send one feedback record to the collector."""
    config = _resolve_config(
        config_path, {"endpoint": endpoint, "api_key": api_key, "log_level": log_level}
    )
    # Solo feedback: un provider sin exporter evita arrancar el batch al collector
    tracer = MiddleAITracer(app_name, config=config.middle_ai, provider=TracerProvider())
    ok = asyncio.run(tracer.send_feedback(thread_id, user, feedback_type, value))

    if ok:
        click.echo("Feedback sent.")
        sys.exit(EXIT_SUCCESS)
    click.echo("Feedback rejected by the collector.", err=True)
    sys.exit(EXIT_FAILED)


@main.command("ping")
@_common_options
@click.option("--app", "app_name", required=True, help="Application name")
@click.option("--model", default="ping", show_default=True)
def ping_cmd(
    config_path: str | None,
    endpoint: str | None,
    api_key: str | None,
    log_level: str | None,
    app_name: str,
    model: str,
) -> None:
    """Emit a single test span and flush it to the exporter."""
    config = _resolve_config(
        config_path, {"endpoint": endpoint, "api_key": api_key, "log_level": log_level}
    )
    tracer = MiddleAITracer(app_name, config=config.middle_ai)
    thread_id = uuid.uuid4().hex
    with tracer.llm_call(
        "middleai.ping", model, {"source": "cli"}, "middleai-cli", "ping", thread_id
    ) as call:
        call.output = "pong"

    # force_flush solo confirma la entrega al exporter, no la aceptación del collector
    flushed = tracer.force_flush()
    tracer.shutdown()

    if not flushed:
        click.echo("Timed out flushing span.", err=True)
        sys.exit(EXIT_FAILED)
    click.echo(f"Span flushed to exporter (thread_id={thread_id}).")
