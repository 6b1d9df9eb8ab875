"""
Configuración del sistema de logging estructurado.

Dos pipelines independientes:
1. Archivo (JSON) — Si config.file está configurado. Captura todo (DEBUG+).
2. Console (stderr) — Nivel según config.level (por defecto WARNING).

Los loggers de la librería (get_logger) envuelven loggers de stdlib bajo
"middleai", que lleva un NullHandler: sin configure_logging los eventos no
salen por stdout. Quien embebe el tracer decide si llama a configure_logging
o engancha sus propios handlers de logging.
"""

import logging
import sys
from pathlib import Path

import structlog

from ..config.schema import LoggingConfig

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}

# Sin handlers propios del host, los eventos de la librería no se imprimen
logging.getLogger("middleai").addHandler(logging.NullHandler())


def configure_logging(config: LoggingConfig, quiet: bool = False) -> None:
    """Configura structlog y los handlers de stdlib.

    Args:
        config: Configuración de logging (level, file)
        quiet: Si True, desactiva el handler de consola
    """
    logging.root.handlers.clear()
    structlog.reset_defaults()

    # Root logger captura todo — los handlers filtran por nivel
    logging.basicConfig(level=logging.DEBUG, format="%(message)s", handlers=[])

    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]

    # ── Pipeline 1: Archivo JSON ──────────────────────────────────────────
    if config.file:
        file_path = Path(config.file)
        file_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(str(file_path), encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(
            structlog.stdlib.ProcessorFormatter(
                processor=structlog.processors.JSONRenderer(),
                foreign_pre_chain=shared_processors,
            )
        )
        logging.root.addHandler(file_handler)

    # ── Pipeline 2: Console ──────────────────────────────────────────────
    if not quiet:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(level_for(config.level))
        console_handler.setFormatter(
            structlog.stdlib.ProcessorFormatter(
                processor=structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()),
                foreign_pre_chain=shared_processors,
            )
        )
        logging.root.addHandler(console_handler)

    structlog.configure(
        processors=shared_processors + [
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def level_for(name: str) -> int:
    """Convierte el nombre de nivel de la config a nivel de logging de Python."""
    return _LEVELS.get(name, logging.WARNING)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Obtiene un logger estructurado respaldado por logging de stdlib.

    Los eventos siempre acaban en `logging.getLogger(name)`, así que sin
    configure_logging solo los ven los handlers que el host haya añadido.

    Args:
        name: Nombre del logger (usualmente __name__)

    Returns:
        Logger estructurado de structlog
    """
    return structlog.wrap_logger(
        logging.getLogger(name),
        wrapper_class=structlog.stdlib.BoundLogger,
    )
