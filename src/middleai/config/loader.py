"""
Cargador de configuración con deep merge.

Orden de precedencia (de menor a mayor):
1. Defaults (definidos en los schemas Pydantic)
2. Archivo YAML
3. Variables de entorno (MIDDLE_AI_*)
4. Argumentos CLI

La validación es inmediata: un endpoint o API key ausentes fallan aquí,
no en el momento de exportar spans o enviar feedback.
"""

import os
from pathlib import Path
from typing import Any

import yaml

from .schema import AppConfig, MiddleAIConfig

ENV_ENDPOINT = "MIDDLE_AI_ENDPOINT"
ENV_API_KEY = "MIDDLE_AI_API_KEY"
ENV_LOG_LEVEL = "MIDDLE_AI_LOG_LEVEL"


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Merge recursivo de diccionarios.

    Args:
        base: Diccionario base
        override: Diccionario que sobreescribe valores del base

    Returns:
        Nuevo diccionario con valores merged. Override gana en conflictos de hojas.

    Example:
        >>> deep_merge({"middle_ai": {"endpoint": "a", "api_key": "k"}}, {"middle_ai": {"endpoint": "b"}})
        {'middle_ai': {'endpoint': 'b', 'api_key': 'k'}}
    """
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_yaml_config(config_path: Path | None) -> dict[str, Any]:
    """Carga configuración desde archivo YAML.

    Args:
        config_path: Path al archivo YAML, o None para omitir

    Returns:
        Diccionario con la configuración, o dict vacío si no hay archivo

    Raises:
        FileNotFoundError: Si config_path no existe
    """
    if not config_path:
        return {}

    if not config_path.exists():
        raise FileNotFoundError(f"Archivo de configuración no encontrado: {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)
        return data if data else {}


def load_env_overrides() -> dict[str, Any]:
    """Carga overrides desde variables de entorno.

    Variables soportadas:
        MIDDLE_AI_ENDPOINT: sobreescribe middle_ai.endpoint
        MIDDLE_AI_API_KEY: sobreescribe middle_ai.api_key
        MIDDLE_AI_LOG_LEVEL: sobreescribe logging.level

    Returns:
        Diccionario con overrides desde env vars
    """
    overrides: dict[str, Any] = {}

    if endpoint := os.environ.get(ENV_ENDPOINT):
        overrides.setdefault("middle_ai", {})["endpoint"] = endpoint

    if api_key := os.environ.get(ENV_API_KEY):
        overrides.setdefault("middle_ai", {})["api_key"] = api_key

    if log_level := os.environ.get(ENV_LOG_LEVEL):
        overrides.setdefault("logging", {})["level"] = log_level.lower()

    return overrides


def apply_cli_overrides(config_dict: dict[str, Any], cli_args: dict[str, Any]) -> dict[str, Any]:
    """Aplica overrides desde argumentos CLI.

    Args:
        config_dict: Configuración base (ya merged con YAML y env)
        cli_args: Diccionario con argumentos CLI

    Returns:
        Configuración con overrides de CLI aplicados
    """
    overrides: dict[str, Any] = {}

    if cli_args.get("endpoint"):
        overrides.setdefault("middle_ai", {})["endpoint"] = cli_args["endpoint"]

    if cli_args.get("api_key"):
        overrides.setdefault("middle_ai", {})["api_key"] = cli_args["api_key"]

    if cli_args.get("log_level"):
        overrides.setdefault("logging", {})["level"] = cli_args["log_level"]

    if cli_args.get("log_file"):
        overrides.setdefault("logging", {})["file"] = cli_args["log_file"]

    return deep_merge(config_dict, overrides)


def load_config(
    config_path: Path | None = None,
    cli_args: dict[str, Any] | None = None,
) -> AppConfig:
    """Carga y valida la configuración completa.

    Args:
        config_path: Path al archivo YAML de configuración
        cli_args: Diccionario con argumentos de la CLI

    Returns:
        AppConfig validado y completo

    Raises:
        FileNotFoundError: Si config_path no existe
        ValidationError: Si falta el endpoint o la API key, o no son válidos
    """
    cli_args = cli_args or {}

    yaml_config = load_yaml_config(config_path)
    merged = deep_merge(yaml_config, load_env_overrides())
    merged = apply_cli_overrides(merged, cli_args)

    # middle_ai es obligatorio: sin sección se reporta como campos ausentes
    merged.setdefault("middle_ai", {})
    return AppConfig(**merged)


def config_from_env() -> MiddleAIConfig:
    """Construye la configuración del collector solo desde el entorno.

    Raises:
        ValidationError: Si MIDDLE_AI_ENDPOINT o MIDDLE_AI_API_KEY faltan
    """
    return MiddleAIConfig(**load_env_overrides().get("middle_ai", {}))
