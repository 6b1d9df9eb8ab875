"""
Attribute flattening for model parameters.

OpenTelemetry span attributes only accept scalar values, so nested model
parameters are flattened into dotted keys under a common root:

    {"temperature": 0.7, "sampling": {"top_p": 0.9}}
    -> {"model_params.temperature": 0.7, "model_params.sampling.top_p": 0.9}

The traversal uses an explicit worklist, so arbitrarily deep inputs never
hit the interpreter recursion limit. Containers that contain themselves are
rejected with ModelParamsCycleError. Two leaves that map to the same dotted
key raise ModelParamsKeyCollisionError instead of overwriting each other.
"""

from collections.abc import Mapping, Sequence
from typing import Any

from ..logging import get_logger


logger = get_logger(__name__)

__all__ = [
    "ROOT_KEY",
    "ModelParamsCycleError",
    "ModelParamsKeyCollisionError",
    "flatten_model_params",
    "unflatten_attributes",
]

ROOT_KEY = "model_params"

AttributeValue = str | bool | int | float

# Marca de salida de un contenedor en el worklist
_EXIT = object()


class ModelParamsCycleError(ValueError):
    """Los parámetros del modelo se referencian a sí mismos."""

    def __init__(self, path: str) -> None:
        super().__init__(f"Cyclic reference in model parameters at '{path}'")
        self.path = path


class ModelParamsKeyCollisionError(ValueError):
    """Dos hojas distintas producen la misma clave aplanada.

    Ocurre con claves que contienen "." (`{"a.b": 1, "a": {"b": 2}}`) o con
    claves distintas que coinciden tras str() (`{1: "x", "1": "y"}`).
    """

    def __init__(self, key: str) -> None:
        super().__init__(f"Duplicate flattened key in model parameters: '{key}'")
        self.key = key


def _is_container(value: Any) -> bool:
    if isinstance(value, Mapping):
        return True
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray))


def _items(value: Mapping | Sequence) -> list[tuple[str, Any]]:
    if isinstance(value, Mapping):
        return [(str(k), v) for k, v in value.items()]
    return [(str(i), v) for i, v in enumerate(value)]


def _join(node: tuple) -> str:
    # node es una lista enlazada (padre, segmento); la raíz tiene padre None
    parts: list[str] = []
    while node is not None:
        node, segment = node
        parts.append(segment)
    return ".".join(reversed(parts))


def flatten_model_params(
    params: Mapping[str, Any] | Sequence[Any] | None,
    root: str = ROOT_KEY,
) -> dict[str, AttributeValue]:
    """Aplana parámetros anidados en atributos escalares.

    Mappings y secuencias (excepto str/bytes) se expanden; los índices de
    las secuencias se usan como segmentos del path. Las hojas None se
    omiten y cualquier otra hoja no escalar se convierte con str().

    Args:
        params: Parámetros del modelo. None equivale a un mapping vacío.
        root: Primer segmento de todas las claves generadas.

    Returns:
        Dict plano clave → valor, en el orden de un recorrido en profundidad.

    Raises:
        TypeError: Si params no es un mapping ni una secuencia.
        ModelParamsCycleError: Si un contenedor aparece entre sus ancestros.
        ModelParamsKeyCollisionError: Si dos hojas generan la misma clave.
    """
    if params is None:
        return {}
    if not _is_container(params):
        raise TypeError(
            f"model params must be a mapping or sequence, got {type(params).__name__}"
        )

    flat: dict[str, AttributeValue] = {}
    active: set[int] = set()
    stack: list[tuple[Any, Any]] = [((None, root), params)]

    while stack:
        node, value = stack.pop()

        if node is _EXIT:
            active.discard(value)
            continue

        if _is_container(value):
            if id(value) in active:
                raise ModelParamsCycleError(_join(node))
            active.add(id(value))
            stack.append((_EXIT, id(value)))
            # Invertido para que el pop respete el orden original
            for key, child in reversed(_items(value)):
                stack.append(((node, key), child))
        elif value is None:
            logger.debug("flatten.skip_none", key=_join(node))
        else:
            key = _join(node)
            if key in flat:
                raise ModelParamsKeyCollisionError(key)
            flat[key] = value if isinstance(value, (str, bool, int, float)) else str(value)

    return flat


def unflatten_attributes(
    attributes: Mapping[str, Any],
    root: str = ROOT_KEY,
) -> dict[str, Any]:
    """Reconstruye el mapping anidado a partir de atributos aplanados.

    Solo se consideran las claves que empiezan por `root.`; el resto
    (llm_model, thread_id, ...) se ignora. Las secuencias vuelven como
    dicts indexados por "0", "1", ...
    """
    prefix = root + "."
    nested: dict[str, Any] = {}
    for key, value in attributes.items():
        if not key.startswith(prefix):
            continue
        *parents, leaf = key[len(prefix):].split(".")
        node = nested
        for part in parents:
            node = node.setdefault(part, {})
        node[leaf] = value
    return nested
