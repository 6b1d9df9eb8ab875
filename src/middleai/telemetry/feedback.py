"""
Envío de feedback de usuario al collector de Middle AI.

El feedback es independiente de los spans: un POST JSON a
`{endpoint}/feedback` por cada valoración, sin reintentos ni persistencia.
"""

from enum import IntEnum

import httpx
from pydantic import BaseModel

from ..config.schema import MiddleAIConfig
from ..logging import get_logger

logger = get_logger(__name__)

__all__ = [
    "FeedbackRecord",
    "FeedbackType",
    "post_feedback",
]


class FeedbackType(IntEnum):
    """Tipo de valoración. Se serializa como entero en el payload."""

    EMOJI = 0
    THUMBS = 1
    SCALE = 2

    @classmethod
    def parse(cls, value: "FeedbackType | int | str") -> "FeedbackType":
        """Acepta el enum, su valor entero o su nombre (sin distinguir mayúsculas)."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str) and not value.isdigit():
            try:
                return cls[value.upper()]
            except KeyError:
                raise ValueError(f"Unknown feedback type: {value!r}") from None
        return cls(int(value))


class FeedbackRecord(BaseModel):
    """Payload enviado a `/feedback`."""

    application_ref: str
    thread_id: str
    enduser_id: str
    feedback_type: FeedbackType
    feedback_value: str

    model_config = {"extra": "forbid"}


async def post_feedback(
    config: MiddleAIConfig,
    record: FeedbackRecord,
    client: httpx.AsyncClient | None = None,
) -> bool:
    """Envía un registro de feedback.

    Args:
        config: Configuración del collector (URL y API key).
        record: Registro a enviar.
        client: Cliente HTTP a reutilizar. Si es None se crea uno efímero
            con el timeout por defecto de httpx.

    Returns:
        True si el collector respondió 2xx; False ante cualquier otro
        status o error de transporte.
    """
    log = logger.bind(component="feedback", thread_id=record.thread_id)
    headers = {"content-type": "application/json", **config.auth_headers}
    payload = record.model_dump(mode="json")

    try:
        if client is None:
            async with httpx.AsyncClient() as http:
                response = await http.post(config.feedback_url, json=payload, headers=headers)
        else:
            response = await client.post(config.feedback_url, json=payload, headers=headers)
    except httpx.HTTPError as e:
        log.warning("feedback.error", url=config.feedback_url, error=str(e))
        return False

    if not response.is_success:
        log.warning("feedback.rejected", status=response.status_code)
        return False

    log.debug("feedback.sent", status=response.status_code)
    return True
