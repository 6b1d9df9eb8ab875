"""
MiddleAITracer — Un span de OpenTelemetry por llamada al LLM.

Cada llamada al modelo abre un span con:
- llm_model, enduser_id, user_prompt, application_ref, thread_id, initialPrompt
- model_params.* (parámetros del modelo aplanados, ver flatten.py)

y se cierra añadiendo `llm_output`. El feedback del usuario se envía aparte
con send_feedback.

El provider puede inyectarse (el llamador es dueño de su ciclo de vida) o
construirse aquí a partir de MiddleAIConfig; en ese caso shutdown() lo cierra.
"""

from collections.abc import Mapping
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Generator

import httpx
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.trace import Span, Status, StatusCode

from ..config.loader import config_from_env
from ..config.schema import MiddleAIConfig
from ..logging import get_logger
from .feedback import FeedbackRecord, FeedbackType, post_feedback
from .flatten import ROOT_KEY, flatten_model_params
from .provider import build_tracer_provider

logger = get_logger(__name__)

__all__ = [
    "FIXED_ATTRIBUTES",
    "LLMCall",
    "MiddleAITracer",
]

# Claves fijas de start_trace; nunca empiezan por "model_params."
FIXED_ATTRIBUTES = (
    "llm_model",
    "enduser_id",
    "user_prompt",
    "application_ref",
    "thread_id",
    "initialPrompt",
)

OUTPUT_ATTRIBUTE = "llm_output"


@dataclass
class LLMCall:
    """Handle de una llamada en curso dentro de MiddleAITracer.llm_call.

    Attributes:
        span: Span abierto para la llamada.
        output: Respuesta del modelo; se escribe como llm_output al cerrar.
    """

    span: Span
    output: str = ""


class MiddleAITracer:
    """Tracer de llamadas LLM para el collector de Middle AI.

    Attributes:
        name: Nombre de la aplicación (application_ref y service.name).
        config: Configuración validada del collector.
    """

    def __init__(
        self,
        name: str,
        config: MiddleAIConfig | None = None,
        provider: TracerProvider | None = None,
        register_global: bool = False,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Inicializa el tracer.

        Args:
            name: Nombre de la aplicación.
            config: Configuración del collector. Si es None se lee de
                MIDDLE_AI_ENDPOINT / MIDDLE_AI_API_KEY y se valida ya.
            provider: TracerProvider externo. Si es None se construye uno
                propio exportando al collector.
            register_global: Registrar el provider propio como global de
                OpenTelemetry. Ignorado si se inyecta provider.
            http_client: Cliente reutilizable para send_feedback.

        Raises:
            ValidationError: Si la configuración del entorno es inválida.
        """
        self.name = name
        self.config = config or config_from_env()
        self.log = logger.bind(component="tracer", application=name)
        self._http = http_client

        self._owns_provider = provider is None
        if provider is None:
            provider = build_tracer_provider(
                self.config,
                service_name=name,
                register_global=register_global,
            )
        self._provider = provider
        self._tracer = provider.get_tracer(self.config.tracer_name)

        self.log.info(
            "tracer.initialized",
            endpoint=self.config.endpoint,
            owns_provider=self._owns_provider,
        )

    def start_trace(
        self,
        name: str,
        model: str,
        model_params: Mapping[str, Any] | None,
        user: str,
        prompt: str,
        thread_id: str,
        initial_prompt: str = "",
    ) -> Span:
        """Abre el span de una llamada al modelo.

        Args:
            name: Nombre del span.
            model: Modelo LLM (llm_model).
            model_params: Parámetros del modelo, anidados o no.
            user: ID del usuario final (enduser_id).
            prompt: Prompt del usuario (user_prompt).
            thread_id: ID de la conversación.
            initial_prompt: Prompt inicial de la conversación.

        Returns:
            Span iniciado; debe cerrarse con end_trace.

        Raises:
            ModelParamsCycleError: Si model_params contiene un ciclo.
            ModelParamsKeyCollisionError: Si dos parámetros generan la misma clave.
        """
        attributes: dict[str, Any] = flatten_model_params(model_params, root=ROOT_KEY)
        attributes.update({
            "llm_model": model,
            "enduser_id": user,
            "user_prompt": prompt,
            "application_ref": self.name,
            "thread_id": thread_id,
            "initialPrompt": initial_prompt,
        })

        self.log.debug(
            "tracer.span.start",
            span=name,
            model=model,
            thread_id=thread_id,
            params=len(attributes) - len(FIXED_ATTRIBUTES),
        )
        return self._tracer.start_span(name, attributes=attributes)

    def end_trace(self, span: Span, output: str) -> None:
        """Añade llm_output y cierra el span.

        El tracer no lleva estado de los spans: cerrar dos veces el mismo
        span queda fuera de contrato.
        """
        span.set_attribute(OUTPUT_ATTRIBUTE, output)
        span.end()

    @contextmanager
    def llm_call(
        self,
        name: str,
        model: str,
        model_params: Mapping[str, Any] | None,
        user: str,
        prompt: str,
        thread_id: str,
        initial_prompt: str = "",
    ) -> Generator[LLMCall, None, None]:
        """Context manager sobre start_trace/end_trace.

        Uso:
            with tracer.llm_call("chat", "gpt-4o", params, user, prompt, tid) as call:
                call.output = llm(prompt)

        Si el bloque lanza una excepción, se registra en el span con status
        ERROR, el span se cierra con el output acumulado y la excepción se
        propaga.
        """
        span = self.start_trace(
            name, model, model_params, user, prompt, thread_id, initial_prompt
        )
        call = LLMCall(span=span)
        try:
            yield call
        except Exception as e:
            span.record_exception(e)
            span.set_status(Status(StatusCode.ERROR, str(e)))
            raise
        finally:
            self.end_trace(span, call.output)

    async def send_feedback(
        self,
        thread_id: str,
        user: str,
        feedback_type: FeedbackType | int | str,
        feedback: str,
    ) -> bool:
        """Envía feedback del usuario para una conversación.

        Args:
            thread_id: ID de la conversación.
            user: ID del usuario final.
            feedback_type: FeedbackType, su valor o su nombre.
            feedback: Valor del feedback.

        Returns:
            True si el collector respondió 2xx, False en otro caso.

        Raises:
            ValueError: Si feedback_type no es un tipo conocido.
        """
        record = FeedbackRecord(
            application_ref=self.name,
            thread_id=thread_id,
            enduser_id=user,
            feedback_type=FeedbackType.parse(feedback_type),
            feedback_value=feedback,
        )
        return await post_feedback(self.config, record, client=self._http)

    def force_flush(self, timeout_millis: int = 30000) -> bool:
        """Exporta los spans pendientes del batch."""
        return self._provider.force_flush(timeout_millis)

    def shutdown(self) -> None:
        """Detiene el provider propio y hace flush de spans pendientes.

        Un provider inyectado pertenece al llamador y no se toca.
        """
        if not self._owns_provider:
            return
        try:
            self._provider.shutdown()
        except Exception as e:
            self.log.warning("telemetry.shutdown_error", error=str(e))
