"""
Construcción del TracerProvider para el collector de Middle AI.

Exporta spans vía OTLP/HTTP (protobuf) a `{endpoint}/v1/traces` con la
cabecera `x-middle-ai-api-key`, usando un BatchSpanProcessor.

El provider NO se registra como global salvo que se pida explícitamente:
quien lo crea es dueño de su ciclo de vida (shutdown).
"""

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, SpanExporter

from ..config.schema import MiddleAIConfig
from ..logging import get_logger

logger = get_logger(__name__)

__all__ = [
    "build_exporter",
    "build_tracer_provider",
]


def build_exporter(config: MiddleAIConfig) -> OTLPSpanExporter:
    """Crea el exporter OTLP/HTTP apuntando al collector.

    Args:
        config: Configuración validada del collector.

    Returns:
        OTLPSpanExporter configurado con URL y cabecera de autenticación.
    """
    return OTLPSpanExporter(
        endpoint=config.traces_url,
        headers=config.auth_headers,
    )


def build_tracer_provider(
    config: MiddleAIConfig,
    service_name: str,
    exporter: SpanExporter | None = None,
    register_global: bool = False,
) -> TracerProvider:
    """Crea un TracerProvider con resource y BatchSpanProcessor.

    Args:
        config: Configuración validada del collector.
        service_name: Valor de `service.name` en el resource.
        exporter: Exporter alternativo (por defecto OTLP/HTTP al collector).
        register_global: Si True, registra el provider como global de
            OpenTelemetry. Solo debe hacerse una vez por proceso.

    Returns:
        TracerProvider listo para emitir spans.
    """
    resource = Resource.create({SERVICE_NAME: service_name})
    provider = TracerProvider(resource=resource)
    provider.add_span_processor(BatchSpanProcessor(exporter or build_exporter(config)))

    if register_global:
        trace.set_tracer_provider(provider)

    logger.info(
        "telemetry.provider_built",
        service=service_name,
        endpoint=config.traces_url,
        global_provider=register_global,
    )
    return provider
