import logging
import re
import time
import uuid

from django.conf import settings
from django.utils.deprecation import MiddlewareMixin

from .logging_filters import current_request_id
from .metrics import get_histogram

logger = logging.getLogger(__name__)

_REQUEST_ID_HEADER = "HTTP_X_REQUEST_ID"
_RESPONSE_ID_HEADER = "X-Request-ID"
# Un id entrante solo se acepta si es corto y sin caracteres de control
_VALID_REQUEST_ID = re.compile(r"^[A-Za-z0-9._-]{1,64}$")

REQUEST_SECONDS = get_histogram(
    "http_request_seconds",
    "Duración de las peticiones HTTP",
    ["method", "status"],
)


class RequestIDMiddleware(MiddlewareMixin):
    """
    Asigna un X-Request-ID a cada petición y lo deja disponible para los logs
    (ver `core.logging_filters.RequestIDFilter`).
    """
    def process_request(self, request):
        incoming = request.META.get(_REQUEST_ID_HEADER, "")
        rid = incoming if _VALID_REQUEST_ID.match(incoming) else str(uuid.uuid4())
        request.request_id = rid
        request._request_id_token = current_request_id.set(rid)
        return None

    def process_response(self, request, response):
        rid = getattr(request, "request_id", None)
        if rid:
            response[_RESPONSE_ID_HEADER] = rid
        token = getattr(request, "_request_id_token", None)
        if token is not None:
            current_request_id.reset(token)
            request._request_id_token = None
        return response


class PerformanceLoggingMiddleware(MiddlewareMixin):
    """
    Mide cada petición, la publica en Prometheus y avisa de las lentas.

    Configuración en settings.py:
        SLOW_REQUEST_THRESHOLD = 1.0  # segundos
    """

    def process_request(self, request):
        request._start_time = time.time()
        return None

    def process_response(self, request, response):
        if not hasattr(request, '_start_time'):
            return response

        duration = time.time() - request._start_time
        REQUEST_SECONDS.labels(method=request.method, status=str(response.status_code)).observe(duration)

        if duration > getattr(settings, 'SLOW_REQUEST_THRESHOLD', 1.0):
            logger.warning(
                "Slow request detected: %s %s - %.2fs (status %s)",
                request.method,
                request.path,
                duration,
                response.status_code,
                extra={
                    'request_id': getattr(request, 'request_id', None),
                    'duration': duration,
                    'path': request.path,
                    'method': request.method,
                    'status_code': response.status_code,
                }
            )

        response['X-Response-Time'] = f"{duration:.3f}s"
        return response

    def process_exception(self, request, exception):
        # Las excepciones de dominio las traduce DRF; aquí solo llegan las no manejadas
        if hasattr(request, '_start_time'):
            duration = time.time() - request._start_time
            logger.error(
                "Request failed: %s %s - %.2fs - %s",
                request.method,
                request.path,
                duration,
                exception.__class__.__name__,
                extra={
                    'request_id': getattr(request, 'request_id', None),
                    'duration': duration,
                    'exception': str(exception),
                }
            )
        return None
