from rest_framework.views import exception_handler
from rest_framework import status
from rest_framework.exceptions import APIException


class DomainError(APIException):
    """
    Error base de la capa de dominio.

    Los servicios lanzan estas excepciones y la capa HTTP solo las traduce
    mediante `drf_exception_handler`. `retryable` indica si el cliente puede
    reintentar la operación completa sin riesgo.
    """
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Operación no permitida."
    default_code = "DOMAIN_ERROR"
    retryable = False

    def __init__(self, detail=None, *, internal_code=None, extra=None):
        payload = {"detail": detail or self.default_detail}
        if internal_code:
            payload["code"] = internal_code
        if extra:
            payload["meta"] = extra
        super().__init__(payload, self.default_code)


class StockValidationError(DomainError):
    """Dato faltante, negativo o mal formado. No se intenta ninguna escritura."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Datos inválidos."
    default_code = "VALIDATION_ERROR"

    def __init__(self, detail=None, *, field=None, **kwargs):
        extra = kwargs.pop("extra", None) or {}
        if field:
            extra["field"] = field
        super().__init__(detail, extra=extra or None, **kwargs)


class ResourceNotFoundError(DomainError):
    """El producto o la alerta referenciados no existen."""
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Recurso no encontrado."
    default_code = "NOT_FOUND"


class DuplicateSkuError(DomainError):
    """Conflicto de creación: el SKU ya está registrado."""
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Ya existe un producto con ese SKU."
    default_code = "DUPLICATE_SKU"

    def __init__(self, sku=None, **kwargs):
        detail = kwargs.pop("detail", None)
        if sku and not detail:
            detail = f"Ya existe un producto con el SKU '{sku}'."
        super().__init__(detail, internal_code="DUPLICATE_SKU", **kwargs)


class StoreFaultError(DomainError):
    """El almacenamiento no está disponible o la transacción fue abortada."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Error de almacenamiento. Intenta de nuevo."
    default_code = "STORE_FAULT"
    retryable = True


class ConflictRetryError(DomainError):
    """Contención de bloqueo sobre un producto. Es transitorio."""
    status_code = status.HTTP_409_CONFLICT
    default_detail = "El producto está siendo modificado. Intenta de nuevo."
    default_code = "CONFLICT_RETRY"
    retryable = True

    def __init__(self, detail=None, **kwargs):
        super().__init__(detail, internal_code="CONFLICT_RETRY", **kwargs)


def drf_exception_handler(exc, context):
    """
    Normaliza errores según la convención (400/404/409/5xx).
    """
    response = exception_handler(exc, context)

    if response is None:
        # Error inesperado
        return None

    default_detail = response.data.get("detail") if isinstance(response.data, dict) else None
    code = response.status_code

    normalized = {
        "status_code": code,
        "error": _map_http_to_code(code),
        "detail": default_detail or "Error",
    }
    # Adjunta errores de validación detallados si existen
    if isinstance(response.data, dict):
        if "code" in response.data:
            normalized["code"] = response.data.get("code")
        extra = {k: v for k, v in response.data.items() if k not in {"detail", "code"}}
        if extra:
            normalized["errors"] = extra
    elif isinstance(response.data, list):
        normalized["errors"] = response.data

    if getattr(exc, "retryable", False):
        normalized["retryable"] = True

    response.data = normalized
    return response


def _map_http_to_code(code: int) -> str:
    return {
        status.HTTP_400_BAD_REQUEST: "VALIDATION_ERROR",
        status.HTTP_404_NOT_FOUND: "NOT_FOUND",
        status.HTTP_405_METHOD_NOT_ALLOWED: "METHOD_NOT_ALLOWED",
        status.HTTP_409_CONFLICT: "CONFLICT",
        status.HTTP_415_UNSUPPORTED_MEDIA_TYPE: "UNSUPPORTED_MEDIA_TYPE",
    }.get(code, "SERVER_ERROR")
