"""
Servicio de consistencia entre productos y alertas de stock.

Cada operación que cambia cantidad o umbral se ejecuta en una sección crítica
por producto: una transacción con la fila del producto bloqueada
(`select_for_update`). Al terminar la sección, el producto tiene una alerta
ACTIVE si y solo si su cantidad es menor o igual a su stock mínimo.
Productos distintos no se bloquean entre sí.
"""
import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Optional

from django.conf import settings
from django.db import DatabaseError, connection, transaction

from core.exceptions import ConflictRetryError, ResourceNotFoundError, StoreFaultError
from core.metrics import get_counter, get_histogram

from ..models import DEFAULT_MIN_STOCK_LEVEL, Product, StockAlert
from .alert_store import AlertStore
from .product_store import COUNTER_FIELDS, ProductStore, clean_product_data, validate_counter
from .threshold import StockState, StockTransition, stock_state, transition

logger = logging.getLogger(__name__)

ALERTS_OPENED = get_counter(
    "stock_alerts_opened",
    "Alertas de stock bajo abiertas",
    ["reason"],
)
ALERTS_RESOLVED = get_counter(
    "stock_alerts_resolved",
    "Alertas de stock bajo resueltas",
    ["reason"],
)
STOCK_CONFLICTS = get_counter(
    "stock_alert_conflicts",
    "Operaciones abortadas por contención o fallas del almacenamiento",
    ["kind"],
)
MUTATION_SECONDS = get_histogram(
    "stock_mutation_seconds",
    "Duración de las secciones críticas por operación",
    ["operation"],
)

# lock_not_available, serialization_failure, deadlock_detected
_LOCK_CONTENTION_SQLSTATES = {"55P03", "40001", "40P01"}
_LOCK_CONTENTION_MESSAGES = ("database is locked", "lock timeout", "could not obtain lock")


def _stock_settings():
    return getattr(settings, "STOCK_ALERTS", {})


def _is_lock_contention(exc: DatabaseError) -> bool:
    for err in (exc, exc.__cause__):
        if err is None:
            continue
        code = getattr(err, "sqlstate", None) or getattr(err, "pgcode", None)
        if code in _LOCK_CONTENTION_SQLSTATES:
            return True
    message = str(exc).lower()
    return any(fragment in message for fragment in _LOCK_CONTENTION_MESSAGES)


def _apply_timeouts():
    """Acota la espera por bloqueos y la duración de la transacción (PostgreSQL)."""
    if connection.vendor != "postgresql":
        return
    config = _stock_settings()
    lock_timeout = int(config.get("LOCK_TIMEOUT_MS") or 0)
    statement_timeout = int(config.get("STATEMENT_TIMEOUT_MS") or 0)
    with connection.cursor() as cursor:
        if lock_timeout:
            cursor.execute(f"SET LOCAL lock_timeout = {lock_timeout}")
        if statement_timeout:
            cursor.execute(f"SET LOCAL statement_timeout = {statement_timeout}")


@contextmanager
def critical_section(operation, **context):
    """
    Transacción atómica de una operación de inventario.

    Cualquier error de base de datos revierte todo: nunca queda un producto
    escrito sin su transición de alerta. La contención de bloqueos se reporta
    como `ConflictRetryError` y el resto como `StoreFaultError`.
    """
    started = time.monotonic()
    try:
        with transaction.atomic():
            _apply_timeouts()
            yield
    except DatabaseError as exc:
        if _is_lock_contention(exc):
            STOCK_CONFLICTS.labels(kind="lock").inc()
            logger.warning(
                "Contención en %s, operación abortada: %s", operation, context,
            )
            raise ConflictRetryError(extra={"operation": operation}) from exc
        STOCK_CONFLICTS.labels(kind="store").inc()
        logger.error(
            "Falla de almacenamiento en %s: %s (%s)", operation, exc, context,
        )
        raise StoreFaultError(extra={"operation": operation}) from exc
    finally:
        MUTATION_SECONDS.labels(operation=operation).observe(time.monotonic() - started)


@dataclass
class StockUpdateResult:
    """Resultado de una mutación: producto final y efecto sobre sus alertas."""
    product: Product
    state: StockState
    transition: StockTransition
    alert: Optional[StockAlert] = None
    alert_opened: bool = False
    alert_resolved: bool = False


@dataclass
class ReconcileReport:
    checked: int = 0
    opened: int = 0
    resolved: int = 0
    duplicates_resolved: int = 0

    @property
    def changed(self):
        return self.opened + self.resolved + self.duplicates_resolved


class StockAlertService:
    """
    Punto de entrada único para mutaciones de productos y alertas.
    """

    @staticmethod
    def _sync_alerts(product: Product, before: Optional[StockState]) -> StockUpdateResult:
        """
        Restablece la correspondencia producto/alerta dentro de la sección crítica.

        Una alerta que falte (p. ej. resuelta manualmente) o que sobre se
        corrige aquí aunque la transición sea NONE.
        """
        after = stock_state(product.quantity, product.min_stock_level)
        move = transition(before, after)
        result = StockUpdateResult(product=product, state=after, transition=move)

        if after == StockState.BELOW_THRESHOLD:
            alert, created = AlertStore.open_alert(product)
            result.alert = alert
            if created:
                reason = "threshold_crossed" if move == StockTransition.OPEN else "self_heal"
                result.alert_opened = True
                ALERTS_OPENED.labels(reason=reason).inc()
                logger.info(
                    "Alerta de stock abierta: product=%s sku=%s quantity=%s min=%s reason=%s",
                    product.pk, product.sku, product.quantity, product.min_stock_level, reason,
                )
        else:
            alert = AlertStore.active_for(product)
            if alert is not None:
                AlertStore.resolve(alert)
                reason = "restock" if move == StockTransition.RESOLVE else "self_heal"
                result.alert = alert
                result.alert_resolved = True
                ALERTS_RESOLVED.labels(reason=reason).inc()
                logger.info(
                    "Alerta de stock resuelta: product=%s alert=%s quantity=%s min=%s reason=%s",
                    product.pk, alert.pk, product.quantity, product.min_stock_level, reason,
                )
        return result

    @staticmethod
    def create_product(data) -> StockUpdateResult:
        """Crea el producto y abre su alerta si nace por debajo del umbral."""
        fields = clean_product_data(data)
        fields.setdefault("quantity", 0)
        fields.setdefault(
            "min_stock_level",
            _stock_settings().get("DEFAULT_MIN_STOCK_LEVEL", DEFAULT_MIN_STOCK_LEVEL),
        )
        with critical_section("create_product", sku=fields["sku"]):
            product = ProductStore.create(**fields)
            result = StockAlertService._sync_alerts(product, None)
        logger.info("Producto creado: product=%s sku=%s", product.pk, product.sku)
        return result

    @staticmethod
    def _update_counters(operation, product_id, changes) -> StockUpdateResult:
        with critical_section(operation, product_id=str(product_id)):
            product = ProductStore.get(product_id, for_update=True)
            before = stock_state(product.quantity, product.min_stock_level)
            ProductStore.update(product, **changes)
            return StockAlertService._sync_alerts(product, before)

    @staticmethod
    def update_quantity(product_id, quantity) -> StockUpdateResult:
        validate_counter("quantity", quantity)
        return StockAlertService._update_counters(
            "update_quantity", product_id, {"quantity": quantity},
        )

    @staticmethod
    def update_threshold(product_id, min_stock_level) -> StockUpdateResult:
        validate_counter("min_stock_level", min_stock_level)
        return StockAlertService._update_counters(
            "update_threshold", product_id, {"min_stock_level": min_stock_level},
        )

    @staticmethod
    def update_product(product_id, data) -> StockUpdateResult:
        """
        Actualización parcial de cualquier campo del producto.

        Solo se reevalúan las alertas cuando cambian cantidad o umbral.
        """
        changes = clean_product_data(data, partial=True)
        if any(field in changes for field in COUNTER_FIELDS):
            return StockAlertService._update_counters("update_product", product_id, changes)

        with critical_section("update_product", product_id=str(product_id)):
            product = ProductStore.get(product_id, for_update=True)
            ProductStore.update(product, **changes)
        state = stock_state(product.quantity, product.min_stock_level)
        return StockUpdateResult(product=product, state=state, transition=StockTransition.NONE)

    @staticmethod
    def manual_resolve(alert_id) -> StockAlert:
        """
        Resuelve una alerta sin volver a evaluar el producto.

        Es un override del operador: si el producto sigue bajo el umbral, la
        alerta queda resuelta hasta la próxima mutación de cantidad o umbral.
        """
        with critical_section("manual_resolve", alert_id=str(alert_id)):
            alert = AlertStore.get(alert_id)
            ProductStore.get(alert.product_id, for_update=True)
            # Releer con el producto bloqueado
            alert = AlertStore.get(alert_id)
            was_active = alert.is_active
            AlertStore.resolve(alert)
        if was_active:
            ALERTS_RESOLVED.labels(reason="manual").inc()
            logger.info("Alerta resuelta manualmente: alert=%s product=%s", alert.pk, alert.product_id)
        return alert

    @staticmethod
    def delete_product(product_id) -> int:
        """Elimina el producto y todas sus alertas. Devuelve cuántas alertas se borraron."""
        with critical_section("delete_product", product_id=str(product_id)):
            product = ProductStore.get(product_id, for_update=True)
            deleted_alerts = AlertStore.delete_for_product(product)
            ProductStore.delete(product)
        logger.info(
            "Producto eliminado: product=%s alertas_eliminadas=%s", product_id, deleted_alerts,
        )
        return deleted_alerts

    @staticmethod
    def delete_alert(alert_id) -> None:
        """Limpieza administrativa de un registro de alerta. No reabre nada."""
        with critical_section("delete_alert", alert_id=str(alert_id)):
            alert = AlertStore.get(alert_id)
            ProductStore.get(alert.product_id, for_update=True)
            alert = AlertStore.get(alert_id)
            AlertStore.delete(alert)
        logger.info("Alerta eliminada: alert=%s product=%s", alert_id, alert.product_id)

    @staticmethod
    def _reconcile_one(product_id, report: ReconcileReport, dry_run: bool):
        with critical_section("reconcile", product_id=str(product_id)):
            product = ProductStore.get(product_id, for_update=True)
            report.checked += 1
            active = list(
                StockAlert.objects.filter(product=product, status=StockAlert.Status.ACTIVE)
                .order_by('-created_at')
            )
            for duplicate in active[1:]:
                report.duplicates_resolved += 1
                if not dry_run:
                    AlertStore.resolve(duplicate)
                    ALERTS_RESOLVED.labels(reason="reconcile").inc()

            below = stock_state(product.quantity, product.min_stock_level) == StockState.BELOW_THRESHOLD
            if below and not active:
                report.opened += 1
                if not dry_run:
                    AlertStore.open_alert(product)
                    ALERTS_OPENED.labels(reason="reconcile").inc()
            elif not below and active:
                report.resolved += 1
                if not dry_run:
                    AlertStore.resolve(active[0])
                    ALERTS_RESOLVED.labels(reason="reconcile").inc()

    @staticmethod
    def reconcile(product_id=None, *, dry_run=False) -> ReconcileReport:
        """
        Barrido administrativo que restablece la correspondencia para uno o
        todos los productos, cada uno en su propia sección crítica.
        """
        report = ReconcileReport()
        if product_id is not None:
            product_ids = [product_id]
        else:
            product_ids = list(Product.objects.order_by('created_at').values_list('pk', flat=True))

        for pk in product_ids:
            try:
                StockAlertService._reconcile_one(pk, report, dry_run)
            except ResourceNotFoundError:
                if product_id is not None:
                    raise
                # Eliminado después de listar
                logger.info("Producto eliminado durante la reconciliación: product=%s", pk)

        logger.info(
            "Reconciliación de alertas: revisados=%s abiertas=%s resueltas=%s duplicadas=%s dry_run=%s",
            report.checked, report.opened, report.resolved, report.duplicates_resolved, dry_run,
        )
        return report
