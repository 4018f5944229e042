import logging
import uuid
from unittest.mock import patch

import pytest
from django.db import DatabaseError, OperationalError
from django.test import override_settings

from core.exceptions import (
    ConflictRetryError,
    DuplicateSkuError,
    ResourceNotFoundError,
    StockValidationError,
    StoreFaultError,
)
from inventory.models import MAX_STOCK_COUNTER, Product, StockAlert
from inventory.selectors import alerts_for_product
from inventory.services import StockAlertService, StockState, StockTransition
from inventory.services.stock_alert_service import _is_lock_contention


@pytest.mark.django_db
class TestCreateProduct:
    def test_healthy_product_has_no_alert(self, product, active_alerts):
        assert product.quantity == 50
        assert active_alerts(product).count() == 0

    def test_product_born_below_threshold_opens_alert(self):
        result = StockAlertService.create_product(
            {"sku": "NEW-LOW", "name": "Clavo", "quantity": 3, "min_stock_level": 5}
        )
        assert result.transition == StockTransition.OPEN
        assert result.alert_opened is True
        assert result.alert.quantity_at_trigger == 3
        assert result.alert.threshold_at_trigger == 5

    def test_defaults_quantity_zero_and_threshold_ten(self, active_alerts):
        result = StockAlertService.create_product({"sku": "DEF-1", "name": "Tuerca"})
        assert result.product.quantity == 0
        assert result.product.min_stock_level == 10
        # 0 <= 10: nace con alerta
        assert active_alerts(result.product).count() == 1

    @override_settings(STOCK_ALERTS={"DEFAULT_MIN_STOCK_LEVEL": 0})
    def test_default_threshold_comes_from_settings(self, active_alerts):
        result = StockAlertService.create_product({"sku": "DEF-2", "name": "Perno", "quantity": 1})
        assert result.product.min_stock_level == 0
        assert active_alerts(result.product).count() == 0

    def test_duplicate_sku_writes_nothing(self, product, product_data):
        with pytest.raises(DuplicateSkuError):
            StockAlertService.create_product(dict(product_data, quantity=0))
        assert Product.objects.count() == 1
        assert StockAlert.objects.count() == 0

    def test_negative_quantity_rejected(self):
        with pytest.raises(StockValidationError):
            StockAlertService.create_product({"sku": "NEG", "name": "X", "quantity": -1})
        assert Product.objects.count() == 0


@pytest.mark.django_db
class TestUpdateQuantity:
    def test_crossing_down_opens_single_alert(self, product, active_alerts):
        result = StockAlertService.update_quantity(product.pk, 10)
        assert result.state == StockState.BELOW_THRESHOLD
        assert result.transition == StockTransition.OPEN
        assert result.alert_opened is True
        assert active_alerts(product).count() == 1

    def test_staying_below_does_not_duplicate(self, low_product, active_alerts):
        original = active_alerts(low_product).get()
        result = StockAlertService.update_quantity(low_product.pk, 1)
        assert result.transition == StockTransition.NONE
        assert result.alert_opened is False
        assert active_alerts(low_product).get().pk == original.pk
        # La instantánea no se reescribe
        assert active_alerts(low_product).get().quantity_at_trigger == 2

    def test_restock_resolves_alert(self, low_product, active_alerts):
        alert = active_alerts(low_product).get()
        result = StockAlertService.update_quantity(low_product.pk, 6)
        assert result.transition == StockTransition.RESOLVE
        assert result.alert_resolved is True
        alert.refresh_from_db()
        assert alert.status == StockAlert.Status.RESOLVED
        assert alert.resolved_at is not None
        assert active_alerts(low_product).count() == 0

    def test_boundary_equal_to_threshold_alerts(self, product, active_alerts):
        StockAlertService.update_quantity(product.pk, 11)
        assert active_alerts(product).count() == 0
        StockAlertService.update_quantity(product.pk, 10)
        assert active_alerts(product).count() == 1

    def test_cycle_keeps_history(self, product, active_alerts):
        StockAlertService.update_quantity(product.pk, 1)
        StockAlertService.update_quantity(product.pk, 40)
        StockAlertService.update_quantity(product.pk, 0)
        assert StockAlert.objects.filter(product=product).count() == 2
        assert active_alerts(product).count() == 1

    @pytest.mark.parametrize("value", [-5, None, "7", 3.5, 10**20])
    def test_invalid_quantity_leaves_product_untouched(self, product, value):
        with pytest.raises(StockValidationError):
            StockAlertService.update_quantity(product.pk, value)
        product.refresh_from_db()
        assert product.quantity == 50
        assert StockAlert.objects.count() == 0

    def test_unknown_product(self):
        with pytest.raises(ResourceNotFoundError):
            StockAlertService.update_quantity(uuid.uuid4(), 5)
        assert StockAlert.objects.count() == 0


@pytest.mark.django_db
class TestUpdateThreshold:
    def test_raising_threshold_opens_alert(self, product, active_alerts):
        result = StockAlertService.update_threshold(product.pk, 50)
        assert result.transition == StockTransition.OPEN
        assert active_alerts(product).count() == 1
        assert active_alerts(product).get().threshold_at_trigger == 50

    def test_lowering_threshold_resolves_alert(self, low_product, active_alerts):
        result = StockAlertService.update_threshold(low_product.pk, 1)
        assert result.transition == StockTransition.RESOLVE
        assert active_alerts(low_product).count() == 0

    def test_zero_threshold_with_zero_quantity_alerts(self, product, active_alerts):
        StockAlertService.update_quantity(product.pk, 0)
        StockAlertService.update_threshold(product.pk, 0)
        assert active_alerts(product).count() == 1

    def test_negative_threshold_rejected(self, product):
        with pytest.raises(StockValidationError):
            StockAlertService.update_threshold(product.pk, -1)
        product.refresh_from_db()
        assert product.min_stock_level == 10

    def test_oversized_threshold_rejected(self, product):
        with pytest.raises(StockValidationError):
            StockAlertService.update_threshold(product.pk, MAX_STOCK_COUNTER + 1)
        product.refresh_from_db()
        assert product.min_stock_level == 10

    def test_largest_counter_is_stored(self, product, active_alerts):
        StockAlertService.update_threshold(product.pk, MAX_STOCK_COUNTER)
        product.refresh_from_db()
        assert product.min_stock_level == MAX_STOCK_COUNTER
        assert active_alerts(product).count() == 1


@pytest.mark.django_db
class TestUpdateProduct:
    def test_text_fields_do_not_touch_alerts(self, low_product, active_alerts):
        alert = active_alerts(low_product).get()
        result = StockAlertService.update_product(low_product.pk, {"name": "Arandela plana"})
        assert result.transition == StockTransition.NONE
        assert result.product.name == "Arandela plana"
        assert active_alerts(low_product).get().pk == alert.pk

    def test_counter_fields_are_evaluated(self, product, active_alerts):
        result = StockAlertService.update_product(product.pk, {"quantity": 4, "category": "Oferta"})
        assert result.transition == StockTransition.OPEN
        assert result.product.category == "Oferta"
        assert active_alerts(product).count() == 1

    def test_blank_name_rejected(self, product):
        with pytest.raises(StockValidationError):
            StockAlertService.update_product(product.pk, {"name": "  "})

    def test_overlong_sku_rejected_before_writing(self, product):
        with pytest.raises(StockValidationError):
            StockAlertService.update_product(product.pk, {"sku": "S" * 61, "quantity": 1})
        product.refresh_from_db()
        assert product.sku == "SKU-001"
        assert product.quantity == 50

    def test_create_with_overlong_name_rejected(self):
        with pytest.raises(StockValidationError):
            StockAlertService.create_product({"sku": "LONG", "name": "n" * 256})
        assert Product.objects.count() == 0

    def test_sku_collision(self, product):
        StockAlertService.create_product({"sku": "OTHER", "name": "Otro", "quantity": 30})
        with pytest.raises(DuplicateSkuError):
            StockAlertService.update_product(product.pk, {"sku": "OTHER"})


@pytest.mark.django_db
class TestManualResolve:
    def test_resolves_without_reevaluating(self, low_product, active_alerts):
        alert = active_alerts(low_product).get()
        resolved = StockAlertService.manual_resolve(alert.pk)
        assert resolved.status == StockAlert.Status.RESOLVED
        # Sigue bajo el umbral, pero no se reabre hasta la próxima mutación
        assert active_alerts(low_product).count() == 0

    def test_next_mutation_reopens(self, low_product, active_alerts):
        alert = active_alerts(low_product).get()
        StockAlertService.manual_resolve(alert.pk)
        result = StockAlertService.update_quantity(low_product.pk, 1)
        assert result.transition == StockTransition.NONE
        assert result.alert_opened is True
        assert active_alerts(low_product).get().pk != alert.pk

    def test_resolving_twice_is_noop(self, low_product, active_alerts):
        alert = active_alerts(low_product).get()
        first = StockAlertService.manual_resolve(alert.pk)
        second = StockAlertService.manual_resolve(alert.pk)
        assert second.resolved_at == first.resolved_at

    def test_unknown_alert(self):
        with pytest.raises(ResourceNotFoundError):
            StockAlertService.manual_resolve(uuid.uuid4())


@pytest.mark.django_db
class TestDeletes:
    def test_delete_product_cascades_alerts(self, low_product):
        # Dos ciclos de reposición y caída: 2 RESOLVED + 1 ACTIVE
        for quantity in (30, 0, 30, 0):
            StockAlertService.update_quantity(low_product.pk, quantity)
        assert StockAlert.objects.filter(product=low_product, status=StockAlert.Status.RESOLVED).count() == 2
        assert StockAlert.objects.filter(product=low_product, status=StockAlert.Status.ACTIVE).count() == 1

        deleted = StockAlertService.delete_product(low_product.pk)

        assert deleted == 3
        assert list(alerts_for_product(low_product.pk)) == []
        assert not Product.objects.filter(pk=low_product.pk).exists()
        assert StockAlert.objects.count() == 0

    def test_delete_unknown_product(self):
        with pytest.raises(ResourceNotFoundError):
            StockAlertService.delete_product(uuid.uuid4())

    def test_delete_alert_does_not_reopen(self, low_product, active_alerts):
        alert = active_alerts(low_product).get()
        StockAlertService.delete_alert(alert.pk)
        assert not StockAlert.objects.filter(pk=alert.pk).exists()
        assert active_alerts(low_product).count() == 0

    def test_delete_unknown_alert(self):
        with pytest.raises(ResourceNotFoundError):
            StockAlertService.delete_alert(uuid.uuid4())


@pytest.mark.django_db
class TestReconcile:
    def test_opens_missing_and_resolves_stale(self, product, low_product, active_alerts):
        # Desincronizar a propósito por fuera del servicio
        Product.objects.filter(pk=product.pk).update(quantity=0)
        StockAlert.objects.filter(product=low_product).delete()
        Product.objects.filter(pk=low_product.pk).update(quantity=100)
        stale = StockAlertService.create_product(
            {"sku": "STALE", "name": "Viejo", "quantity": 1, "min_stock_level": 5}
        ).product
        Product.objects.filter(pk=stale.pk).update(quantity=9)

        report = StockAlertService.reconcile()

        assert report.checked == 3
        assert report.opened == 1
        assert report.resolved == 1
        assert report.changed == 2
        assert active_alerts(product).count() == 1
        assert active_alerts(low_product).count() == 0
        assert active_alerts(stale).count() == 0

    def test_dry_run_writes_nothing(self, product, active_alerts):
        Product.objects.filter(pk=product.pk).update(quantity=0)
        report = StockAlertService.reconcile(product.pk, dry_run=True)
        assert report.opened == 1
        assert active_alerts(product).count() == 0

    def test_consistent_store_is_unchanged(self, product, low_product):
        report = StockAlertService.reconcile()
        assert report.checked == 2
        assert report.changed == 0

    def test_unknown_single_product(self):
        with pytest.raises(ResourceNotFoundError):
            StockAlertService.reconcile(uuid.uuid4())


@pytest.mark.django_db
class TestStoreFailures:
    def test_lock_contention_maps_to_conflict_retry(self, product):
        with patch(
            "inventory.services.stock_alert_service.ProductStore.get",
            side_effect=OperationalError("database is locked"),
        ):
            with pytest.raises(ConflictRetryError) as exc:
                StockAlertService.update_quantity(product.pk, 1)
        assert exc.value.retryable is True
        assert StockAlert.objects.count() == 0

    def test_other_database_errors_map_to_store_fault(self, product):
        with patch(
            "inventory.services.stock_alert_service.AlertStore.open_alert",
            side_effect=DatabaseError("disk I/O error"),
        ):
            with pytest.raises(StoreFaultError):
                StockAlertService.update_quantity(product.pk, 1)
        # La escritura del producto se revierte junto con la alerta
        product.refresh_from_db()
        assert product.quantity == 50
        assert StockAlert.objects.count() == 0

    def test_store_fault_is_logged(self, product, caplog):
        with patch(
            "inventory.services.stock_alert_service.AlertStore.open_alert",
            side_effect=DatabaseError("disk I/O error"),
        ):
            with caplog.at_level(logging.ERROR, logger="inventory"):
                with pytest.raises(StoreFaultError):
                    StockAlertService.update_quantity(product.pk, 1)
        assert "Falla de almacenamiento en update_quantity" in caplog.text


class TestLockContentionDetection:
    def test_sqlstate_on_cause(self):
        cause = Exception("canceling statement due to lock timeout")
        cause.sqlstate = "55P03"
        exc = OperationalError("boom")
        exc.__cause__ = cause
        assert _is_lock_contention(exc) is True

    def test_message_fallback(self):
        assert _is_lock_contention(OperationalError("database is locked")) is True

    def test_plain_error(self):
        assert _is_lock_contention(DatabaseError("no such table")) is False


@pytest.mark.django_db
def test_mutation_sequence_keeps_alerts_consistent(product, assert_consistent):
    steps = [
        ("quantity", 3), ("quantity", 1), ("threshold", 0), ("threshold", 4),
        ("quantity", 40), ("quantity", 4), ("threshold", 3), ("quantity", 0),
    ]
    for kind, value in steps:
        if kind == "quantity":
            StockAlertService.update_quantity(product.pk, value)
        else:
            StockAlertService.update_threshold(product.pk, value)
        assert_consistent(product)
