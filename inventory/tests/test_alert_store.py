import uuid

import pytest
from django.db import IntegrityError, transaction
from django.utils import timezone
from model_bakery import baker

from core.exceptions import ResourceNotFoundError
from inventory.models import Product, StockAlert
from inventory.services.alert_store import AlertStore


@pytest.fixture
def bare_product(db):
    return baker.make(Product, sku="AS-1", quantity=1, min_stock_level=5)


@pytest.mark.django_db
class TestAlertStore:
    def test_open_alert_snapshots_trigger_values(self, bare_product):
        alert, created = AlertStore.open_alert(bare_product)
        assert created is True
        assert alert.status == StockAlert.Status.ACTIVE
        assert alert.quantity_at_trigger == 1
        assert alert.threshold_at_trigger == 5
        assert alert.resolved_at is None

    def test_open_alert_is_idempotent(self, bare_product):
        first, _ = AlertStore.open_alert(bare_product)
        second, created = AlertStore.open_alert(bare_product)
        assert created is False
        assert second.pk == first.pk
        assert StockAlert.objects.filter(product=bare_product).count() == 1

    def test_database_rejects_second_active_alert(self, bare_product):
        AlertStore.open_alert(bare_product)
        with pytest.raises(IntegrityError):
            with transaction.atomic():
                StockAlert.objects.create(
                    product=bare_product,
                    quantity_at_trigger=1,
                    threshold_at_trigger=5,
                )

    def test_resolve_sets_timestamp_once(self, bare_product):
        alert, _ = AlertStore.open_alert(bare_product)
        AlertStore.resolve(alert)
        alert.refresh_from_db()
        assert alert.status == StockAlert.Status.RESOLVED
        resolved_at = alert.resolved_at
        assert resolved_at is not None

        AlertStore.resolve(alert)
        alert.refresh_from_db()
        assert alert.resolved_at == resolved_at

    def test_new_alert_can_open_after_resolution(self, bare_product):
        alert, _ = AlertStore.open_alert(bare_product)
        AlertStore.resolve(alert)
        new_alert, created = AlertStore.open_alert(bare_product)
        assert created is True
        assert new_alert.pk != alert.pk
        assert StockAlert.objects.filter(product=bare_product).count() == 2

    def test_get_missing_alert(self):
        with pytest.raises(ResourceNotFoundError):
            AlertStore.get(uuid.uuid4())

    def test_listings(self, bare_product):
        other = baker.make(Product, sku="AS-2", quantity=0, min_stock_level=1)
        resolved = baker.make(
            StockAlert,
            product=bare_product,
            status=StockAlert.Status.RESOLVED,
            resolved_at=timezone.now(),
            quantity_at_trigger=0,
            threshold_at_trigger=5,
        )
        active, _ = AlertStore.open_alert(other)

        assert [a.pk for a in AlertStore.list_active()] == [active.pk]
        assert [a.pk for a in AlertStore.list_by_product(bare_product.pk)] == [resolved.pk]
        assert {a.pk for a in AlertStore.list_all()} == {active.pk, resolved.pk}

    def test_delete_for_product(self, bare_product):
        AlertStore.open_alert(bare_product)
        assert AlertStore.delete_for_product(bare_product) == 1
        assert not StockAlert.objects.filter(product=bare_product).exists()
