import pytest

from inventory.models import Product, StockAlert
from inventory.services import StockAlertService


@pytest.fixture
def product_data():
    return {
        "sku": "SKU-001",
        "name": "Tornillo 3/8",
        "description": "Caja x100",
        "category": "Ferretería",
        "quantity": 50,
        "min_stock_level": 10,
    }


@pytest.fixture
def product(db, product_data):
    """Producto sano (cantidad por encima del umbral) creado por el servicio."""
    return StockAlertService.create_product(product_data).product


@pytest.fixture
def low_product(db):
    """Producto que nace bajo el umbral y por tanto con una alerta activa."""
    return StockAlertService.create_product(
        {"sku": "SKU-LOW", "name": "Arandela", "quantity": 2, "min_stock_level": 5}
    ).product


@pytest.fixture
def active_alerts():
    def _active(product):
        return StockAlert.objects.filter(product=product, status=StockAlert.Status.ACTIVE)
    return _active


@pytest.fixture
def assert_consistent(active_alerts):
    """Un producto bajo el umbral tiene exactamente una alerta activa; si no, ninguna."""
    def _check(product):
        product = Product.objects.get(pk=product.pk)
        expected = 1 if product.quantity <= product.min_stock_level else 0
        assert active_alerts(product).count() == expected
    return _check
