"""
Almacén de productos.

Capa delgada sobre el ORM: valida campos, traduce errores de integridad y de
búsqueda a errores de dominio, y no conoce nada de alertas.
"""
from decimal import Decimal, InvalidOperation

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError, transaction

from core.exceptions import DuplicateSkuError, ResourceNotFoundError, StockValidationError

from ..models import MAX_STOCK_COUNTER, Product

TEXT_FIELDS = ("sku", "name", "description", "category")
COUNTER_FIELDS = ("quantity", "min_stock_level")
EDITABLE_FIELDS = TEXT_FIELDS + ("price",) + COUNTER_FIELDS
REQUIRED_FIELDS = ("name", "sku")


def validate_counter(field, value):
    """Cantidad y umbral deben ser enteros entre 0 y MAX_STOCK_COUNTER."""
    if value is None or isinstance(value, bool) or not isinstance(value, int):
        raise StockValidationError(f"El campo '{field}' debe ser un entero.", field=field)
    if value < 0:
        raise StockValidationError(f"El campo '{field}' no puede ser negativo.", field=field)
    if value > MAX_STOCK_COUNTER:
        raise StockValidationError(
            f"El campo '{field}' no puede superar {MAX_STOCK_COUNTER}.", field=field,
        )
    return value


def _validate_price(value):
    if value is None:
        return None
    try:
        price = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise StockValidationError("El precio no es un número válido.", field="price")
    if not price.is_finite() or price < 0:
        raise StockValidationError("El precio no puede ser negativo.", field="price")
    field = Product._meta.get_field("price")
    _, digits, exponent = price.as_tuple()
    if -exponent > field.decimal_places or len(digits) + exponent > field.max_digits - field.decimal_places:
        raise StockValidationError(
            f"El precio admite hasta {field.max_digits - field.decimal_places} enteros "
            f"y {field.decimal_places} decimales.",
            field="price",
        )
    return price


def clean_product_data(data, *, partial=False):
    """
    Devuelve solo los campos editables presentes en `data`, ya validados.

    Con `partial=False` exige nombre y SKU. Los campos ausentes no se tocan.
    """
    unknown = set(data) - set(EDITABLE_FIELDS)
    if unknown:
        raise StockValidationError(
            f"Campos no permitidos: {', '.join(sorted(unknown))}.",
            extra={"fields": sorted(unknown)},
        )

    cleaned = {}
    for field in TEXT_FIELDS:
        if field not in data:
            continue
        value = data[field]
        if value is None and field not in REQUIRED_FIELDS:
            value = ""
        if not isinstance(value, str):
            raise StockValidationError(f"El campo '{field}' debe ser texto.", field=field)
        value = value.strip()
        if field in REQUIRED_FIELDS and not value:
            raise StockValidationError(f"El campo '{field}' es obligatorio.", field=field)
        max_length = Product._meta.get_field(field).max_length
        if max_length and len(value) > max_length:
            raise StockValidationError(
                f"El campo '{field}' admite máximo {max_length} caracteres.", field=field,
            )
        cleaned[field] = value

    if "price" in data:
        cleaned["price"] = _validate_price(data["price"])

    for field in COUNTER_FIELDS:
        if field in data:
            cleaned[field] = validate_counter(field, data[field])

    if not partial:
        for field in REQUIRED_FIELDS:
            if field not in cleaned:
                raise StockValidationError(f"El campo '{field}' es obligatorio.", field=field)
    return cleaned


class ProductStore:
    @staticmethod
    def create(**fields) -> Product:
        sku = fields.get("sku")
        if Product.objects.filter(sku=sku).exists():
            raise DuplicateSkuError(sku)
        try:
            # Savepoint para que la transacción externa siga usable si falla.
            with transaction.atomic():
                return Product.objects.create(**fields)
        except IntegrityError:
            if Product.objects.filter(sku=sku).exists():
                raise DuplicateSkuError(sku)
            raise

    @staticmethod
    def get(product_id, *, for_update=False) -> Product:
        queryset = Product.objects.all()
        if for_update:
            queryset = queryset.select_for_update()
        try:
            return queryset.get(pk=product_id)
        except (Product.DoesNotExist, DjangoValidationError, ValueError):
            raise ResourceNotFoundError("Producto no encontrado.", extra={"product_id": str(product_id)})

    @staticmethod
    def update(product: Product, **changes) -> Product:
        """Aplica solo los campos presentes; los ausentes no se modifican."""
        changed = [field for field, value in changes.items() if getattr(product, field) != value]
        if not changed:
            return product

        new_sku = changes.get("sku")
        if "sku" in changed and Product.objects.filter(sku=new_sku).exclude(pk=product.pk).exists():
            raise DuplicateSkuError(new_sku)

        for field in changed:
            setattr(product, field, changes[field])
        try:
            with transaction.atomic():
                product.save(update_fields=changed + ["updated_at"])
        except IntegrityError:
            if "sku" in changed and Product.objects.filter(sku=new_sku).exclude(pk=product.pk).exists():
                raise DuplicateSkuError(new_sku)
            raise
        return product

    @staticmethod
    def delete(product: Product) -> None:
        product.delete()

    @staticmethod
    def list():
        return Product.objects.order_by('-created_at')
