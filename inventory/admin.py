from django.contrib import admin

from .models import Product, StockAlert


class StockAlertInline(admin.TabularInline):
    model = StockAlert
    extra = 0
    can_delete = False
    fields = ('status', 'quantity_at_trigger', 'threshold_at_trigger', 'created_at', 'resolved_at')
    readonly_fields = fields
    ordering = ('-created_at',)

    def has_add_permission(self, request, obj=None):
        # Las alertas solo las abre StockAlertService
        return False


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ('name', 'sku', 'category', 'quantity', 'min_stock_level', 'created_at')
    search_fields = ('name', 'sku', 'category')
    list_filter = ('category',)
    readonly_fields = ('quantity', 'min_stock_level', 'created_at', 'updated_at')
    inlines = [StockAlertInline]

    def has_add_permission(self, request):
        # Altas y cambios de stock van por la API para mantener las alertas al día
        return False


@admin.register(StockAlert)
class StockAlertAdmin(admin.ModelAdmin):
    list_display = ('product', 'status', 'quantity_at_trigger', 'threshold_at_trigger', 'created_at', 'resolved_at')
    list_filter = ('status',)
    search_fields = ('product__name', 'product__sku')
    raw_id_fields = ('product',)
    readonly_fields = ('product', 'status', 'quantity_at_trigger', 'threshold_at_trigger', 'created_at', 'resolved_at')

    def has_add_permission(self, request):
        return False
