import django.db.models.deletion
import uuid
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Product',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('sku', models.CharField(help_text='Identificador único del producto.', max_length=60, unique=True, verbose_name='SKU')),
                ('name', models.CharField(max_length=255, verbose_name='Nombre del Producto')),
                ('description', models.TextField(blank=True, default='', verbose_name='Descripción')),
                ('category', models.CharField(blank=True, default='', max_length=100, verbose_name='Categoría')),
                ('price', models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True, verbose_name='Precio')),
                ('quantity', models.PositiveIntegerField(default=0, verbose_name='Cantidad en Stock')),
                ('min_stock_level', models.PositiveIntegerField(default=10, help_text='Se abre una alerta cuando la cantidad es menor o igual a este valor.', verbose_name='Stock Mínimo')),
            ],
            options={
                'verbose_name': 'Producto',
                'verbose_name_plural': 'Productos',
                'ordering': ['-created_at'],
                'indexes': [models.Index(fields=['quantity'], name='product_quantity_idx')],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('quantity__gte', 0)), name='product_quantity_non_negative'),
                    models.CheckConstraint(condition=models.Q(('min_stock_level__gte', 0)), name='product_min_stock_level_non_negative'),
                ],
            },
        ),
        migrations.CreateModel(
            name='StockAlert',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('status', models.CharField(choices=[('ACTIVE', 'Activa'), ('RESOLVED', 'Resuelta')], default='ACTIVE', max_length=10, verbose_name='Estado')),
                ('quantity_at_trigger', models.PositiveIntegerField(help_text='Cantidad del producto cuando se abrió la alerta.', verbose_name='Cantidad al abrir')),
                ('threshold_at_trigger', models.PositiveIntegerField(help_text='Stock mínimo configurado cuando se abrió la alerta.', verbose_name='Umbral al abrir')),
                ('resolved_at', models.DateTimeField(blank=True, null=True, verbose_name='Resuelta en')),
                ('product', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='stock_alerts', to='inventory.product', verbose_name='Producto')),
            ],
            options={
                'verbose_name': 'Alerta de Stock',
                'verbose_name_plural': 'Alertas de Stock',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['status', '-created_at'], name='alert_status_created_idx'),
                    models.Index(fields=['product', '-created_at'], name='alert_product_created_idx'),
                ],
                'constraints': [
                    models.UniqueConstraint(condition=models.Q(('status', 'ACTIVE')), fields=('product',), name='unique_active_alert_per_product'),
                    models.CheckConstraint(condition=models.Q(models.Q(('resolved_at__isnull', True), ('status', 'ACTIVE')), models.Q(('resolved_at__isnull', False), ('status', 'RESOLVED')), _connector='OR'), name='stock_alert_resolved_at_matches_status'),
                ],
            },
        ),
    ]
