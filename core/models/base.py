"""
Modelo base compartido por las apps del proyecto.
"""
import uuid

from django.db import models


class BaseModel(models.Model):
    """Modelo base con ID UUID y timestamps automáticos."""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    created_at = models.DateTimeField(auto_now_add=True, editable=False)
    updated_at = models.DateTimeField(auto_now=True, editable=False)

    class Meta:
        abstract = True
        ordering = ["-created_at"]
