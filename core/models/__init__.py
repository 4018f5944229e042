"""
Módulo de modelos core.
"""
from .base import BaseModel

__all__ = [
    'BaseModel',
]
