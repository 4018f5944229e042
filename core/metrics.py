"""
Helpers para exponer métricas Prometheus registradas una sola vez por proceso.
"""
from typing import Iterable

from prometheus_client import REGISTRY, Counter, Histogram

_counter_cache: dict[tuple[str, tuple[str, ...]], object] = {}
_hist_cache: dict[tuple[str, tuple[str, ...]], object] = {}


def _find_registered(name: str):
    for collector in list(REGISTRY._collector_to_names.keys()):
        if getattr(collector, '_name', None) == name:
            return collector
    return None


def get_counter(name: str, doc: str, labelnames: Iterable[str] = ()) -> object:
    key = (name, tuple(labelnames))
    if key in _counter_cache:
        return _counter_cache[key]
    try:
        metric = Counter(name, doc, list(labelnames))
    except ValueError:
        # La métrica ya existe en el registro (común en tests)
        metric = _find_registered(name)
        if metric is None:
            raise
    _counter_cache[key] = metric
    return metric


def get_histogram(name: str, doc: str, labelnames: Iterable[str] = (), buckets: Iterable[float] | None = None) -> object:
    key = (name, tuple(labelnames))
    if key in _hist_cache:
        return _hist_cache[key]
    try:
        if buckets:
            metric = Histogram(name, doc, list(labelnames), buckets=buckets)
        else:
            metric = Histogram(name, doc, list(labelnames))
    except ValueError:
        metric = _find_registered(name)
        if metric is None:
            raise
    _hist_cache[key] = metric
    return metric
