"""Prometheus collectors for external program dispatch.

Collectors are looked up in the default registry before being created so
that re-importing this module (test reloads, multiple instances in one
process) never trips over duplicate registration.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from prometheus_client import REGISTRY, Counter, Histogram

NAMESPACE = "radius_exec"


def _fullname(name: str, namespace: str | None) -> str:
    return f"{namespace}_{name}" if namespace else name


def _get_existing(fullname: str) -> Any | None:
    reg = getattr(REGISTRY, "_names_to_collectors", {})
    if isinstance(reg, dict):
        return reg.get(fullname)
    return None


def safe_counter(
    name: str,
    documentation: str,
    labelnames: list[str] | None = None,
    namespace: str | None = NAMESPACE,
) -> Counter:
    existing = _get_existing(_fullname(name, namespace))
    if existing is not None:
        return existing
    return Counter(name, documentation, labelnames or [], namespace=namespace or "")


def safe_histogram(
    name: str,
    documentation: str,
    labelnames: list[str] | None = None,
    buckets: list[float] | None = None,
    namespace: str | None = NAMESPACE,
) -> Histogram:
    existing = _get_existing(_fullname(name, namespace))
    if existing is not None:
        return existing
    kwargs: dict[str, Any] = {}
    if buckets:
        bks: Sequence[float | str] = tuple(buckets)
        kwargs["buckets"] = bks
    return Histogram(
        name,
        documentation,
        labelnames or [],
        namespace=namespace or "",
        **kwargs,
    )


exec_invocations = safe_counter(
    "invocations_total",
    "External program dispatches by module instance and pipeline stage",
    ["module", "stage"],
)
exec_results = safe_counter(
    "results_total",
    "Dispatch results by module instance and result code",
    ["module", "result"],
)
exec_program_seconds = safe_histogram(
    "program_seconds",
    "Wall time spent waiting for external programs",
    ["wait"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1, 2, 5, 10, 30],
)
