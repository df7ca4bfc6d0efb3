from __future__ import annotations

from collections.abc import Sequence

from prometheus_client import REGISTRY, Counter, Histogram

NAMESPACE = "ldap_auth"


def _fullname(name: str, namespace: str | None) -> str:
    return f"{namespace}_{name}" if namespace else name


def _get_existing(fullname: str):
    # Module reloads in tests would otherwise hit "Duplicated timeseries".
    reg = getattr(REGISTRY, "_names_to_collectors", {})
    if isinstance(reg, dict):
        return reg.get(fullname)
    return None


def safe_counter(
    name: str,
    documentation: str,
    labelnames: list[str] | None = None,
    namespace: str | None = None,
) -> Counter:
    existing = _get_existing(_fullname(name, namespace))
    if existing is not None:
        return existing
    return Counter(name, documentation, labelnames or [], namespace=namespace or "")


def safe_histogram(
    name: str,
    documentation: str,
    buckets: list[float] | None = None,
    namespace: str | None = None,
) -> Histogram:
    existing = _get_existing(_fullname(name, namespace))
    if existing is not None:
        return existing
    bks: Sequence[float | str] = tuple(buckets) if buckets else Histogram.DEFAULT_BUCKETS
    return Histogram(name, documentation, buckets=bks, namespace=namespace or "")


# Directory operations
ldap_binds = safe_counter(
    "binds_total",
    "Bind operations by identity (service/user) and outcome",
    ["identity", "outcome"],
    namespace=NAMESPACE,
)
ldap_searches = safe_counter(
    "searches_total",
    "Search operations by kind (user/group) and outcome",
    ["kind", "outcome"],
    namespace=NAMESPACE,
)

# Authentication flow
auth_attempts = safe_counter(
    "attempts_total",
    "Authentication attempts by outcome",
    ["outcome"],
    namespace=NAMESPACE,
)
auth_latency_seconds = safe_histogram(
    "latency_seconds",
    "Wall time of a full authenticate() call",
    buckets=[0.01, 0.05, 0.1, 0.2, 0.5, 1, 2, 5],
    namespace=NAMESPACE,
)
