# -*- coding: utf-8 -*-
from __future__ import annotations

from contextlib import contextmanager
from time import perf_counter
from typing import Iterator

from prometheus_client import Counter, Histogram


transaction_duration_seconds = Histogram(
    "coursealloc_transaction_duration_seconds",
    "Wall time of one use-case transaction",
    ["use_case"],
    buckets=(0.005, 0.01, 0.05, 0.1, 0.25, 0.5, 1, 2, 5),
)
transaction_rollback_total = Counter(
    "coursealloc_transaction_rollback_total",
    "Transactions rolled back",
    ["use_case", "reason"],
)
allocation_outcome_total = Counter(
    "coursealloc_allocation_outcome_total",
    "Teaching allocation attempts by outcome",
    ["outcome"],
)
db_query_duration_seconds = Histogram(
    "coursealloc_db_query_duration_seconds",
    "DB query duration",
    buckets=(0.001, 0.005, 0.01, 0.05, 0.1, 0.5),
)

_enabled = True


def set_metrics_enabled(enabled: bool) -> None:
    global _enabled
    _enabled = enabled


@contextmanager
def measure_transaction(use_case: str) -> Iterator[None]:
    t0 = perf_counter()
    try:
        yield
    finally:
        if _enabled:
            transaction_duration_seconds.labels(use_case=use_case).observe(perf_counter() - t0)


def record_rollback(use_case: str, reason: str) -> None:
    if _enabled:
        transaction_rollback_total.labels(use_case=use_case, reason=reason).inc()


def record_allocation_outcome(outcome: str) -> None:
    if _enabled:
        allocation_outcome_total.labels(outcome=outcome).inc()


__all__ = [
    "allocation_outcome_total",
    "db_query_duration_seconds",
    "measure_transaction",
    "record_allocation_outcome",
    "record_rollback",
    "set_metrics_enabled",
    "transaction_duration_seconds",
    "transaction_rollback_total",
]
