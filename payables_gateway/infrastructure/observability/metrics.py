"""Prometheus metrics for obligation scheduling, reconciliation and undo activity"""

from prometheus_client import Counter, Histogram

# Scheduler metrics
obligation_counter = Counter(
    "payables_obligations_total",
    "Obligations declared",
    ["mode"],  # single | installments | recurring
)

installments_generated_counter = Counter(
    "payables_installments_generated_total",
    "Installment rows generated by the scheduler",
)

payment_counter = Counter(
    "payables_payments_total",
    "Direct payment entries",
    ["action"],  # registered | cancelled
)

# Reconciliation metrics
statement_transactions_counter = Counter(
    "payables_statement_debits_total",
    "Debit transactions parsed from imported statements",
)

match_candidates_histogram = Histogram(
    "payables_match_candidates",
    "Match candidates produced per statement import",
    buckets=[0, 1, 5, 10, 25, 50, 100, 250],
)

match_decision_counter = Counter(
    "payables_match_decisions_total",
    "Operator decisions on match candidates",
    ["outcome"],  # confirmed | rejected
)

# Undo journal metrics
undo_counter = Counter(
    "payables_undo_actions_total",
    "Undo journal activity",
    ["kind", "outcome"],  # outcome: recorded | evicted | applied | failed
)

# Store
store_failures_counter = Counter(
    "payables_store_failures_total",
    "Store operations rejected by the database",
    ["operation"],
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_obligation(mode: str, generated: int) -> None:
    """Record an obligation and the number of rows it expanded into"""
    obligation_counter.labels(mode=mode).inc()
    installments_generated_counter.inc(generated)


def record_statement(debits: int, candidates: int) -> None:
    statement_transactions_counter.inc(debits)
    match_candidates_histogram.observe(candidates)
