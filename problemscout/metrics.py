"""Prometheus metric definitions for ProblemScout."""

from __future__ import annotations

from prometheus_client import Counter, Histogram

# --- Research runs ---

research_runs_total = Counter(
    "problemscout_research_runs_total",
    "Total research runs by outcome",
    labelnames=["status"],
)

stage_duration_seconds = Histogram(
    "problemscout_stage_duration_seconds",
    "Time spent in a research pipeline stage",
    labelnames=["stage"],
    buckets=(0.5, 1, 2, 5, 10, 20, 30, 60, 120),
)

# --- LLM ---

llm_requests_total = Counter(
    "problemscout_llm_requests_total",
    "Total LLM requests by provider and outcome",
    labelnames=["provider", "outcome"],
)

llm_tokens_total = Counter(
    "problemscout_llm_tokens_total",
    "Total LLM tokens consumed",
    labelnames=["model", "token_type"],
)

# --- Retry ---

retry_attempts_total = Counter(
    "problemscout_retry_attempts_total",
    "Total retry attempts",
    labelnames=["fn_name"],
)

retry_exhausted_total = Counter(
    "problemscout_retry_exhausted_total",
    "Total times retries were exhausted",
    labelnames=["fn_name"],
)

# --- Credits & payments ---

credits_consumed_total = Counter(
    "problemscout_credits_consumed_total",
    "Research credits debited after successful runs",
)

payment_verifications_total = Counter(
    "problemscout_payment_verifications_total",
    "Payment verification attempts by outcome",
    labelnames=["outcome"],
)
