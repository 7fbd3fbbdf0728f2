"""
Prometheus metrics for the assessment engine.
Exposed by the service app under GET /metrics.
"""
from prometheus_client import Counter, Histogram

# Timed starts create a marker; untimed opens are counted under kind="untimed"
attempts_started_total = Counter(
    "assessment_attempts_started_total",
    "Total number of successful attempt starts",
    ["kind"],
)

submissions_total = Counter(
    "assessment_submissions_total",
    "Total number of graded and persisted submissions",
    ["kind"],
)

# Refused operations by error code (already_started, already_submitted, not_enrolled, ...)
rejected_total = Counter(
    "assessment_rejected_total",
    "Total number of engine operations refused with a domain error",
    ["code"],
)

# Fraction of questions answered correctly per submission
score_ratio = Histogram(
    "assessment_score_ratio",
    "Submission score divided by total questions",
    buckets=(0.1, 0.2, 0.3, 0.4, 0.5, 0.6, 0.7, 0.8, 0.9, 1.0),
)


def mark_started(kind: str) -> None:
    """Count a successful start for an assessment kind ("timed" / "untimed")."""
    attempts_started_total.labels(kind=kind).inc()


def mark_submitted(kind: str, score: int, total: int) -> None:
    """Count a persisted submission and record its score ratio."""
    submissions_total.labels(kind=kind).inc()
    if total:
        score_ratio.observe(score / total)


def mark_rejected(code: str) -> None:
    rejected_total.labels(code=code).inc()
