"""Assessment attempt & grading service: explicit exports only; no runtime side effects."""

__all__ = ["app", "attempts", "catalog", "grading", "metrics", "review", "scorer", "status"]
