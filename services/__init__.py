"""services package initializer — one sub-package per deployable FastAPI service."""
