"""ORM models, the model registry handed to jobs, and pydantic schemas."""
from .registry import ModelRegistry, default_registry

__all__ = ["ModelRegistry", "default_registry"]
