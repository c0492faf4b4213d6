"""Release orchestration for multi-component Python repositories."""

__version__ = "0.1.0"
