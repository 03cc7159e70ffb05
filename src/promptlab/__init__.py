"""promptlab - multi-provider prompt testing backend."""

__version__ = "1.0.0"
