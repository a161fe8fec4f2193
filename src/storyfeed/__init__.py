"""storyfeed - terminal browser for a paginated story feed."""

__version__ = "0.1.0"
