"""prowmetrics — locate Prometheus metrics archives for Prow CI job runs."""

__version__ = "0.1.0"
