"""prowmetrics command-line interface."""
