"""testie — readable, real-time reports for 'go test' runs."""

__version__ = "0.3.0"
