"""Command-line entry point (``clawpod``)."""
