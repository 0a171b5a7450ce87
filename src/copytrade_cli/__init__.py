"""copytrade command-line interface."""
