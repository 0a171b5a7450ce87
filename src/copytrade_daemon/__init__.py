"""Copy-trade portfolio accounting engine and daemon."""

__version__ = "0.1.0"
