"""CodeFlow: source code to node/edge graphs."""

__version__ = "0.1.0"
