"""Context tailoring pipeline: token-budgeted context packages for AI assistants."""

__version__ = "0.1.0"
