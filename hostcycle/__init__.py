"""Remote host restart service with down/up convergence waiting."""

__version__ = "0.1.0"
