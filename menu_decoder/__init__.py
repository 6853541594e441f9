"""Menu decoder backend: extract dishes from a menu photo and illustrate them."""

__version__ = "0.1.0"
