"""Parts marketplace backend: seller reviews and rating aggregation."""

__version__ = "1.0.0"
