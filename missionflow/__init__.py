"""Mission approval workflow for the RNP mission management system."""

__version__ = "0.1.0"
