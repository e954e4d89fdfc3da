"""Menu console, error log, FITS data logs and menu table generation for a furnace control system."""

__version__ = "0.1.0"