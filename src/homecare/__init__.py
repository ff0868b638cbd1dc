"""Home-care case management: document store access and spreadsheet imports."""

__version__ = "0.3.0"
