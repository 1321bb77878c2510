"""School student registry: tolerant spreadsheet/CSV/JSON import into a fixed student schema."""

__version__ = "0.1.0"
