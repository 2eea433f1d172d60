"""ChartJournal - AI-assisted chart trading journal."""

__version__ = "0.1.0"
