"""Data models for ChartJournal."""

from chartjournal.models.analysis import AIAnalysis, AnalysisOutcome, TechnicalIndicator
from chartjournal.models.entry import TradeEntry
from chartjournal.models.user import User, DEFAULT_USER
from chartjournal.models.quote import PriceQuote
from chartjournal.models.plan import TradeParameters
from chartjournal.models.stats import JournalStats

__all__ = [
    "AIAnalysis",
    "AnalysisOutcome",
    "TechnicalIndicator",
    "TradeEntry",
    "User",
    "DEFAULT_USER",
    "PriceQuote",
    "TradeParameters",
    "JournalStats",
]
