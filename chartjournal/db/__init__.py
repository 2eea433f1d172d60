"""Persistence layer for ChartJournal."""
