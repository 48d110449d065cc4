"""Application services for the trade import engine."""
