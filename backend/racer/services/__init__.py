"""Leaderboard domain services.

Pure(ish) logic imported by HTTP routes and socket handlers, keeping
transport concerns separated from scoring, validation and retention.
"""
