"""Trip planner reconciliation service.

Promotes scheduled notifications once they become due and closes expired
polls on a recurring timer.
"""
