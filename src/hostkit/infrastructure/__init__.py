"""Infrastructure layer — durable record stores, locking, host timers.

This layer depends on stdlib and third-party libs (SQLAlchemy).
It may import domain types but never services, commands, or output.
"""
