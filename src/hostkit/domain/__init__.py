"""Domain layer — persistence contract and color tables.

This layer depends only on stdlib.
It must never import from services, infrastructure, commands, or config.
"""
