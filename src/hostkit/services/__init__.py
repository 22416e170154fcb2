"""Service layer — storage orchestration, autosave, toolbox, commands.

Services may import from domain and infrastructure layers.
They must never import from commands or output.
"""
