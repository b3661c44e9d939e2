"""Domain layer — topology tables, grid geometry, and hit-testing.

This layer depends only on stdlib and pydantic.
It must never import from services, infrastructure, commands, or config.
"""
