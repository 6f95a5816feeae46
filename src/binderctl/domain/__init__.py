"""Domain layer: grid geometry, placements, changes, and layout rules.

This layer depends only on stdlib and pydantic.
It must never import from services, infrastructure, commands, or config.
"""
