"""Infrastructure layer — marker storage and the commit endpoint.

Depends on the domain layer and third-party libs (pydantic).
It must never import from services, commands, or output.
"""
