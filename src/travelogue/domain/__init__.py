"""
Domain layer - entities, slug rules, ordering and change events.

This layer holds the catalog's business rules, independent of which storage
backend persists them.
"""
