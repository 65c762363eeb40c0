"""
Application usecases.

HTTP routes and CLI commands call ``CatalogService`` instead of the
repositories directly.
"""
