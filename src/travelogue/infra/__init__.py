"""
Infrastructure layer - database access, storage backends, caching, audit,
logging, settings and error types.
"""
