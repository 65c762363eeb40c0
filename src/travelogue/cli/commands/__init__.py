"""
Command groups registered by ``travelogue.cli.main``.
"""
