"""
Command-line interface for Travelogue.
"""
