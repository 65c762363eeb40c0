"""
HTTP routers for the admin API.
"""
