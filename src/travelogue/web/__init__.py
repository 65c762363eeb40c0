"""
Web layer: FastAPI application and routers.
"""
