"""
HTTP API (FastAPI routers and wiring)
"""
