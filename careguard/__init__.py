"""
CareGuard catalog service: storefront catalog, quote inquiries and admin console backend.
"""

__version__ = "1.0.0"
