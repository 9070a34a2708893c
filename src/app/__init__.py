"""Checkout inventory service.

Transactional purchases against a product catalog, served over FastAPI.
"""

__version__ = "0.1.0"
