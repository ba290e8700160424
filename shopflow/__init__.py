"""
shopflow — checkout and order workflow for a storefront backend.

    shopflow.catalog    catalog lookups
    shopflow.shipping   distance-based shipping fees
    shopflow.payments   external payment gateway adapter
    shopflow.inventory  conditional stock decrements
    shopflow.checkout   the order workflow
    shopflow.api        FastAPI surface

    shopflow.graph / shopflow.saga / shopflow.lift  composition helpers
"""

__version__ = "0.1.0"
