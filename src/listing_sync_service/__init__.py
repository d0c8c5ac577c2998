"""
Listing Sync Service: exclusive listing writes fanned out across the
denormalized listing tables.
"""

__version__ = "0.1.0"
