"""
Clients for external collaborators: redis cache, geocoding providers and the edge cache.
"""
