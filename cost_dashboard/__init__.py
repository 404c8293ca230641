"""
Cost Dashboard.

Cloud cost aggregation and per-user dashboard storage.
"""
