"""
Core modules for Cost Dashboard.

This package contains the aggregation engine and the dashboard
service.
"""
