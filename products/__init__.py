"""
Products module - Catalogue entries a license is issued for.

This module handles:
- Product entity (license type, default activation limit, duration)
- Product lookup for order fulfilment
"""
