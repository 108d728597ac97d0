"""
Core module for shared domain infrastructure.

This module contains:
- Domain events, exceptions, value objects and clocks
- Event bus and audit handlers
- Database error translation
- Housekeeping management commands
"""
