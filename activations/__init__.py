"""
Activations module - Machine activation and seat accounting.

This module handles:
- Activation entity and domain logic
- Atomic seat claim and release against max activations
- Machine heartbeat tracking
"""
