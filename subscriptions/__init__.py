"""
Subscriptions module - Recurring billing state of licenses.

This module handles:
- Subscription entity and domain logic
- Billing periods, cancellation and reactivation
- Payment failure bookkeeping
"""
