"""
Licenses module - License issue and lifecycle management.

This module handles:
- License key generation
- License entity and domain logic
- License lifecycle (issue, activate, download, suspend, reinstate,
  revoke, renew, expire)
- Audit trail of lifecycle events
"""
