"""
Licenses module - license keys and their validation.

This module handles:
- LicenseKey entity and domain logic
- Key generation, minting and reservation
- Key lifecycle (claim, reactivate, hardware binding, reset, delete)
- License validation for the desktop client
"""
