"""State/store layer.

This package is the single source of truth for how an incoming device
record is reconciled with, and persisted as, the device's current state.
"""
