"""Reconciliation core: mappings, change tracking and apply logic."""
