"""Adapters that connect the core to storage."""
