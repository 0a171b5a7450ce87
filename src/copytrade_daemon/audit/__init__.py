"""Audit journal storage and queries."""
