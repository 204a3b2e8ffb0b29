"""Composition root for wiring dependencies.

This package centralizes infrastructure-aware wiring so API and
application layers depend on ports without importing infrastructure
directly.
"""
