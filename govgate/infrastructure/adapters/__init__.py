"""Adapters implementing the governance ports against real infrastructure."""
