"""Infrastructure layer: observability, stubs and adapters for the ports."""
