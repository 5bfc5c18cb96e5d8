"""Core: configuration, constants, component wiring, lifespan and exception handlers."""
