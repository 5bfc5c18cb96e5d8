"""Application layer: service ports and the verification pipeline services."""
