"""Application layer: services orchestrating domain logic and ports."""
