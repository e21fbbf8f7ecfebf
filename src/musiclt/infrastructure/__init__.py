"""Infrastructure layer: persistence, integrations and observability."""
