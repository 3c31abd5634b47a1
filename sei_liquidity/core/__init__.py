"""Domain models, storage and the pool sync services."""
