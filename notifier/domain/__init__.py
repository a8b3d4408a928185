"""Domain layer: entities, events and errors."""
