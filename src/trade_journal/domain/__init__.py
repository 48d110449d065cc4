"""Domain layer: value types, enums and the Result error model."""
