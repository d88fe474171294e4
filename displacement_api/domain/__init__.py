"""Domain layer: pure entities and services for attribution and nowcasting."""
