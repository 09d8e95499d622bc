"""Domain layer: request/response value objects, enums and errors."""
