"""Domain Layer: cache models and the interfaces (ports) other layers depend on."""
