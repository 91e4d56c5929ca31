"""Pure domain layer: value objects and calculations with zero I/O."""
