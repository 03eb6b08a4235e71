"""Domain value objects, clock abstraction, and DTOs (zero I/O)."""
