"""Virtual filesystem engine over a size-limited blob backend."""
