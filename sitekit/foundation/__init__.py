"""Project-agnostic helpers (config IO, strict config parsing, logging, paths)."""
