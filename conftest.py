"""Global pytest configuration."""

import os

# Tests use the in-memory store unless a test wires its own
os.environ.setdefault("TRIPLINE_STORAGE_BACKEND", "memory")
