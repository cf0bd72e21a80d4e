"""Defines common Value Objects used across different domain contexts.

These objects represent simple values such as project ids or
file paths, ensuring consistency and type safety.
"""

from typing import NewType

# === Core Value Objects ===

# Using NewType for semantic clarity, although they are plain values at runtime.
ProjectId = NewType("ProjectId", str)          # Remote project the issues belong to

# === Payload Context ===
FilePath = NewType("FilePath", str)            # Path to a local JSON batch file
