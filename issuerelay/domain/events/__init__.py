"""Domain Event definitions.

Represents significant occurrences during a submission that other parts
of the system might react to (logging, progress display, tests).
"""
