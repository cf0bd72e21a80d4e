"""issuerelay: resilient batch delivery of issue records to a remote endpoint."""

__version__ = "1.0.0"
