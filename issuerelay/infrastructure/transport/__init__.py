"""Transport adapters that deliver batch payloads to the remote endpoint."""
