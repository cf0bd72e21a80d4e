"""Domain models: batch payloads, submission results and policy configs."""
