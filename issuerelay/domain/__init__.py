"""Domain Layer: value objects, interfaces (ports) and events.

Has no dependency on infrastructure; the resilience core and the transport
adapters depend on the contracts defined here.
"""
