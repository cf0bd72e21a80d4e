"""Infrastructure Layer: Contains concrete implementations and adapters.

Connects the application to the outside world (HTTP endpoint, file system,
console, configuration sources) by implementing the interfaces defined in
the domain layer. Also holds the resilience core.
"""
