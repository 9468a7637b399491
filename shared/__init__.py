"""
Shared Kernel

Building blocks used by every app: domain events and exceptions, the
message bus, the unit of work and the API exception handler.
"""
