"""
CyclerSim - battery-cycler device simulator.

Fabricates multi-channel cycler telemetry and pushes it to a collection
server on a fixed cadence.
"""
__version__ = "1.0.0"
