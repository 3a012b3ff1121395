"""
CyclerSim Modules

- simulation: Channel state, telemetry snapshot generation
- transmission: HTTP client, send scheduler, collaborator events
- collector: Local collection server endpoints for development
"""
