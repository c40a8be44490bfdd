"""
api — HTTP control edge
=======================

Modules
-------
server
    FastAPI application driving one :class:`~sim.session.Simulation`.
"""
