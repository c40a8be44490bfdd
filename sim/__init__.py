"""
sim — Simulation core
=====================

Modules
-------
physics
    Unit conversion, clamping, easing and rounding helpers.
road
    Deterministic two-sine road centreline.
tuning
    :class:`Tuning` base constants and the speed stage table.
modifiers
    Effect folding, run modifier / glitch catalogs, :func:`derive_params`.
vehicle
    :class:`PlayerState`, :class:`ControlInput` and player dynamics.
traffic
    :class:`TrafficSimulator` NPC pool with predictive avoidance.
collision
    Hitbox overlap test and crash impulse.
progression
    Overtakes, stages, score and the credits / upgrades economy.
store
    JSON persistence of the meta record.
snapshot
    Render and HUD snapshot containers.
session
    :class:`Simulation` context and :class:`RunState` machine.
clock
    :class:`SimulationClock` frame driver.
"""
