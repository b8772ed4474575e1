"""
Simulation Kernel

Discrete tick scheduler and triggers for running bus functional models
against the cycle-accurate engine model.
"""

from .triggers import (
    Clock,
    Trigger,
    RisingEdge,
    ClockCycles,
    Condition,
    First,
    start_soon
)

__all__ = [
    'Clock',
    'Trigger',
    'RisingEdge',
    'ClockCycles',
    'Condition',
    'First',
    'start_soon'
]
