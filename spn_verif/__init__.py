"""
SPN Crypto Accelerator Verification Framework

This package provides:
- Cycle-accurate model of the 16-bit SPN crypto accelerator
- Independent golden reference model
- Driver / Monitor bus functional models on a tick kernel
- Scoreboard, protocol checker and coverage collection
- Stimulus sequences and a ready-to-run testbench
"""

__version__ = "1.0.0"
