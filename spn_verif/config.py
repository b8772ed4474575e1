"""
Testbench Configuration

Timing budgets and run options for the driver, monitor and testbench.
"""

import os
from dataclasses import dataclass, fields, replace
from typing import Optional


@dataclass
class TestbenchConfig:
    """Testbench configuration parameters"""
    __test__ = False  # not a pytest test class

    # Bounded wait for a response (driver and monitor)
    timeout_ticks: int = 20

    # Reset sequencing
    reset_cycles: int = 5
    reset_settle_cycles: int = 2

    # Driver hold policy
    post_response_hold: int = 2    # Extra ticks after ENCRYPT/DECRYPT completes
    undefined_hold: int = 2        # Extra ticks UNDEFINED stays asserted
    idle_wait: int = 2             # Ticks waited after NOP/UNDEFINED

    # Run control
    drain_cycles: int = 4
    random_count: int = 30
    seed: Optional[int] = None

    # Scheduler passes per tick so every woken task reaches its next await
    settle_deltas: int = 4

    verbose: bool = False

    def validate(self) -> 'TestbenchConfig':
        """Reject budgets the harness cannot run with"""
        for name in ('timeout_ticks', 'reset_cycles', 'random_count', 'settle_deltas'):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive, got {getattr(self, name)}")
        for name in ('reset_settle_cycles', 'post_response_hold', 'undefined_hold',
                     'idle_wait', 'drain_cycles'):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be non-negative, got {getattr(self, name)}")
        return self

    @classmethod
    def from_env(cls, **overrides) -> 'TestbenchConfig':
        """Build a config, letting SPN_VERIF_* environment variables override defaults"""
        env = {}
        if os.environ.get('SPN_VERIF_SEED'):
            env['seed'] = int(os.environ['SPN_VERIF_SEED'], 0)
        if os.environ.get('SPN_VERIF_TIMEOUT'):
            env['timeout_ticks'] = int(os.environ['SPN_VERIF_TIMEOUT'], 0)
        if os.environ.get('SPN_VERIF_RANDOM_COUNT'):
            env['random_count'] = int(os.environ['SPN_VERIF_RANDOM_COUNT'], 0)
        if os.environ.get('SPN_VERIF_VERBOSE'):
            env['verbose'] = os.environ['SPN_VERIF_VERBOSE'].lower() in ('1', 'true', 'yes')

        known = {f.name for f in fields(cls)}
        unknown = set(overrides) - known
        if unknown:
            raise ValueError(f"Unknown config fields: {sorted(unknown)}")

        env.update(overrides)
        return replace(cls(), **env).validate()
