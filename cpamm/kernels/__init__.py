"""
Kernel layer.

Deterministic, integer-only pricing and share math for the pool engine.
- `cpamm/kernels/python/` holds the pure kernels (human-readable, no state).
- `cpamm/core/` wraps them with typed errors and the stateful engine.
"""
