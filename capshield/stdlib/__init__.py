"""
Ledger building blocks.

- ``math``:    checked U256 arithmetic and whole-percent fee splitting
- ``token``:   balance ledger, supply cap guard, fee-skimming pipeline
- ``access``:  ownership governance and capability roles
- ``control``: the global pause gate

Components share one ``Journal`` and one ``EventLog`` per ledger; they do not
open transactions themselves.
"""
