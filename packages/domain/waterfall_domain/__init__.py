"""Exit Waterfall Engine - liquidation preference waterfall for cap tables.

This package computes how exit proceeds are distributed among shareholders:
- Carve-outs reserved off the top for a beneficiary group
- Liquidation preferences paid by seniority (standard or pari passu)
- Pro-rata catch-up of whatever remains
- Per-shareholder payouts net of option exercise cost, with money multiples

The domain layer is designed to be:
- Framework-agnostic (no web or UI dependencies)
- Pure (every run builds fresh state; no I/O)
- Testable (plain Python with Pydantic validation)
"""

from .schemas import *  # noqa: F403, F401
from .waterfall import calculate_waterfall, summarize_cap_table  # noqa: F401

__version__ = "0.1.0"
