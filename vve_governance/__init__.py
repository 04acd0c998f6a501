"""
VvE Governance backend.

Voting and decision engine for a homeowners'-association portal: per-unit
ballots, majority policies, and the proposal lifecycle, served over Flask.
"""
__version__ = "1.0.0"
