"""Governance core: eligibility, vote ledger, decision evaluation and lifecycle."""
