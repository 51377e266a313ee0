"""Matching engine core: snapshot, proposal, commit and run bookkeeping."""
