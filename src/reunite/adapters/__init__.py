"""Adapters binding the matching engine to the ledger, oracle and content store."""
