"""
Bid ledger, which validates and records bids
"""
