"""
Auction bidding and lifecycle engine
"""
