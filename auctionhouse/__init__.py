"""
Timed auction bidding and lifecycle engine
"""
