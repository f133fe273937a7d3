"""
Auction house health checks
"""
