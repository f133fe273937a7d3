"""
Auction house services
"""
