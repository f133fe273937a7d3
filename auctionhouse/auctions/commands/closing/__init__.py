"""
Auction closing commands
"""
