"""
Auction domain model

Domain objects are plain dataclasses. They are snapshots read within a single transaction and are never shared
as live object graphs across operations. Relationships are expressed as ids, e.g., `Bid.auction_id`.
"""
from typing import NewType

AuctionId = NewType("AuctionId", int)
BidId = NewType("BidId", int)
OrderId = NewType("OrderId", int)

# user accounts are owned by an external identity service
UserId = NewType("UserId", int)

# money amounts are expressed in the currency's minor unit, e.g., cents
Amount = NewType("Amount", int)
