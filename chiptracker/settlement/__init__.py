"""Settlement module for house payouts and player-to-player transfers."""
from .house import house_settlement, HouseReport, HouseLine
from .players import player_settlement, PlayerSettlementReport, PayerGroup, Payment

__all__ = [
    "house_settlement",
    "HouseReport",
    "HouseLine",
    "player_settlement",
    "PlayerSettlementReport",
    "PayerGroup",
    "Payment",
]
