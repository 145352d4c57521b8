"""Remote service integrations."""

from fridgelist.integrations.fridge_api import FridgeApiClient

__all__ = ["FridgeApiClient"]
