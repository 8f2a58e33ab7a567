# Importing the models registers them on Base.metadata
from db_models.holder import Holder
from db_models.asset import Asset, AssetCategory, CustodyStatus
from db_models.custody_event import CustodyEvent, CustodyAction

__all__ = [
    "Holder",
    "Asset",
    "AssetCategory",
    "CustodyStatus",
    "CustodyEvent",
    "CustodyAction",
]
