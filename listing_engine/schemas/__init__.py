from listing_engine.schemas.listing import (
    CategoryEntry,
    CategoryMatch,
    ComplianceFlags,
    DeliveryInput,
    GroupListingInput,
    ListingInput,
    OriginInfo,
    VariantInput,
    WindowChannelInput,
)

__all__ = [
    "CategoryEntry",
    "CategoryMatch",
    "ComplianceFlags",
    "DeliveryInput",
    "GroupListingInput",
    "ListingInput",
    "OriginInfo",
    "VariantInput",
    "WindowChannelInput",
]
