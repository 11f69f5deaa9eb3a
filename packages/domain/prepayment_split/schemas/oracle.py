"""Price quote model returned by oracle feeds."""

from datetime import datetime
from pydantic import Field

from .base import DomainModel, PRICE_DECIMALS


class PriceQuote(DomainModel):
    """Latest answer of a price feed.

    `price` is a fixed-point integer with `decimals` fractional digits, the
    way aggregator feeds report it (e.g. 1000 USD at 8 decimals is
    100_000_000_000). Sign is not constrained here; the converter decides
    what to do with a non-positive answer.
    """

    price: int = Field(
        description="Quoted price as a fixed-point integer"
    )

    decimals: int = Field(
        default=8,
        ge=0,
        le=36,
        description="Fractional digits of `price`"
    )

    timestamp: datetime = Field(
        description="When the answer was last updated"
    )

    round_id: int = Field(
        default=0,
        ge=0,
        description="Feed round that produced this answer"
    )

    def normalized(self, decimals: int = PRICE_DECIMALS) -> int:
        """Price rescaled to `decimals` fractional digits."""
        if self.decimals <= decimals:
            return self.price * 10 ** (decimals - self.decimals)
        return self.price // 10 ** (self.decimals - decimals)
