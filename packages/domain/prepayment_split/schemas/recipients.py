"""Recipient model.

A recipient is a payee with a weight in units of 1/scale. The weighted set
as a whole lives in engine.registry.RecipientRegistry, which enforces the
set-level invariants (unique addresses, weights summing to 100%).
"""

from pydantic import Field

from .base import DomainModel, Address, Rate


class Recipient(DomainModel):
    """One entry of the weighted recipient set.

    Example:
        Recipient(address="label_wallet", percentage=8_000_000)  # 80%
    """

    address: Address = Field(
        description="Recipient payee identity"
    )

    percentage: Rate = Field(
        description="Weight in units of 1/scale. Zero is equivalent to absence."
    )
