"""Base classes and type system for revenue-split domain models.

This module provides the shared numeric types, identifiers and constants
used by every schema and by the engine runtime.
"""

from typing import Annotated
from pydantic import BaseModel, Field, ConfigDict

# =============================================================================
# Constants
# =============================================================================

# Default denominator for "100%". Registry weights, the platform fee and both
# investor interest rates are expressed in units of 1 / PERCENTAGE_SCALE.
PERCENTAGE_SCALE = 10_000_000

# Oracle quotes are normalized to this many fractional digits before use.
PRICE_DECIMALS = 18

# The null identity. It is never a valid payee.
NULL_ADDRESS = "0x0000000000000000000000000000000000000000"

# Asset id of the native currency held by the host ledger.
NATIVE = "native"


# =============================================================================
# Base Model
# =============================================================================

class DomainModel(BaseModel):
    """Base class for all domain models.

    Provides common configuration for all Pydantic models in the domain layer:
    - Validation on assignment, so mutated records stay valid
    - Enum value serialization
    """

    model_config = ConfigDict(
        frozen=False,
        validate_assignment=True,
        use_enum_values=True,
        arbitrary_types_allowed=True,
    )


# =============================================================================
# Type Aliases - Numeric
# =============================================================================

Amount = Annotated[
    int,
    Field(ge=0, description="Value in the smallest unit of an asset or of the unit of account")
]

Rate = Annotated[
    int,
    Field(ge=0, description="Rate in units of 1/scale (10_000_000 = 100% at the default scale)")
]

Scale = Annotated[
    int,
    Field(gt=0, description="Denominator representing 100%")
]


# =============================================================================
# Type Aliases - Identifiers
# =============================================================================

Address = Annotated[
    str,
    Field(min_length=1, description="Payee or account identity on the host ledger")
]

AssetId = Annotated[
    str,
    Field(min_length=1, description=f"Asset identity ('{NATIVE}' for the native currency)")
]

FeedId = Annotated[
    str,
    Field(min_length=1, description="Oracle feed identity")
]


def is_null(address) -> bool:
    """True for the null identity (or a missing value)."""
    return address is None or address == "" or address == NULL_ADDRESS
