"""Platform fee policy shared by the engines it launches.

An engine copies `platform_fee` when it is initialized, so later fee changes
only affect engines initialized afterwards. The wallet is read at
distribution time, so moving it redirects fees of every engine at once.
"""

import logging
from typing import Optional

from ..schemas.base import PERCENTAGE_SCALE
from .errors import InvalidFeePercentage, OnlyOwner

logger = logging.getLogger(__name__)


class FeePolicy:
    """Owner-managed platform fee rate and fee wallet.

    Example:
        policy = FeePolicy(owner="platform")
        policy.set_platform_fee("platform", 5_000_000)   # 50%
        policy.set_platform_wallet("platform", "fee_wallet")
    """

    def __init__(
        self,
        owner: str,
        platform_fee: int = 0,
        platform_wallet: Optional[str] = None,
        scale: int = PERCENTAGE_SCALE,
    ):
        if scale <= 0:
            raise ValueError(f"scale must be positive, got {scale}")
        self.owner = owner
        self.scale = scale
        self._check_fee(platform_fee)
        self.platform_fee = platform_fee
        self.platform_wallet = platform_wallet

    def _check_fee(self, fee: int) -> None:
        if fee < 0 or fee > self.scale:
            raise InvalidFeePercentage(f"Fee {fee} outside [0, {self.scale}]")

    def _require_owner(self, caller: str) -> None:
        if caller != self.owner:
            raise OnlyOwner(f"'{caller}' is not the fee policy owner")

    def set_platform_fee(self, caller: str, fee: int) -> None:
        self._require_owner(caller)
        self._check_fee(fee)
        logger.info(f"Platform fee changed {self.platform_fee} -> {fee}")
        self.platform_fee = fee

    def set_platform_wallet(self, caller: str, wallet: str) -> None:
        self._require_owner(caller)
        logger.info(f"Platform wallet changed {self.platform_wallet} -> {wallet}")
        self.platform_wallet = wallet
