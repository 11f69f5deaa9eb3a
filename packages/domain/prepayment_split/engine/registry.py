"""Weighted recipient set.

The set is only ever replaced as a whole. A replacement is validated against
a fully built candidate and committed with a single assignment, so no reader
(including a nested call running during the replacement) can observe a
half-written set or one whose weights do not sum to 100%.
"""

from typing import Dict, List, Sequence, Tuple

from ..schemas.base import PERCENTAGE_SCALE, is_null
from ..schemas.recipients import Recipient
from .errors import (
    InconsistentDataLength,
    NullAddressRecipient,
    DuplicateRecipient,
    InvalidPercentage,
)


class RecipientRegistry:
    """Recipients in insertion order with weights summing to `scale`.

    Example:
        registry = RecipientRegistry()
        registry.set_recipients(["label", "artist"], [8_000_000, 2_000_000])
        registry.percentage_of("label")  # 8_000_000
        registry.set_recipients(["label"], [9_000_000])  # raises InvalidPercentage
        registry.percentage_of("label")  # still 8_000_000
    """

    def __init__(self, scale: int = PERCENTAGE_SCALE):
        if scale <= 0:
            raise ValueError(f"scale must be positive, got {scale}")
        self.scale = scale
        self._entries: Tuple[Recipient, ...] = ()

    def set_recipients(self, addresses: Sequence[str], percentages: Sequence[int]) -> List[Recipient]:
        """Replace the whole set atomically.

        Entries with a zero percentage are accepted but not stored; a zero
        weight is the same as absence. Duplicates are rejected whatever their
        weight.

        Returns:
            The committed recipients

        Raises:
            InconsistentDataLength: addresses and percentages differ in length
            NullAddressRecipient: an address is the null identity
            DuplicateRecipient: an address repeats
            InvalidPercentage: a weight is negative or the total is not `scale`
        """
        if len(addresses) != len(percentages):
            raise InconsistentDataLength(
                f"{len(addresses)} recipients but {len(percentages)} percentages"
            )

        candidate: List[Recipient] = []
        seen = set()
        for address, percentage in zip(addresses, percentages):
            if is_null(address):
                raise NullAddressRecipient("Recipient address is the null address")
            if address in seen:
                raise DuplicateRecipient(address)
            seen.add(address)
            if percentage < 0:
                raise InvalidPercentage(f"Negative percentage {percentage} for '{address}'")
            if percentage == 0:
                continue
            candidate.append(Recipient(address=address, percentage=percentage))

        total = sum(r.percentage for r in candidate)
        if total != self.scale:
            raise InvalidPercentage(f"Percentages sum to {total}, expected {self.scale}")

        self._entries = tuple(candidate)
        return list(self._entries)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def recipients(self) -> List[Recipient]:
        return list(self._entries)

    def addresses(self) -> List[str]:
        return [r.address for r in self._entries]

    def percentage_of(self, address: str) -> int:
        for recipient in self._entries:
            if recipient.address == address:
                return recipient.percentage
        return 0

    def as_dict(self) -> Dict[str, int]:
        return {r.address: r.percentage for r in self._entries}

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self):
        return iter(self._entries)
