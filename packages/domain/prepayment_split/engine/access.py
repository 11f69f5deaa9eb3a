"""Role and ownership state for one engine.

The engine never inspects roles directly; it asks this component and lets it
raise the matching typed error. Tests and embedding applications can inject a
pre-built instance.
"""

from typing import Iterable, Optional, Set

from ..schemas.base import is_null
from .errors import (
    OnlyOwner,
    OnlyController,
    OnlyDistributor,
    DistributorAlreadyConfigured,
    ControllerAlreadyConfigured,
    ImmutableController,
)


class AccessControl:
    """Owner, controller and distributor roles.

    - owner: structural configuration (distributors, controller, feeds)
    - controller: may replace the recipient set
    - distributors: may trigger distributions

    Example:
        access = AccessControl()
        access.setup(owner="treasury", controller="treasury", distributors=["treasury"])
        access.require_distributor("treasury")   # ok
        access.require_distributor("mallory")    # raises OnlyDistributor
    """

    def __init__(self):
        self.owner: Optional[str] = None
        self.controller: Optional[str] = None
        self.immutable_controller: bool = False
        self._distributors: Set[str] = set()

    def setup(
        self,
        owner: str,
        controller: Optional[str] = None,
        distributors: Iterable[str] = (),
        immutable_controller: bool = False,
    ) -> None:
        self.owner = owner
        self.controller = None if is_null(controller) else controller
        self.immutable_controller = immutable_controller
        self._distributors = set(distributors)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def is_distributor(self, address: str) -> bool:
        return address in self._distributors

    @property
    def distributors(self) -> Set[str]:
        return set(self._distributors)

    # -------------------------------------------------------------------------
    # Checks
    # -------------------------------------------------------------------------

    def require_owner(self, caller: str) -> None:
        if self.owner is None or caller != self.owner:
            raise OnlyOwner(f"'{caller}' is not the owner")

    def require_controller(self, caller: str) -> None:
        if self.controller is None or caller != self.controller:
            raise OnlyController(f"'{caller}' is not the controller")

    def require_distributor(self, caller: str) -> None:
        if caller not in self._distributors:
            raise OnlyDistributor(f"'{caller}' is not a distributor")

    # -------------------------------------------------------------------------
    # Owner-gated mutations
    # -------------------------------------------------------------------------

    def set_distributor(self, caller: str, distributor: str, is_distributor: bool) -> None:
        self.require_owner(caller)
        if self.is_distributor(distributor) == is_distributor:
            raise DistributorAlreadyConfigured(
                f"'{distributor}' distributor flag is already {is_distributor}"
            )
        if is_distributor:
            self._distributors.add(distributor)
        else:
            self._distributors.discard(distributor)

    def set_controller(self, caller: str, controller: str) -> Optional[str]:
        """Move the controller role. Returns the previous controller."""
        self.require_owner(caller)
        if self.immutable_controller or self.controller is None:
            raise ImmutableController("Controller is immutable")
        if controller == self.controller:
            raise ControllerAlreadyConfigured(f"'{controller}' is already the controller")
        previous = self.controller
        self.controller = controller
        return previous

    def transfer_ownership(self, caller: str, new_owner: str) -> str:
        self.require_owner(caller)
        if is_null(new_owner):
            raise ValueError("New owner is the null address")
        previous = self.owner
        self.owner = new_owner
        return previous
