import logging
from typing import Callable, Dict, Iterator, List, Optional

from contributions import ContributionMap, ContributorKey

logger = logging.getLogger("township")

# tick order is fixed; citizens react to the food tick, so food goes first
RESOURCE_KEYS = ("food", "gold", "wood", "iron", "labour")

TickListener = Callable[["Resource", float], None]


class Resource:
    """One stockpile with a capacity ceiling and a per-tick revenue.

    Both ceiling and revenue are assembled from named contributions so every
    system that adds to them owns exactly one term.
    """

    def __init__(self, key: str, stock: float = 0.0, capacity: float = 0.0):
        self.key = key
        self.stock = float(stock)
        self.capacity = ContributionMap(base=capacity)
        self.revenue = ContributionMap()
        self._tick_listeners: List[TickListener] = []

    @property
    def capacity_total(self) -> float:
        return self.capacity.total

    @property
    def revenue_total(self) -> float:
        return self.revenue.total

    @property
    def at_capacity(self) -> bool:
        return self.stock == self.capacity.total

    def set_capacity(self, contributor: ContributorKey, value: float):
        self.capacity.set(contributor, value)

    def set_revenue(self, contributor: ContributorKey, value: float):
        self.revenue.set(contributor, value)

    def add_tick_listener(self, callback: TickListener):
        """Run ``callback(resource, unclamped_stock)`` after every tick's clamp."""
        self._tick_listeners.append(callback)

    def tick(self) -> float:
        unclamped = self.stock + self.revenue.total
        self.stock = max(0.0, min(unclamped, self.capacity.total))
        for callback in list(self._tick_listeners):
            callback(self, unclamped)
        return unclamped

    def __repr__(self):
        return f"Resource({self.key!r}, stock={self.stock!r}, capacity={self.capacity.total!r})"


class ResourceLedger:
    def __init__(self, keys=RESOURCE_KEYS, initial: Optional[Dict[str, float]] = None):
        initial = initial or {}
        self._resources: Dict[str, Resource] = {
            key: Resource(key, stock=initial.get(key, 0.0)) for key in keys
        }
        self.tick_count = 0

    def __getitem__(self, key: str) -> Resource:
        return self._resources[key]

    def __getattr__(self, name: str) -> Resource:
        resources = self.__dict__.get("_resources", {})
        if name in resources:
            return resources[name]
        raise AttributeError(f"{type(self).__name__} has no attribute {name}")

    def __iter__(self) -> Iterator[Resource]:
        return iter(self._resources.values())

    def __contains__(self, key: str) -> bool:
        return key in self._resources

    def keys(self) -> List[str]:
        return list(self._resources)

    def tick(self):
        self.tick_count += 1
        for resource in self._resources.values():
            resource.tick()
        logger.debug("ledger tick %d: %s", self.tick_count, self.snapshot())

    def spend(self, key: str, amount: float) -> bool:
        resource = self[key]
        if amount < 0 or resource.stock < amount:
            return False
        resource.stock -= amount
        return True

    def snapshot(self) -> Dict[str, float]:
        return {key: resource.stock for key, resource in self._resources.items()}
