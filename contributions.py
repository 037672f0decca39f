"""Named additive contributions.

Many game systems push a term into the same number (a resource's revenue, a
capacity ceiling, a happiness score). Each term is stored under its owner's
id so it can be overwritten every tick without ever being counted twice.
"""

from typing import Callable, Dict, Iterator, List, Optional, Tuple, Union


class ContributorId:
    """Hierarchical contributor key, e.g. ``citizens.farmers``."""

    __slots__ = ("parts",)

    def __init__(self, *parts: str):
        if not parts:
            raise ValueError("contributor id needs at least one segment")
        for part in parts:
            if not isinstance(part, str) or not part or "." in part:
                raise ValueError(f"invalid contributor id segment: {part!r}")
        self.parts: Tuple[str, ...] = tuple(parts)

    @classmethod
    def parse(cls, value: Union["ContributorId", str]) -> "ContributorId":
        if isinstance(value, ContributorId):
            return value
        return cls(*str(value).split("."))

    @property
    def namespace(self) -> str:
        return ".".join(self.parts[:-1])

    @property
    def leaf(self) -> str:
        return self.parts[-1]

    def child(self, leaf: str) -> "ContributorId":
        return ContributorId(*self.parts, leaf)

    def __eq__(self, other):
        if isinstance(other, str):
            return str(self) == other
        if isinstance(other, ContributorId):
            return self.parts == other.parts
        return NotImplemented

    def __hash__(self):
        return hash(str(self))

    def __str__(self):
        return ".".join(self.parts)

    def __repr__(self):
        return f"ContributorId({str(self)!r})"


BASE = ContributorId("base")

ContributorKey = Union[ContributorId, str]


class ContributionMap:
    """Sum of named numeric contributions, seeded with a ``base`` entry.

    ``total`` is recomputed on every write and subscribers are notified
    synchronously afterwards, so anything derived from the total is current
    before the caller continues.
    """

    def __init__(self, base: float = 0.0, entries: Optional[Dict[ContributorKey, float]] = None):
        self._entries: Dict[ContributorId, float] = {BASE: float(base)}
        for key, value in (entries or {}).items():
            self._entries[ContributorId.parse(key)] = float(value)
        self._total = sum(self._entries.values())
        self._subscribers: List[Callable[[float], None]] = []

    @property
    def total(self) -> float:
        return self._total

    @property
    def entries(self) -> Dict[str, float]:
        return {str(key): value for key, value in self._entries.items()}

    def get(self, key: ContributorKey, default: float = 0.0) -> float:
        return self._entries.get(ContributorId.parse(key), default)

    def set(self, key: ContributorKey, value: float) -> bool:
        """Upsert one contribution. Returns True if the stored value changed."""
        cid = ContributorId.parse(key)
        value = float(value)
        previous = self._entries.get(cid)
        if previous == value:
            return False
        self._entries[cid] = value
        self._total += value - (previous or 0.0)
        for callback in list(self._subscribers):
            callback(self._total)
        return True

    def subscribe(self, callback: Callable[[float], None]):
        self._subscribers.append(callback)

    def __iter__(self) -> Iterator[ContributorId]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key) -> bool:
        return ContributorId.parse(key) in self._entries

    def __repr__(self):
        return f"ContributionMap(total={self._total!r}, entries={self.entries!r})"
