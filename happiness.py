from contributions import ContributionMap, ContributorKey

BASE_HAPPINESS = 50.0
MIN_HAPPINESS = 0.0
MAX_HAPPINESS = 100.0


class HappinessStore:
    """Town mood: a base value plus impacts registered by other systems."""

    def __init__(self, base: float = BASE_HAPPINESS):
        self.impacts = ContributionMap(base=base)

    def set_happiness_impact(self, source: ContributorKey, value: float):
        self.impacts.set(source, value)

    @property
    def happiness(self) -> float:
        return max(MIN_HAPPINESS, min(MAX_HAPPINESS, self.impacts.total))
