"""Per-dependency bookkeeping for the minimization pass."""

from dataclasses import dataclass, field


@dataclass
class MinimizationRecord:
    """Tracks which features of one dependency were tested and how they fared.

    ``queue`` holds the untested features. A feature leaves the queue exactly
    when it enters ``removable`` or ``required``, so the three always
    partition ``original``.
    """

    dependency: str
    original: frozenset[str]
    removable: set[str] = field(default_factory=set)
    required: set[str] = field(default_factory=set)
    queue: list[str] = field(default_factory=list)

    @classmethod
    def start(cls, dependency: str, features: set[str] | frozenset[str]) -> "MinimizationRecord":
        # Reverse-sorted so pop() visits features alphabetically.
        return cls(
            dependency=dependency,
            original=frozenset(features),
            queue=sorted(features, reverse=True),
        )

    @property
    def done(self) -> bool:
        return not self.queue

    def next_candidate(self) -> str:
        """Take the next untested feature off the queue."""
        return self.queue.pop()

    def trial_features(self, candidate: str) -> list[str]:
        """Features to enable while testing ``candidate``.

        Everything still untested plus everything proven necessary; features
        already found removable stay off.
        """
        return sorted((set(self.queue) | self.required) - {candidate})

    def mark_removable(self, feature: str) -> None:
        self.removable.add(feature)

    def mark_required(self, feature: str) -> None:
        self.required.add(feature)

    @property
    def kept(self) -> set[str]:
        """Features that stay enabled: required plus untested."""
        return set(self.original) - self.removable
