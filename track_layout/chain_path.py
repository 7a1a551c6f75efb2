from datetime import datetime, timedelta
import uuid

from track_layout.dependency_chain import IsolatedDependencyChain
from track_layout.errors import DependencyOrderError
from track_layout.task_unit import TaskUnit


class ChainPath:
    """
    An ordered list of chains that will be drawn together as one row group.

    The ``id`` is meant to be replaced by whoever builds the paths, so that paths can be
    keyed in a predictable order.
    """

    def __init__(self, chains: list[IsolatedDependencyChain]):
        if not chains:
            raise ValueError("Must provide at least 1 IsolatedDependencyChain")
        self.id = uuid.uuid4().hex
        self.chains = tuple(chains)
        self._verify_chains_are_unbroken_path()
        self._units = [unit for chain in self.chains for unit in chain.units]
        self._presence_time = sum((chain.presence_time for chain in self.chains), timedelta(0))
        self.tracks = self._build_tracks()

    def __repr__(self):
        return f"ChainPath({self.id!r}, {[unit.name for unit in self._units]!r})"

    def _verify_chains_are_unbroken_path(self):
        for chain, next_chain in zip(self.chains, self.chains[1:]):
            if next_chain.head not in chain.last_unit.direct_dependencies:
                raise DependencyOrderError(
                    "Chains must be provided in the order they are dependent on each other."
                )

    @property
    def head(self) -> IsolatedDependencyChain:
        return self.chains[0]

    @property
    def last_chain(self) -> IsolatedDependencyChain:
        return self.chains[-1]

    @property
    def units(self) -> list[TaskUnit]:
        return list(self._units)

    @property
    def end_date(self) -> datetime:
        return self.head.end_date

    @property
    def anticipated_start_date(self) -> datetime:
        return self.last_chain.anticipated_start_date

    @property
    def time_span(self) -> timedelta:
        return self.end_date - self.anticipated_start_date

    @property
    def presence_time(self) -> timedelta:
        return self._presence_time

    @property
    def visual_density(self) -> float:
        if not self.time_span:
            return 1.0
        return self.presence_time / self.time_span

    def overlaps_with_path(self, other: "ChainPath") -> bool:
        """Paths that touch at their ends count as overlapping."""
        return self.anticipated_start_date <= other.end_date and self.end_date >= other.anticipated_start_date

    def _build_tracks(self) -> list[list[TaskUnit]]:
        """
        Stack the path's units into as few sub-tracks as possible without any of them
        overlapping. Units are placed by anticipated start, each in the first sub-track
        that is free by then, so the number of sub-tracks is the height the path needs.
        """
        tracks: list[list[TaskUnit]] = []
        for unit in sorted(self._units, key=lambda u: (u.anticipated_start_date, u.apparent_end_date)):
            for track in tracks:
                if track[-1].apparent_end_date <= unit.anticipated_start_date:
                    track.append(unit)
                    break
            else:
                tracks.append([unit])
        return tracks
