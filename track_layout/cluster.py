import pandas as pd

from track_layout.chain_map import SimpleChainMap
from track_layout.chain_path import ChainPath
from track_layout.chain_path_map import SimpleChainPathMap
from track_layout.dependency_chain import IsolatedDependencyChain
from track_layout.errors import NoSuchChainPathError
from track_layout.strain_map import ChainStrainMap
from track_layout.stress_manager import StressManager
from track_layout.stress_tracker import StressTracker, TrackDetails
from track_layout.task_unit import TaskUnit


class TaskUnitCluster:
    """
    Runs the whole layout for a set of interconnected task units.

    The units reachable from the heads are broken into chains, the chains are scored by
    strain, grouped into paths (the rows of the diagram), and the paths are ordered into
    tracks so that connected paths end up close together.
    """

    def __init__(self, heads: list[TaskUnit], verbose: bool = False, max_moves: int | None = None):
        self.heads = list(heads)
        self.verbose = verbose
        self.chain_map = SimpleChainMap(self.heads)
        self.strain_map = ChainStrainMap(self.chain_map)
        if verbose:
            print(f"Broke {len(self.chain_map.units)} units into {len(self.chain_map.chains)} chains")
        self._paths: list[ChainPath] = []
        self._path_map: dict[str, ChainPath] = {}
        self._chain_to_path_map: dict[str, ChainPath] = {}
        self._build_paths()
        if verbose:
            print(f"Grouped chains into {len(self._paths)} paths")
        self.path_map = SimpleChainPathMap(self._path_map, self.chain_map)
        self.stress_tracker = StressTracker(self.path_map)
        self.stress_manager = StressManager(self.stress_tracker, max_moves=max_moves, verbose=verbose)
        self._rankings = self.stress_manager.get_rankings()

    @property
    def paths(self) -> list[ChainPath]:
        return list(self._paths)

    @property
    def paths_sorted_by_ranking(self) -> list[ChainPath]:
        return [self._path_map[path_id] for path_id in self._rankings]

    @property
    def tracks(self) -> list[TrackDetails]:
        return self.stress_tracker.get_current_tracks()

    def get_path_by_id(self, path_id: str) -> ChainPath:
        return self.path_map.get_path_by_id(path_id)

    def get_path_of_chain(self, chain: IsolatedDependencyChain) -> ChainPath:
        try:
            return self._chain_to_path_map[chain.id]
        except KeyError:
            raise NoSuchChainPathError(f"No path exists in this cluster for a chain with ID {chain.id}") from None

    def _get_heads_without_chains(self, isolated_chains) -> list[IsolatedDependencyChain]:
        isolated_units = [unit for chain in isolated_chains for unit in chain.units]
        head_units = self.chain_map.unit_path_matrix.get_head_units_without_isolated_unit(isolated_units)
        return list(dict.fromkeys(self.chain_map.get_chain_of_unit(unit) for unit in head_units))

    def _path_sort_key(self, path: ChainPath):
        return (
            self.strain_map.get_relative_familiarity_of_path(path),
            self.strain_map.get_strain_of_path(path),
            path.visual_density,
            path.presence_time,
        )

    def _build_paths(self):
        """
        Claim paths one at a time until every chain belongs to one.

        Each round, the chains nothing unclaimed depends on are the candidate heads. Each
        head's most familiar paths are compared and the most preferred one is claimed, which
        takes its chains out of the running for the next round.
        """
        isolated_chains: list[IsolatedDependencyChain] = []
        while True:
            heads = self._get_heads_without_chains(isolated_chains)
            candidates = []
            for head in heads:
                candidates.extend(
                    self.strain_map.get_paths_most_familiar_with_chain_without_chains(head, isolated_chains)
                )
            if not candidates:
                return
            # max() keeps the first of equally preferred paths, and heads come sorted by ID
            path = max(candidates, key=self._path_sort_key)
            path.id = f"P{len(self._paths) + 1:03d}"
            for chain in path.chains:
                isolated_chains.append(chain)
                self._chain_to_path_map[chain.id] = path
            self._paths.append(path)
            self._path_map[path.id] = path

    def get_chain_table(self) -> pd.DataFrame:
        rows = []
        for chain in self.chain_map.chains:
            rows.append({
                "Chain": chain.id,
                "Path": self._chain_to_path_map[chain.id].id,
                "Units": [unit.name for unit in chain.units],
                "Start": chain.anticipated_start_date,
                "End": chain.end_date,
                "Presence": chain.presence_time,
                "Density": chain.visual_density,
                "Strain": self.strain_map.get_strain_of_chain(chain),
            })
        return pd.DataFrame(rows)

    def get_path_table(self) -> pd.DataFrame:
        """One row per path, top to bottom, with the track it was placed on."""
        track_of_path = {}
        for track_number, track in enumerate(self.tracks, start=1):
            for path_id in track.paths:
                track_of_path[path_id] = track_number
        rows = []
        for rank, path in enumerate(self.paths_sorted_by_ranking, start=1):
            rows.append({
                "ID": path.id,
                "Rank": rank,
                "Track": track_of_path[path.id],
                "Height": len(path.tracks),
                "Units": [unit.name for unit in path.units],
                "Start": path.anticipated_start_date,
                "End": path.end_date,
                "Presence": path.presence_time,
                "Density": path.visual_density,
                "Strain": self.strain_map.get_strain_of_path(path),
            })
        return pd.DataFrame(rows)

    def get_connection_table(self) -> pd.DataFrame:
        """Square table of connection strengths between paths, in ranking order."""
        order = self._rankings
        table = pd.DataFrame(self.path_map.connection_strength_mapping).reindex(index=order, columns=order)
        return table.fillna(0).astype(int)
