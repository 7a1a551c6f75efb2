from dataclasses import dataclass

import numpy as np

from track_layout.chain_path_map import SimpleChainPathMap
from track_layout.errors import NoSuchChainPathError
from track_layout.matrix import Matrix


@dataclass(frozen=True)
class TrackDetails:
    """One horizontal track on the diagram and the paths placed on it, top to bottom order preserved."""
    height: int
    paths: tuple[str, ...] = ()


class StressTracker:
    """
    Keeps track of where each path sits relative to the others and how much stress that causes.

    Positions are kept in a square matrix indexed by the sorted path IDs.
    ``positioning_matrix[i][j]`` is 1 if path i is above path j, -1 if it is below, and 0
    on the diagonal. Every move has a ``get_updated_relative_positions_matrix_from_...``
    counterpart returning the matrix the move would produce, so moves can be scored before
    one is committed.

    Stress is the total distance of the connections between paths: for every connected
    pair, the connection strength times the vertical distance between their tracks.
    """

    def __init__(self, path_map: SimpleChainPathMap | dict[str, dict[str, int]]):
        if isinstance(path_map, SimpleChainPathMap):
            self.connection_strength_mapping = path_map.connection_strength_mapping
            self._paths = {path.id: path for path in path_map.paths}
        else:
            self.connection_strength_mapping = path_map
            self._paths = None
        if not self.connection_strength_mapping:
            raise ValueError("Must provide at least 1 path")
        self.path_matrix_keys = sorted(self.connection_strength_mapping)
        self._index_of_path_id = {path_id: index for index, path_id in enumerate(self.path_matrix_keys)}
        self._connection_matrix = self._build_connection_matrix()
        self.positioning_matrix = self._get_positions_matrix_for_rankings(self.path_matrix_keys)

    def _build_connection_matrix(self) -> Matrix:
        size = len(self.path_matrix_keys)
        rows = []
        for path_id in self.path_matrix_keys:
            row = [0] * size
            for other_id, strength in self.connection_strength_mapping[path_id].items():
                row[self.get_matrix_index_for_path_id(other_id)] = strength
            rows.append(row)
        return Matrix(rows)

    def get_matrix_index_for_path_id(self, path_id: str) -> int:
        try:
            return self._index_of_path_id[path_id]
        except KeyError:
            raise NoSuchChainPathError(f"No chain path could be found with the ID {path_id}") from None

    def get_path_id_for_matrix_index(self, index: int) -> str:
        if not 0 <= index < len(self.path_matrix_keys):
            raise IndexError(f"No path exists for matrix index {index}")
        return self.path_matrix_keys[index]

    def _get_positions_matrix_for_rankings(self, rankings: list[str]) -> Matrix:
        position = {path_id: rank for rank, path_id in enumerate(rankings)}
        return Matrix([
            [int(np.sign(position[other_id] - position[path_id])) for other_id in self.path_matrix_keys]
            for path_id in self.path_matrix_keys
        ])

    # Rankings and tracks

    def get_rankings_with_positions(self, positions_matrix: Matrix) -> list[str]:
        """Path IDs from top to bottom. A path's rank is the number of paths above it."""
        above_counts = [
            positions_matrix.get_row(index).count(-1) for index in range(len(self.path_matrix_keys))
        ]
        return [
            path_id for _, path_id in sorted(zip(above_counts, self.path_matrix_keys))
        ]

    def get_rankings(self) -> list[str]:
        return self.get_rankings_with_positions(self.positioning_matrix)

    def _get_height_of_path(self, path_id: str) -> int:
        if self._paths is None:
            return 1
        return len(self._paths[path_id].tracks)

    def _fits_in_track(self, path_id: str, track_path_ids: list[str]) -> bool:
        if self._paths is None:
            return False
        path = self._paths[path_id]
        return not any(path.overlaps_with_path(self._paths[other_id]) for other_id in track_path_ids)

    def get_tracks_with_positions(self, positions_matrix: Matrix) -> list[TrackDetails]:
        """
        Group the ranked paths into tracks.

        Going from top to bottom, a path shares the current track if it doesn't overlap
        any path already on it, otherwise it starts a new track. A track is as tall as the
        tallest path on it.
        """
        track_path_ids: list[list[str]] = []
        for path_id in self.get_rankings_with_positions(positions_matrix):
            if track_path_ids and self._fits_in_track(path_id, track_path_ids[-1]):
                track_path_ids[-1].append(path_id)
            else:
                track_path_ids.append([path_id])
        return [
            TrackDetails(max(self._get_height_of_path(path_id) for path_id in path_ids), tuple(path_ids))
            for path_ids in track_path_ids
        ]

    def get_current_tracks(self) -> list[TrackDetails]:
        return self.get_tracks_with_positions(self.positioning_matrix)

    # Distance

    def _get_distance_matrix_for_tracks(self, tracks: list[TrackDetails]) -> Matrix:
        offsets = {}
        offset = 0
        for track in tracks:
            for path_id in track.paths:
                offsets[path_id] = offset
            offset += track.height
        return Matrix([
            [abs(offsets[path_id] - offsets[other_id]) for other_id in self.path_matrix_keys]
            for path_id in self.path_matrix_keys
        ])

    def get_total_distance_of_paths_with_positions(self, positions_matrix: Matrix):
        """
        Total stress of the layout described by the positions matrix.

        The diagonal of connections x distances holds each path's weighted distance to all
        the paths it connects to. Every pair appears twice in that trace, hence the halving.
        """
        distances = self._get_distance_matrix_for_tracks(self.get_tracks_with_positions(positions_matrix))
        weighted = self._connection_matrix.multiply(distances)
        trace = sum(weighted.get_element_at_position(index, index) for index in range(weighted.number_of_rows))
        return trace / 2

    def get_current_total_distance_of_paths(self):
        return self.get_total_distance_of_paths_with_positions(self.positioning_matrix)

    # Moves

    def get_difference_between_paths_by_id(self, path_id: str, other_path_id: str) -> list[int]:
        path_row = Matrix([self.positioning_matrix.get_row(self.get_matrix_index_for_path_id(path_id))])
        other_row = Matrix([self.positioning_matrix.get_row(self.get_matrix_index_for_path_id(other_path_id))])
        return path_row.subtract(other_row).get_row(0)

    def get_updated_relative_positions_matrix_from_switching_positions_of_paths_by_id(
            self, path_id: str, other_path_id: str) -> Matrix:
        """
        Swap the two paths. Only the paths between them (where the rows of the two paths
        differ) are affected: the two swapped rows flip for those columns, and the rows in
        between flip their view of the two swapped paths.
        """
        diff = self.get_difference_between_paths_by_id(path_id, other_path_id)
        path_index = self.get_matrix_index_for_path_id(path_id)
        other_index = self.get_matrix_index_for_path_id(other_path_id)
        positions = self.positioning_matrix.to_numpy()
        affected = np.array(diff) != 0
        for index in np.flatnonzero(affected):
            if index in (path_index, other_index):
                positions[index, affected] *= -1
            else:
                positions[index, [path_index, other_index]] *= -1
        return Matrix(positions.tolist())

    def get_updated_relative_positions_matrix_from_moving_path_below_path_by_id(
            self, path_id: str, other_path_id: str) -> Matrix:
        """The moving path takes the other path's view of everything, then sits right below it."""
        if path_id == other_path_id:
            raise ValueError(f"Path {path_id} cannot be moved below itself")
        moving_index = self.get_matrix_index_for_path_id(path_id)
        target_index = self.get_matrix_index_for_path_id(other_path_id)
        positions = self.positioning_matrix.to_numpy()
        positions[:, moving_index] = positions[:, target_index]
        positions[moving_index] = positions[target_index]
        positions[moving_index, moving_index] = 0
        positions[moving_index, target_index] = -1
        positions[target_index, moving_index] = 1
        return Matrix(positions.tolist())

    def get_updated_relative_positions_matrix_from_moving_path_to_top_by_id(self, path_id: str) -> Matrix:
        moving_index = self.get_matrix_index_for_path_id(path_id)
        positions = self.positioning_matrix.to_numpy()
        positions[:, moving_index] = -1
        positions[moving_index] = 1
        positions[moving_index, moving_index] = 0
        return Matrix(positions.tolist())

    def get_updated_relative_positions_matrix_from_converging_paths_by_id(
            self, path_id: str, other_path_id: str) -> Matrix:
        """
        Bring both paths together around the midpoint between them. The upper path lands
        on the midpoint and the lower one right below it; everything else keeps its order.
        """
        if path_id == other_path_id:
            raise ValueError(f"Path {path_id} cannot converge with itself")
        self.get_matrix_index_for_path_id(path_id)
        self.get_matrix_index_for_path_id(other_path_id)
        rankings = self.get_rankings()
        upper, lower = sorted((path_id, other_path_id), key=rankings.index)
        midpoint = (rankings.index(upper) + rankings.index(lower)) // 2
        remaining = [ranked_id for ranked_id in rankings if ranked_id not in (upper, lower)]
        remaining[midpoint:midpoint] = [upper, lower]
        return self._get_positions_matrix_for_rankings(remaining)

    def swap_paths_by_id(self, path_id: str, other_path_id: str):
        self.positioning_matrix = self.get_updated_relative_positions_matrix_from_switching_positions_of_paths_by_id(
            path_id, other_path_id
        )

    def move_path_below_path_by_id(self, path_id: str, other_path_id: str):
        self.positioning_matrix = self.get_updated_relative_positions_matrix_from_moving_path_below_path_by_id(
            path_id, other_path_id
        )

    def move_path_to_top_by_id(self, path_id: str):
        self.positioning_matrix = self.get_updated_relative_positions_matrix_from_moving_path_to_top_by_id(path_id)

    def converge_paths_by_id(self, path_id: str, other_path_id: str):
        self.positioning_matrix = self.get_updated_relative_positions_matrix_from_converging_paths_by_id(
            path_id, other_path_id
        )
