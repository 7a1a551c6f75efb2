from dataclasses import dataclass
from enum import Enum

from track_layout.matrix import Matrix
from track_layout.stress_tracker import StressTracker


class MoveType(Enum):
    STAY = "stay"
    SWAP = "swap"
    BELOW = "below"
    CONVERGE = "converge"
    TOP = "top"


@dataclass(frozen=True)
class MoveDetails:
    type: MoveType
    total_distance: float
    total_tracks: int
    path_a: str | None = None
    path_b: str | None = None

    @property
    def score(self) -> tuple[float, int]:
        return self.total_distance, self.total_tracks


class StressManager:
    """
    Orders the paths of a StressTracker by greedy local search.

    Each round every swap, converge, move-below and move-to-top is scored, and the move that
    lowers the total distance the most (fewer tracks breaks ties) is committed. Moves that
    don't lower the distance are never made, so the search stops once no move does.
    """

    def __init__(self, stress_tracker: StressTracker, max_moves: int | None = None, verbose: bool = False):
        self.stress_tracker = stress_tracker
        self.max_moves = max_moves
        self.verbose = verbose
        self.moves_made: list[MoveDetails] = []

    def _evaluate(self, move_type: MoveType, positions: Matrix, path_a=None, path_b=None) -> MoveDetails:
        tracker = self.stress_tracker
        return MoveDetails(
            type=move_type,
            total_distance=tracker.get_total_distance_of_paths_with_positions(positions),
            total_tracks=len(tracker.get_tracks_with_positions(positions)),
            path_a=path_a,
            path_b=path_b,
        )

    def get_candidate_moves(self):
        """Yield every move that could be made from the current positions."""
        tracker = self.stress_tracker
        for path_id in tracker.path_matrix_keys:
            yield self._evaluate(
                MoveType.TOP,
                tracker.get_updated_relative_positions_matrix_from_moving_path_to_top_by_id(path_id),
                path_id,
            )
            for other_id in tracker.path_matrix_keys:
                if other_id == path_id:
                    continue
                if path_id < other_id:
                    # swapping and converging are symmetric, so only score each pair once
                    yield self._evaluate(
                        MoveType.SWAP,
                        tracker.get_updated_relative_positions_matrix_from_switching_positions_of_paths_by_id(
                            path_id, other_id
                        ),
                        path_id,
                        other_id,
                    )
                yield self._evaluate(
                    MoveType.BELOW,
                    tracker.get_updated_relative_positions_matrix_from_moving_path_below_path_by_id(path_id, other_id),
                    path_id,
                    other_id,
                )
                if path_id < other_id:
                    yield self._evaluate(
                        MoveType.CONVERGE,
                        tracker.get_updated_relative_positions_matrix_from_converging_paths_by_id(path_id, other_id),
                        path_id,
                        other_id,
                    )

    def get_next_best_move(self) -> MoveDetails:
        """The best move that lowers the total distance, or STAY if none does."""
        stay = self._evaluate(MoveType.STAY, self.stress_tracker.positioning_matrix)
        best_move = stay
        for move in self.get_candidate_moves():
            if move.total_distance >= stay.total_distance:
                continue
            if best_move is stay or move.score < best_move.score:
                best_move = move
        return best_move

    def _commit(self, move: MoveDetails):
        tracker = self.stress_tracker
        if move.type is MoveType.SWAP:
            tracker.swap_paths_by_id(move.path_a, move.path_b)
        elif move.type is MoveType.BELOW:
            tracker.move_path_below_path_by_id(move.path_a, move.path_b)
        elif move.type is MoveType.CONVERGE:
            tracker.converge_paths_by_id(move.path_a, move.path_b)
        elif move.type is MoveType.TOP:
            tracker.move_path_to_top_by_id(move.path_a)

    def organize_paths(self):
        if self.verbose:
            print("Minimizing track stress...")
            print(f"  Initial stress: {self.stress_tracker.get_current_total_distance_of_paths()}")
        while self.max_moves is None or len(self.moves_made) < self.max_moves:
            move = self.get_next_best_move()
            if move.type is MoveType.STAY:
                if self.verbose:
                    print(f"  Converged after {len(self.moves_made)} moves")
                return
            self._commit(move)
            self.moves_made.append(move)
            if self.verbose:
                target = f" {move.path_b}" if move.path_b else ""
                print(f"  {move.type.value} {move.path_a}{target}: stress {move.total_distance}, "
                      f"{move.total_tracks} tracks")
        if self.verbose:
            print(f"  Stopped after {self.max_moves} moves")

    def get_rankings(self) -> list[str]:
        """Organize the paths (if not done yet) and return their IDs from top to bottom."""
        self.organize_paths()
        return self.stress_tracker.get_rankings()
