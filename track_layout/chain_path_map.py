from track_layout.chain_map import SimpleChainMap
from track_layout.chain_path import ChainPath
from track_layout.errors import NoSuchChainPathError
from track_layout.task_unit import TaskUnit


class SimpleChainPathMap:
    """
    Holds the chain paths of a cluster and how strongly each pair of paths is connected.

    ``connection_strength_mapping[a][b]`` is the number of direct dependency edges between
    a unit of path ``a`` and a unit of path ``b``. Pairs without any edges are left out.
    """

    def __init__(self, path_map: dict[str, ChainPath], chain_map: SimpleChainMap):
        self._path_map = dict(path_map)
        self.chain_map = chain_map
        self.paths = list(self._path_map.values())
        self.connection_strength_mapping: dict[str, dict[str, int]] = {}
        self._build_path_interconnections()

    def get_path_by_id(self, path_id: str) -> ChainPath:
        try:
            return self._path_map[path_id]
        except KeyError:
            raise NoSuchChainPathError(f"No chain path could be found with the ID {path_id}") from None

    def get_connections_for_path_by_id(self, path_id: str) -> dict[str, int]:
        try:
            return self.connection_strength_mapping[path_id]
        except KeyError:
            raise NoSuchChainPathError(f"No chain path could be found with the ID {path_id}") from None

    @staticmethod
    def _get_units_in_path(path: ChainPath) -> set[TaskUnit]:
        return set(path.units)

    def _get_units_connected_to_path(self, path: ChainPath) -> set[TaskUnit]:
        units_in_path = self._get_units_in_path(path)
        connected = set()
        for unit in units_in_path:
            connected.update(self.chain_map.unit_path_matrix.get_units_connected_to_unit(unit))
        return connected - units_in_path

    def _build_path_interconnections(self):
        for path in self.paths:
            connected_units = self._get_units_connected_to_path(path)
            path_units = self._get_units_in_path(path)
            mapping = self.connection_strength_mapping[path.id] = {}
            for other_path in self.paths:
                if other_path is path:
                    continue
                if not connected_units:
                    # every connection has been attributed already
                    break
                other_mapping = self.connection_strength_mapping.get(other_path.id)
                if other_mapping is not None:
                    # Already counted from the other side, so reuse it
                    if path.id in other_mapping:
                        mapping[other_path.id] = other_mapping[path.id]
                        connected_units -= self._get_units_in_path(other_path)
                    continue
                other_path_units = self._get_units_in_path(other_path)
                connections = 0
                for connected_unit in connected_units & other_path_units:
                    for unit in path_units:
                        if connected_unit in unit.direct_dependencies or unit in connected_unit.direct_dependencies:
                            connections += 1
                connected_units -= other_path_units
                if connections > 0:
                    mapping[other_path.id] = connections
