from track_layout.dependency_chain import IsolatedDependencyChain
from track_layout.errors import DependencyOrderError, NoSuchChainError
from track_layout.task_unit import TaskUnit
from track_layout.unit_path_matrix import UnitPathMatrix


def _sorted_by_id(units) -> list[TaskUnit]:
    return sorted(units, key=lambda unit: unit.id)


class SimpleChainMap:
    """
    Breaks the units reachable from the given heads into isolated dependency chains.

    Every unit ends up in exactly one chain. A chain is broken wherever the graph forks
    (more than one unit depends on the same unit) or merges (a unit has more than one
    dependency), so each chain is a straight line that can be drawn as a single block.
    """

    def __init__(self, heads: list[TaskUnit]):
        if not heads:
            raise ValueError("Must provide at least 1 head TaskUnit")
        self._heads = list(dict.fromkeys(heads))
        self._head_set = frozenset(self._heads)
        self._units = self._get_all_units()
        self.unit_path_matrix = UnitPathMatrix(list(self._units))
        self._verify_are_true_heads()
        self._unit_to_chain_map: dict[TaskUnit, IsolatedDependencyChain] = {}
        self._build_chains()
        self._chains = list(dict.fromkeys(self._unit_to_chain_map.values()))
        self._chain_ids = {chain.id for chain in self._chains}
        self._head_chains = [self.get_chain_of_unit(unit) for unit in self._heads]
        self._chain_connections = self._build_chain_connections()

    @property
    def heads(self) -> list[TaskUnit]:
        return list(self._heads)

    @property
    def units(self) -> frozenset[TaskUnit]:
        return self._units

    @property
    def chains(self) -> list[IsolatedDependencyChain]:
        return list(self._chains)

    def get_head_units(self) -> list[TaskUnit]:
        return list(self._heads)

    def get_head_chains(self) -> list[IsolatedDependencyChain]:
        return list(self._head_chains)

    def _get_all_units(self) -> frozenset[TaskUnit]:
        units = set(self._heads)
        for head in self._heads:
            units.update(head.get_all_dependencies())
        return frozenset(units)

    def _verify_are_true_heads(self):
        for head in self._heads:
            for other_head in self._heads:
                if head is not other_head and other_head.is_dependent_on(head):
                    raise DependencyOrderError(
                        f"Heads cannot be dependent on each other ({other_head.name!r} depends on {head.name!r})."
                    )

    def get_number_of_paths_to_unit(self, unit: TaskUnit) -> int:
        """Total number of paths from every head to the unit. A head counts as 1 path to itself."""
        if unit in self._head_set:
            return 1
        return sum(head.get_number_of_paths_to_dependency(unit) for head in self._heads)

    def unit_is_only_pure_lineage_of_unit(self, descendant_unit: TaskUnit, ancestor_unit: TaskUnit) -> bool:
        """True if every path reaching the ancestor passes through the descendant."""
        paths_diff = self.get_number_of_paths_to_unit(ancestor_unit) - self.get_number_of_paths_to_unit(descendant_unit)
        return paths_diff == 0 and descendant_unit.is_dependent_on(ancestor_unit)

    def _build_chains(self):
        for head in self._heads:
            self._build_forkless_chains(head)

    def _build_forkless_chains(self, head: TaskUnit):
        """
        Walk down from a head depth first, dependencies in ID order.

        Each step buffers units along a straight run until it hits a fork, a merge or a unit
        without dependencies, turns the buffer into a chain, and queues the dependencies of
        the unit it stopped at.
        """
        to_visit: list[tuple[TaskUnit, TaskUnit | None]] = [(head, None)]
        while to_visit:
            possible_tail, discovering_unit = to_visit.pop()
            if possible_tail in self._unit_to_chain_map:
                continue
            buffered_chain_so_far: list[TaskUnit] = []
            while True:
                is_merging_point = False
                is_forking_point = (
                    discovering_unit is not None
                    and not self.unit_is_only_pure_lineage_of_unit(discovering_unit, possible_tail)
                )
                if is_forking_point:
                    break
                deps = _sorted_by_id(possible_tail.direct_dependencies)
                if len(deps) > 1:
                    is_merging_point = True
                    break
                buffered_chain_so_far.append(possible_tail)
                if not deps or deps[0] in self._unit_to_chain_map:
                    break
                discovering_unit, possible_tail = possible_tail, deps[0]

            if buffered_chain_so_far:
                buffered_chain = IsolatedDependencyChain(buffered_chain_so_far)
                for unit in buffered_chain_so_far:
                    self._unit_to_chain_map[unit] = buffered_chain

            if is_forking_point or is_merging_point:
                self._unit_to_chain_map[possible_tail] = IsolatedDependencyChain([possible_tail])

            # reversed so the lowest ID is visited first
            for dep in reversed(_sorted_by_id(possible_tail.direct_dependencies)):
                to_visit.append((dep, possible_tail))

    def _build_chain_connections(self) -> dict[str, set[IsolatedDependencyChain]]:
        connections = {chain.id: set() for chain in self._chains}
        for chain in self._chains:
            for dep in self.get_direct_dependencies_of_chain(chain):
                connections[chain.id].add(dep)
                connections[dep.id].add(chain)
        return connections

    def _check_chain_is_known(self, chain: IsolatedDependencyChain):
        if chain.id not in self._chain_ids:
            raise NoSuchChainError(f"Could not find chain with ID {chain.id}")

    def get_chain_of_unit(self, unit: TaskUnit) -> IsolatedDependencyChain:
        try:
            return self._unit_to_chain_map[unit]
        except KeyError:
            raise NoSuchChainError(f"No chain found for unit {unit.name!r} ({unit.id})") from None

    def get_all_dependencies_of_chain(self, chain: IsolatedDependencyChain) -> set[IsolatedDependencyChain]:
        # Start from the last unit so the chain's own units aren't included
        return {self.get_chain_of_unit(unit) for unit in chain.last_unit.get_all_dependencies()}

    def get_direct_dependencies_of_chain(self, chain: IsolatedDependencyChain) -> set[IsolatedDependencyChain]:
        return {self.get_chain_of_unit(unit) for unit in chain.last_unit.direct_dependencies}

    def chains_are_connected(self, chain_a: IsolatedDependencyChain, chain_b: IsolatedDependencyChain) -> bool:
        return chain_a.is_directly_dependent_on(chain_b) or chain_b.is_directly_dependent_on(chain_a)

    def get_chains_connected_to_chain(self, chain: IsolatedDependencyChain) -> set[IsolatedDependencyChain]:
        self._check_chain_is_known(chain)
        return set(self._chain_connections[chain.id])
