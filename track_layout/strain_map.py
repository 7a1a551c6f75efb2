from track_layout.chain_map import SimpleChainMap
from track_layout.chain_path import ChainPath
from track_layout.dependency_chain import IsolatedDependencyChain
from track_layout.errors import NoSuchChainError


class ChainStrainMap:
    """
    Scores the chains of a SimpleChainMap by how tangled up they are with the rest of the graph.

    The strain of a chain is the number of paths that reach it from every head plus the
    number of paths it can take down to every tail. High strain chains are the ones worth
    keeping together in a row.
    """

    def __init__(self, chain_map: SimpleChainMap):
        self.chain_map = chain_map
        self._chain_strain_map: dict[str, int] = {chain.id: 0 for chain in chain_map.chains}
        self._build_strain_map()

    def _build_strain_map(self):
        reached = set()
        for head in self.chain_map.get_head_chains():
            # Nothing leads to a head, so its strain is only the paths it can take
            self._chain_strain_map[head.id] = head.last_unit.attachment_to_dependencies
            reached.add(head.id)
            for chain in self.chain_map.get_all_dependencies_of_chain(head):
                # Only count the chain's own attachment the first time it is reached
                strain_so_far = self._chain_strain_map[chain.id] if chain.id in reached else chain.attachment_to_dependencies
                self._chain_strain_map[chain.id] = strain_so_far + head.get_number_of_paths_to_dependency(chain)
                reached.add(chain.id)

    def get_strain_of_chain(self, chain: IsolatedDependencyChain) -> int:
        try:
            return self._chain_strain_map[chain.id]
        except KeyError:
            raise NoSuchChainError(f"Could not find chain with ID {chain.id}") from None

    def get_strain_of_path(self, path: ChainPath) -> int:
        return sum(self.get_strain_of_chain(chain) for chain in path.chains)

    def get_paths_to_chain(self, chain: IsolatedDependencyChain) -> int:
        return self.chain_map.get_number_of_paths_to_unit(chain.head)

    def get_familiar_attachment_of_chain_with_chain(self, target: IsolatedDependencyChain,
                                                    observer: IsolatedDependencyChain) -> int:
        """Number of paths from the heads to the target that go through the observer."""
        return observer.get_number_of_paths_to_dependency(target) * self.get_paths_to_chain(observer)

    def get_unfamiliar_attachment_of_chain_with_chain(self, target: IsolatedDependencyChain,
                                                      observer: IsolatedDependencyChain) -> int:
        """Number of paths from the heads to the target that don't go through the observer."""
        return self.get_paths_to_chain(target) - self.get_familiar_attachment_of_chain_with_chain(target, observer)

    def get_relative_familiarity_of_chain_with_chain(self, target: IsolatedDependencyChain,
                                                     observer: IsolatedDependencyChain) -> int:
        """
        How strongly the target leans towards the observer rather than its other dependents.

        Args:
            target: The chain being considered as a continuation of the observer's path
            observer: The chain looking to extend its path into the target

        Returns:
            Familiar attachment minus unfamiliar attachment. Higher means the target
            belongs with the observer more than with anything else.
        """
        familiar = self.get_familiar_attachment_of_chain_with_chain(target, observer)
        unfamiliar = self.get_paths_to_chain(target) - familiar
        return familiar - unfamiliar

    def get_relative_familiarity_of_path(self, path: ChainPath) -> int:
        return sum(
            self.get_relative_familiarity_of_chain_with_chain(chain, path.head)
            for chain in path.chains
        )

    def get_unfamiliarity_of_path(self, path: ChainPath) -> int:
        return sum(
            self.get_unfamiliar_attachment_of_chain_with_chain(chain, path.head)
            for chain in path.chains
        )

    def get_paths_most_familiar_with_chain_without_chains(self, head: IsolatedDependencyChain,
                                                          unavailable_chains,
                                                          path_so_far: list[IsolatedDependencyChain] | None = None
                                                          ) -> list[ChainPath]:
        """
        Find the paths from the head down through its dependencies that the head is most familiar with.

        Args:
            head: The chain to start from
            unavailable_chains: Chains that already belong to another path
            path_so_far: Chains already walked before reaching ``head``

        Returns:
            Every path tied for most preferred. A head with nowhere left to go
            gives a path of just the chains walked so far plus itself.
        """
        unavailable = {chain.id for chain in unavailable_chains}
        potential_paths = []
        to_explore = [[*(path_so_far or []), head]]
        while to_explore:
            chains = to_explore.pop()
            available_deps = [
                dep for dep in self.chain_map.get_direct_dependencies_of_chain(chains[-1])
                if dep.id not in unavailable
            ]
            least_discouraged_deps = self._get_least_discouraged_dependencies(available_deps, chains[0])
            if not least_discouraged_deps:
                # Nowhere left to go, so the path ends here
                potential_paths.append(ChainPath(chains))
                continue
            for dep in reversed(least_discouraged_deps):
                to_explore.append([*chains, dep])
        return self._get_most_preferred_paths(potential_paths)

    def _get_least_discouraged_dependencies(self, available_deps, root) -> list[IsolatedDependencyChain]:
        if not available_deps:
            return []
        familiarity = {
            dep.id: self.get_relative_familiarity_of_chain_with_chain(dep, root)
            for dep in available_deps
        }
        highest = max(familiarity.values())
        return sorted(
            (dep for dep in available_deps if familiarity[dep.id] == highest),
            key=lambda dep: dep.head.id,
        )

    def _path_preference_key(self, path: ChainPath) -> tuple[int, int, int]:
        # greater familiarity, then less unfamiliarity, then greater strain
        return (
            -self.get_relative_familiarity_of_path(path),
            self.get_unfamiliarity_of_path(path),
            -self.get_strain_of_path(path),
        )

    def _get_most_preferred_paths(self, paths: list[ChainPath]) -> list[ChainPath]:
        if not paths:
            return []
        keys = [self._path_preference_key(path) for path in paths]
        best = min(keys)
        return [path for path, key in zip(paths, keys) if key == best]
