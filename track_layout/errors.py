class DependencyOrderError(ValueError):
    """Units or chains were not supplied in the order they depend on each other."""


class NoSuchChainError(KeyError):
    """No chain matching the lookup exists in the queried map."""


class NoSuchChainPathError(KeyError):
    """No chain path matching the lookup exists in the queried map."""
