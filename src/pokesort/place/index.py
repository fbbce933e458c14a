"""Run-wide set of claimed destination paths."""


class DestinationIndex:
    """Ordered, growing set of `<label>/<folder>` paths already claimed.

    Seeded from the existing output tree; every placement reads and writes
    the same instance.
    """

    def __init__(self, existing=()):
        self._paths = dict.fromkeys(existing)
        self.seeded = frozenset(self._paths)

    def __contains__(self, path: str) -> bool:
        return path in self._paths

    def __len__(self) -> int:
        return len(self._paths)

    def __iter__(self):
        return iter(self._paths)

    def collisions(self, paths) -> list[str]:
        """Paths from the given set that are already claimed."""
        return [p for p in paths if p in self._paths]

    def reserve(self, paths) -> bool:
        """Claim every path, or none of them if any is already taken."""
        paths = list(dict.fromkeys(paths))
        if self.collisions(paths):
            return False
        for p in paths:
            self._paths[p] = None
        return True
