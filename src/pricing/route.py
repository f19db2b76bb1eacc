from __future__ import annotations

from collections import deque
from typing import Iterable, Sequence

from core.base_types import Hop, Pool
from core.errors import ValidationError

MIN_HOPS = 1
MAX_HOPS = 14
MAX_BFS_PATHS = 20
ALGORITHMS = ("dfs", "bfs")

Path = tuple[Hop, ...]


def validate_max_hops(max_hops: object) -> int:
    if isinstance(max_hops, bool) or not isinstance(max_hops, int):
        raise ValidationError(f"max_hops must be an integer, got {max_hops!r}")
    if max_hops < MIN_HOPS or max_hops > MAX_HOPS:
        raise ValidationError(
            f"Max hops must be between {MIN_HOPS} and {MAX_HOPS}, got {max_hops}"
        )
    return max_hops


def validate_algorithm(algorithm: object) -> str:
    if algorithm not in ALGORITHMS:
        raise ValidationError(
            f'Invalid algorithm {algorithm!r}: must be "dfs" or "bfs"'
        )
    return str(algorithm)


class Route:
    """Represents a swap route through one or more pools."""

    def __init__(self, hops: Sequence[Hop]):
        self.hops: Path = tuple(hops)

    @property
    def num_hops(self) -> int:
        return len(self.hops)

    @property
    def tickers(self) -> list[str]:
        """token_in -> intermediate... -> token_out"""
        if not self.hops:
            return []
        return [self.hops[0].from_ticker] + [hop.to_ticker for hop in self.hops]

    def to_list(self) -> list[dict]:
        return [hop.to_dict() for hop in self.hops]

    def __repr__(self) -> str:
        return f"Route({' -> '.join(self.tickers)})"


class RouteFinder:
    """
    Finds candidate routes between coins.
    Coins are nodes, compliance-flagged pools are edges.
    """

    def __init__(self, pools: Iterable[Pool]):
        self.pools = list(pools)
        self._graph: dict[str, list[tuple[Pool, str]]] | None = None

    @property
    def graph(self) -> dict[str, list[tuple[Pool, str]]]:
        if self._graph is None:
            self._graph = self._build_graph()
        return self._graph

    def _build_graph(self) -> dict[str, list[tuple[Pool, str]]]:
        """
        Build adjacency graph: ticker -> [(pool, other_ticker), ...]
        Non-compliant pools and pools with an empty side are left out.
        """
        graph: dict[str, list[tuple[Pool, str]]] = {}
        for pool in self.pools:
            if not pool.runes_compliant or pool.has_zero_reserve:
                continue
            a, b = pool.coin_a.ticker, pool.coin_b.ticker
            graph.setdefault(a, []).append((pool, b))
            graph.setdefault(b, []).append((pool, a))
        return graph

    def find_all_routes(
        self, start: str, end: str, max_hops: int = 6, algorithm: str = "dfs"
    ) -> list[Route]:
        validate_max_hops(max_hops)
        if validate_algorithm(algorithm) == "bfs":
            paths = self.bfs(start, end, max_hops)
        else:
            paths = self.dfs(start, end, max_hops)
        return [Route(path) for path in paths]

    def dfs(self, start: str, end: str, max_hops: int) -> list[Path]:
        """
        Exhaustive search. Each stack frame carries its own frozenset of used
        pools, so sibling branches never see each other's choices. Frames are
        pushed in reverse so results come out in recursive-DFS order.
        """
        paths: list[Path] = []
        stack: list[tuple[str, Path, frozenset[str]]] = [(start, (), frozenset())]
        while stack:
            coin, path, used = stack.pop()
            if coin == end:
                paths.append(path)
                continue
            if len(path) >= max_hops:
                continue
            children = []
            for pool in self.pools:
                if not pool.runes_compliant or pool.id in used:
                    continue
                if pool.coin_a.ticker == coin:
                    next_coin = pool.coin_b.ticker
                elif pool.coin_b.ticker == coin:
                    next_coin = pool.coin_a.ticker
                else:
                    continue
                hop = Hop(from_ticker=coin, to_ticker=next_coin, pool_id=pool.id)
                children.append((next_coin, path + (hop,), used | {pool.id}))
            stack.extend(reversed(children))
        return paths

    def bfs(
        self, start: str, end: str, max_hops: int, max_paths: int = MAX_BFS_PATHS
    ) -> list[Path]:
        """Breadth-first search, shortest routes first, capped at ``max_paths``.

        Each (coin, pool) edge is expanded at most once per search, so the
        work stays linear in the graph size even when ``end`` is unreachable.
        """
        paths: list[Path] = []
        expanded: set[tuple[str, str]] = set()
        queue: deque[tuple[str, Path, frozenset[str]]] = deque(
            [(start, (), frozenset())]
        )
        while queue and len(paths) < max_paths:
            coin, path, used = queue.popleft()
            if coin == end:
                paths.append(path)
                continue
            if len(path) >= max_hops:
                continue
            for pool, next_coin in self.graph.get(coin, []):
                if pool.id in used or (coin, pool.id) in expanded:
                    continue
                expanded.add((coin, pool.id))
                hop = Hop(from_ticker=coin, to_ticker=next_coin, pool_id=pool.id)
                queue.append((next_coin, path + (hop,), used | {pool.id}))
        return paths


def find_all_paths(
    start: str,
    end: str,
    pools: Iterable[Pool],
    max_hops: int = 6,
    algorithm: str = "dfs",
) -> list[Path]:
    """Hop sequences from ``start`` to ``end``. An empty list means no route."""
    routes = RouteFinder(pools).find_all_routes(start, end, max_hops, algorithm)
    return [route.hops for route in routes]
