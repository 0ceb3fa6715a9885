"""Funding screener facade -- the contract the presentation layer talks to.

Pipeline per view request:

  selected sources' last-known-good RawRecords
    -> normalize (per-hour, with resolved or fallback intervals)
    -> aggregate (per-asset spread rows)
    -> query (filters, stable sort, page)

Aggregated rows are rebuilt only when the inputs change: new records, a
different platform selection, or newly resolved intervals. Two get_page()
calls with the same params and no refresh in between return the same page,
and while a refresh is in flight the previous rows keep being served.
"""

from collections.abc import Iterable
from dataclasses import replace

from fundingscope.aggregation.aggregator import aggregate
from fundingscope.aggregation.query import query
from fundingscope.data.store import FavoritesStore
from fundingscope.logging import get_logger
from fundingscope.market_data.normalizer import DEFAULT_FALLBACK_INTERVAL_HOURS, normalize
from fundingscope.market_data.symbols import canonicalize
from fundingscope.models import AssetGroup, NormalizedRecord, PageResult, QueryParams
from fundingscope.platforms import ALL_PLATFORM_IDS
from fundingscope.refresh.controller import RefreshController
from fundingscope.refresh.state import FavoriteToggled, FavoritesLoaded

logger = get_logger(__name__)


class FundingScreener:
    """Normalized, aggregated, queryable view over all funding sources.

    Args:
        controller: Refresh controller owning sources, resolvers and state.
        favorites_store: Durable favorites; favorites are in-memory only if None.
        fallback_hours: Interval assumed for unresolved variable-interval symbols.
    """

    def __init__(
        self,
        controller: RefreshController,
        favorites_store: FavoritesStore | None = None,
        fallback_hours: float = DEFAULT_FALLBACK_INTERVAL_HOURS,
    ) -> None:
        self._controller = controller
        self._favorites_store = favorites_store
        self._fallback_hours = fallback_hours
        self._groups_key: tuple | None = None
        self._groups: list[AssetGroup] = []

    @property
    def controller(self) -> RefreshController:
        return self._controller

    # ──────────────────────────────────────────────
    # Presentation contract
    # ──────────────────────────────────────────────

    def get_page(self, params: QueryParams | None = None) -> PageResult:
        """Return one page of the funding table.

        If params.selected_platforms is None, the controller's current
        selection is used.
        """
        params = params or QueryParams()
        if params.selected_platforms is None:
            params = replace(params, selected_platforms=self.selected_platforms())
        groups = self.groups(params.selected_platforms)
        return query(groups, params, self._controller.state.favorites)

    def get_last_updated(self) -> float | None:
        return self._controller.last_updated()

    def is_loading(self) -> bool:
        return self._controller.is_loading()

    def get_errors(self) -> dict[str, str | None]:
        return self._controller.errors()

    def favorites(self) -> frozenset[str]:
        return self._controller.state.favorites

    async def toggle_favorite(self, asset: str) -> bool:
        """Toggle an asset in the favorite set and persist it.

        Returns:
            True if the asset is now a favorite.
        """
        asset = canonicalize(asset)
        if not asset:
            raise ValueError("asset must not be empty")
        state = self._controller.dispatch(FavoriteToggled(asset))
        if self._favorites_store is not None:
            await self._favorites_store.save_favorites(set(state.favorites))
        is_favorite = asset in state.favorites
        logger.info("favorite_toggled", asset=asset, favorite=is_favorite)
        return is_favorite

    async def load_favorites(self) -> frozenset[str]:
        """Load persisted favorites into the state."""
        if self._favorites_store is None:
            return self.favorites()
        assets = await self._favorites_store.load_favorites()
        state = self._controller.dispatch(FavoritesLoaded(frozenset(assets)))
        logger.info("favorites_loaded", count=len(state.favorites))
        return state.favorites

    async def refresh_all(self) -> dict[str, bool]:
        return await self._controller.refresh_all()

    def selected_platforms(self) -> tuple[str, ...]:
        selected = self._controller.state.selected
        return tuple(pid for pid in ALL_PLATFORM_IDS if pid in selected) + tuple(
            sorted(pid for pid in selected if pid not in ALL_PLATFORM_IDS)
        )

    def toggle_platform(self, platform_id: str) -> bool:
        return self._controller.toggle_platform(platform_id)

    def select_platforms(self, platform_ids: Iterable[str]) -> frozenset[str]:
        return self._controller.select_platforms(platform_ids)

    # ──────────────────────────────────────────────
    # Pipeline
    # ──────────────────────────────────────────────

    def normalized_records(
        self, platform_ids: Iterable[str] | None = None
    ) -> list[NormalizedRecord]:
        """Normalize the last-known-good records of the given (default: selected) platforms."""
        state = self._controller.state
        resolvers = self._controller.resolvers
        wanted = self.selected_platforms() if platform_ids is None else tuple(platform_ids)

        records: list[NormalizedRecord] = []
        for platform_id in wanted:
            source_state = state.sources.get(platform_id)
            if source_state is None:
                continue
            resolver = resolvers.get(platform_id)
            for raw in source_state.records:
                interval = resolver.interval_for(raw.symbol_raw) if resolver else None
                records.append(
                    normalize(raw, interval, fallback_hours=self._fallback_hours)
                )
        return records

    def groups(self, platform_ids: Iterable[str] | None = None) -> list[AssetGroup]:
        """Aggregated rows for the given (default: selected) platforms, memoized."""
        wanted = self.selected_platforms() if platform_ids is None else tuple(platform_ids)
        key = (
            self._controller.state.data_version,
            wanted,
            tuple(
                (pid, resolver.cache.version)
                for pid, resolver in sorted(self._controller.resolvers.items())
            ),
        )
        if key != self._groups_key:
            self._groups = aggregate(self.normalized_records(wanted))
            self._groups_key = key
            logger.debug("asset_groups_rebuilt", groups=len(self._groups))
        return self._groups
