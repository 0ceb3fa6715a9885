"""Screener state and its pure reducer.

Every change to what the screener knows (a source refresh starting,
succeeding or failing, the platform selection, favorites) is an event, and
reduce(state, event) returns a new ScreenerState. Nothing here awaits or
mutates; the RefreshController is the only caller that stores the result.

A failed refresh keeps the platform's last-known-good records and only sets
its error flag, so one venue going down never empties the table.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field, replace

from fundingscope.models import RawRecord


@dataclass(frozen=True)
class SourceState:
    """What the screener currently holds for one platform."""

    records: tuple[RawRecord, ...] = ()
    last_success: float | None = None  # unix seconds
    loading: bool = False
    error: str | None = None


@dataclass(frozen=True)
class ScreenerState:
    """Complete screener state.

    data_version changes whenever the set of records feeding aggregation
    changes (new records or a different selection), so derived views can be
    memoized on it.
    """

    sources: dict[str, SourceState] = field(default_factory=dict)
    selected: frozenset[str] = frozenset()
    favorites: frozenset[str] = frozenset()
    data_version: int = 0


@dataclass(frozen=True)
class RefreshStarted:
    platform_id: str


@dataclass(frozen=True)
class RefreshSucceeded:
    platform_id: str
    records: tuple[RawRecord, ...]
    at: float


@dataclass(frozen=True)
class RefreshFailed:
    platform_id: str
    error: str


@dataclass(frozen=True)
class RefreshCancelled:
    platform_id: str


@dataclass(frozen=True)
class PlatformToggled:
    platform_id: str


@dataclass(frozen=True)
class PlatformsSelected:
    platform_ids: frozenset[str]


@dataclass(frozen=True)
class FavoriteToggled:
    asset: str


@dataclass(frozen=True)
class FavoritesLoaded:
    assets: frozenset[str]


Event = (
    RefreshStarted
    | RefreshSucceeded
    | RefreshFailed
    | RefreshCancelled
    | PlatformToggled
    | PlatformsSelected
    | FavoriteToggled
    | FavoritesLoaded
)


def initial_state(
    platform_ids: Iterable[str],
    selected: Iterable[str] | None = None,
) -> ScreenerState:
    """Empty state for the given platforms; all selected unless told otherwise."""
    ids = list(platform_ids)
    chosen = frozenset(ids if selected is None else selected) & frozenset(ids)
    return ScreenerState(
        sources={pid: SourceState() for pid in ids},
        selected=chosen,
    )


def _with_source(state: ScreenerState, platform_id: str, **changes) -> dict[str, SourceState]:  # type: ignore[no-untyped-def]
    sources = dict(state.sources)
    sources[platform_id] = replace(sources.get(platform_id, SourceState()), **changes)
    return sources


def reduce(state: ScreenerState, event: Event) -> ScreenerState:
    """Apply one event and return the new state."""
    if isinstance(event, RefreshStarted):
        return replace(state, sources=_with_source(state, event.platform_id, loading=True))

    if isinstance(event, RefreshSucceeded):
        return replace(
            state,
            sources=_with_source(
                state,
                event.platform_id,
                records=event.records,
                last_success=event.at,
                loading=False,
                error=None,
            ),
            data_version=state.data_version + 1,
        )

    if isinstance(event, RefreshFailed):
        return replace(
            state,
            sources=_with_source(state, event.platform_id, loading=False, error=event.error),
        )

    if isinstance(event, RefreshCancelled):
        return replace(state, sources=_with_source(state, event.platform_id, loading=False))

    if isinstance(event, PlatformToggled):
        if event.platform_id not in state.sources:
            return state
        return replace(
            state,
            selected=state.selected ^ {event.platform_id},
            data_version=state.data_version + 1,
        )

    if isinstance(event, PlatformsSelected):
        selected = frozenset(event.platform_ids) & frozenset(state.sources)
        if selected == state.selected:
            return state
        return replace(state, selected=selected, data_version=state.data_version + 1)

    if isinstance(event, FavoriteToggled):
        return replace(state, favorites=state.favorites ^ {event.asset})

    if isinstance(event, FavoritesLoaded):
        return replace(state, favorites=frozenset(event.assets))

    raise TypeError(f"unsupported event: {event!r}")


# ──────────────────────────────────────────────
# Selectors (aggregates over the selected platforms only)
# ──────────────────────────────────────────────


def last_updated(state: ScreenerState) -> float | None:
    """Most recent successful refresh among selected platforms."""
    times = [
        state.sources[pid].last_success
        for pid in state.selected
        if pid in state.sources and state.sources[pid].last_success is not None
    ]
    return max(times) if times else None


def is_loading(state: ScreenerState) -> bool:
    return any(
        state.sources[pid].loading for pid in state.selected if pid in state.sources
    )


def errors(state: ScreenerState) -> dict[str, str | None]:
    """Per selected platform: the last refresh error, or None."""
    return {
        pid: state.sources[pid].error
        for pid in sorted(state.selected)
        if pid in state.sources
    }

