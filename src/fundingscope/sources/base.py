"""Abstract funding snapshot source.

One implementation per venue. The screener depends only on this interface;
transport details (REST, ccxt, websockets) stay inside the implementation.
"""

from abc import ABC, abstractmethod

from fundingscope.models import RawRecord


class FundingSource(ABC):
    """A venue that can report current funding rates for all its perpetuals."""

    @property
    @abstractmethod
    def platform_id(self) -> str:
        """Platform id from fundingscope.platforms.PLATFORMS."""
        ...

    @abstractmethod
    async def fetch_snapshot(self) -> list[RawRecord]:
        """Fetch the current funding snapshot.

        Must raise SourceUnavailable on any failure, partial failures
        included. An empty list means the venue genuinely lists nothing.
        """
        ...

    async def fetch_funding_interval(self, symbol: str) -> float:
        """Return the funding interval in hours for one symbol.

        Only venues with per-symbol funding periods need to implement this.
        """
        raise NotImplementedError(
            f"{self.platform_id} does not report per-symbol funding intervals"
        )

    async def connect(self) -> None:
        """Prepare the source (load markets, open sessions). Optional."""

    async def close(self) -> None:
        """Release network resources. Optional."""
