"""Price feed status view."""

from dataclasses import dataclass, field

from investor.domain.models.enums import FeedState


@dataclass
class FeedStatus:
    state: FeedState
    subscribed_symbols: list[str] = field(default_factory=list)
    cached_prices: int = 0

    @property
    def connected(self) -> bool:
        return self.state != FeedState.DISCONNECTED and self.state != FeedState.CONNECTING

    @property
    def authenticated(self) -> bool:
        return self.state == FeedState.AUTHENTICATED
