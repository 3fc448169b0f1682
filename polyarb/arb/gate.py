"""
Alert Gate.

Decides whether an opportunity should produce an external notification on
one channel. Each gate keeps its own last-notified time per market and
suppresses repeats inside the cooldown window. The clock only advances on
confirmed delivery, so a failed send is retried on the next cycle.
"""

import asyncio
import time
from typing import Awaitable, Callable, Iterable, Optional, Protocol

from polyarb.core.config import AlertConfig
from polyarb.core.errors import NotificationDeliveryFailed
from polyarb.core.logging import LoggerMixin
from polyarb.domain.models import Opportunity


class NotificationChannel(Protocol):
    """Anything that can deliver an opportunity alert."""

    name: str

    async def send_opportunity(self, opportunity: Opportunity) -> bool:
        """Return True only once delivery is confirmed."""
        ...


class AlertGate(LoggerMixin):
    """
    Per-channel cooldown gate for opportunity alerts.

    Cooldown is keyed by market id, so a refreshed opportunity for the same
    market inside the window stays quiet.
    """

    def __init__(
        self,
        channel: NotificationChannel,
        config: Optional[AlertConfig] = None,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """
        Initialize gate.

        Args:
            channel: Delivery channel
            config: Alert configuration (cooldown, thresholds)
            clock: Seconds clock, injectable for tests
            sleep: Async sleep used between batched sends
        """
        self.channel = channel
        self.config = config or AlertConfig()
        self.cooldown_seconds = self.config.cooldown_seconds
        self._clock = clock
        self._sleep = sleep

        self._last_notified: dict[str, float] = {}

    def cooldown_remaining(self, market_id: str) -> float:
        """Remaining cooldown in seconds, 0 if none."""
        last = self._last_notified.get(market_id)
        if last is None:
            return 0.0
        return max(0.0, self.cooldown_seconds - (self._clock() - last))

    def is_cooling_down(self, market_id: str) -> bool:
        last = self._last_notified.get(market_id)
        if last is None:
            return False
        return self._clock() - last < self.cooldown_seconds

    def is_eligible(self, opportunity: Opportunity) -> bool:
        """Threshold check applied when picking alerts from a cycle."""
        return (
            opportunity.net_profit_percent >= self.config.min_profit_percent
            and opportunity.risk_score <= self.config.max_risk_score
        )

    async def notify(self, opportunity: Opportunity) -> bool:
        """
        Send one alert if the market is not cooling down.

        Returns:
            True if the channel confirmed delivery
        """
        if not self.config.enabled:
            return False

        market_id = opportunity.key
        if self.is_cooling_down(market_id):
            self.logger.info(
                f"Skipping alert for {market_id} (cooldown "
                f"{self.cooldown_remaining(market_id):.0f}s)"
            )
            return False

        try:
            delivered = await self.channel.send_opportunity(opportunity)
        except NotificationDeliveryFailed as e:
            self.logger.warning(f"Alert for {market_id} via {e.channel} failed: {e.message}")
            return False
        except Exception as e:
            self.logger.error(f"Alert for {market_id} via {self.channel.name} raised: {e!r}")
            return False

        if not delivered:
            self.logger.warning(f"Alert for {market_id} via {self.channel.name} was not delivered")
            return False

        self._last_notified[market_id] = self._clock()
        return True

    async def dispatch(self, opportunities: Iterable[Opportunity]) -> int:
        """
        Alert on the top eligible opportunities of a ranked cycle.

        Args:
            opportunities: Opportunities in rank order

        Returns:
            Number of alerts delivered
        """
        if not self.config.enabled:
            return 0

        selected = [o for o in opportunities if self.is_eligible(o)][: self.config.max_per_cycle]

        sent = 0
        for index, opportunity in enumerate(selected):
            if index > 0 and self.config.send_delay_seconds > 0:
                await self._sleep(self.config.send_delay_seconds)
            if await self.notify(opportunity):
                sent += 1

        if selected:
            self.logger.info(f"Dispatched {sent}/{len(selected)} alerts via {self.channel.name}")
        return sent

    def set_cooldown(self, seconds: float) -> None:
        self.cooldown_seconds = seconds

    def clear(self, market_id: Optional[str] = None) -> None:
        """Clear cooldown for one market, or for all markets."""
        if market_id is None:
            self._last_notified.clear()
            self.logger.info("Cleared all alert cooldowns")
        elif self._last_notified.pop(market_id, None) is not None:
            self.logger.info(f"Reset cooldown for market {market_id}")
