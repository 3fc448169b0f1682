"""
Telegram notification service.

Sends arbitrage alerts and scanner status to a configured Telegram chat.
Alerts go out as MarkdownV2 and fall back to plain text if Telegram
rejects the formatted message.
"""

from typing import Optional

from telegram import Bot
from telegram.constants import MessageEntityType, ParseMode
from telegram.error import TelegramError
from telegram.helpers import escape_markdown

from polyarb.core.config import Settings, get_settings
from polyarb.core.errors import NotificationDeliveryFailed
from polyarb.core.logging import get_logger
from polyarb.core.timeutil import format_timestamp, now_utc, parse_iso, to_local
from polyarb.domain.models import ArbDirection, Opportunity, RiskLevel, ScanCycleStats

logger = get_logger("telegram")

QUESTION_MAX_CHARS = 50

RISK_EMOJI = {
    RiskLevel.LOW: "🟢",
    RiskLevel.MEDIUM: "🟡",
}


def _md(text: str) -> str:
    return escape_markdown(str(text), version=2)


def _short_question(question: str) -> str:
    if len(question) > QUESTION_MAX_CHARS:
        return question[:QUESTION_MAX_CHARS] + "..."
    return question


def _market_url(opportunity: Opportunity) -> str:
    return f"https://polymarket.com/event/{opportunity.market.market_id}"


def _local_time(iso: str) -> str:
    dt = parse_iso(iso)
    if dt is None:
        return iso
    return format_timestamp(to_local(dt), fmt="time")


def format_opportunity_markdown(opportunity: Opportunity) -> str:
    """Format an opportunity as a Telegram MarkdownV2 message."""
    pricing = opportunity.pricing
    risk_emoji = RISK_EMOJI.get(opportunity.risk_level, "🔴")
    buy_both = opportunity.direction == ArbDirection.BUY_BOTH
    direction_emoji = "📥" if buy_both else "📤"
    strategy = "BUY YES \\+ NO" if buy_both else "SELL YES \\+ NO"

    lines = [
        "🚨 *POLYARB ARBITRAGE ALERT*",
        "",
        "📊 *Market:*",
        _md(_short_question(opportunity.market.question)),
        "",
        f"{direction_emoji} *Strategy:* {strategy}",
        "",
        "💰 *Profit:*",
        f"• Gross: {_md(f'{opportunity.gross_profit_percent:.2f}%')}",
        f"• Net: {_md(f'{opportunity.net_profit_percent:.2f}%')}",
        f"• Per $100: {_md(f'${opportunity.net_profit_absolute * 100:.2f}')}",
        "",
        "📈 *Prices:*",
        "```",
        f"YES: Ask ${pricing.yes_best_ask:.3f} | Bid ${pricing.yes_best_bid:.3f}",
        f"NO:  Ask ${pricing.no_best_ask:.3f} | Bid ${pricing.no_best_bid:.3f}",
        f"Sum: ${pricing.combined_ask:.3f} (target: $1.00)",
        "```",
        "",
        f"{risk_emoji} *Risk:* {opportunity.risk_level.value} \\({opportunity.risk_score}/10\\)",
    ]
    if opportunity.risk.factors:
        lines.append(f"⚠️ {_md(', '.join(opportunity.risk.factors))}")
    lines += [
        "",
        f"💵 *Recommended:* {_md(f'${opportunity.recommended_size:.0f}')} "
        f"\\(max {_md(f'${opportunity.max_size:.0f}')}\\)",
        "",
        "🔗 [View on Polymarket]"
        f"({escape_markdown(_market_url(opportunity), version=2, entity_type=MessageEntityType.TEXT_LINK)})",
        "",
        f"⏰ {_md(_local_time(opportunity.discovered_at))}",
    ]
    return "\n".join(lines)


def format_opportunity_plain(opportunity: Opportunity) -> str:
    """Format an opportunity as plain text."""
    pricing = opportunity.pricing
    risk_emoji = RISK_EMOJI.get(opportunity.risk_level, "🔴")
    strategy = "Buy Both" if opportunity.direction == ArbDirection.BUY_BOTH else "Sell Both"

    return f"""🚨 POLYARB ARB ALERT

📊 {_short_question(opportunity.market.question)}

💰 {opportunity.net_profit_percent:.2f}% profit ({strategy})

YES: ${pricing.yes_best_ask:.3f}/${pricing.yes_best_bid:.3f}
NO:  ${pricing.no_best_ask:.3f}/${pricing.no_best_bid:.3f}
Sum: ${pricing.combined_ask:.3f}

{risk_emoji} Risk: {opportunity.risk_level.value} ({opportunity.risk_score}/10)
💵 Size: ${opportunity.recommended_size:.0f}-${opportunity.max_size:.0f}

🔗 {_market_url(opportunity)}"""


class TelegramService:
    """
    Telegram notification channel.

    Sends messages to a configured chat using a bot.
    """

    name = "telegram"

    def __init__(
        self,
        bot_token: Optional[str] = None,
        chat_id: Optional[str] = None,
        enabled: bool = True,
        settings: Optional[Settings] = None,
        bot: Optional[Bot] = None,
    ):
        settings = settings or get_settings()

        self.bot_token = bot_token or settings.telegram_bot_token
        self.chat_id = chat_id or settings.telegram_chat_id
        self.enabled = enabled and settings.telegram_enabled

        self._bot = bot
        self._initialized = bot is not None

        if self.enabled and (not self.chat_id or not (self.bot_token or bot)):
            logger.warning("Telegram enabled but credentials not configured")
            self.enabled = False

    async def _get_bot(self) -> Bot:
        """Lazy-initialize Telegram bot."""
        if self._bot is None:
            self._bot = Bot(token=self.bot_token)
        if not self._initialized:
            await self._bot.initialize()
            self._initialized = True
        return self._bot

    async def _send(self, text: str, parse_mode: Optional[str]) -> None:
        bot = await self._get_bot()
        await bot.send_message(
            chat_id=self.chat_id,
            text=text,
            parse_mode=parse_mode,
        )

    async def send_message_async(
        self,
        text: str,
        parse_mode: Optional[str] = ParseMode.MARKDOWN_V2,
    ) -> bool:
        """
        Send message asynchronously.

        Args:
            text: Message text
            parse_mode: Parse mode (MarkdownV2, HTML, None)

        Returns:
            True if sent successfully
        """
        if not self.enabled:
            logger.debug("Telegram disabled, skipping message")
            return False

        try:
            await self._send(text, parse_mode)
        except TelegramError as e:
            logger.error(f"Failed to send Telegram message: {e}")
            return False

        logger.info("Telegram message sent")
        return True

    async def send_opportunity(self, opportunity: Opportunity) -> bool:
        """
        Send an arbitrage alert.

        Returns:
            True once Telegram accepted either message form, False if the
            channel is disabled

        Raises:
            NotificationDeliveryFailed: If both forms were rejected
        """
        if not self.enabled:
            return False

        try:
            await self._send(format_opportunity_markdown(opportunity), ParseMode.MARKDOWN_V2)
        except TelegramError as e:
            logger.warning(f"MarkdownV2 alert rejected, retrying as plain text: {e}")
            try:
                await self._send(format_opportunity_plain(opportunity), None)
            except TelegramError as plain_error:
                raise NotificationDeliveryFailed(
                    f"Telegram rejected alert for {opportunity.key}: {plain_error}",
                    channel=self.name,
                    cause=plain_error,
                ) from plain_error

        logger.info(f"Telegram alert sent for {opportunity.key}")
        return True

    async def send_status_update(self, stats: ScanCycleStats, scanning: bool = False) -> bool:
        """Send scanner status summary."""
        status_emoji = "🔄" if scanning else "✅"
        text = (
            f"{status_emoji} *PolyArb Scanner Status*\n\n"
            f"📊 Markets Scanned: {stats.markets_scanned}\n"
            f"🎯 Opportunities: {stats.total_opportunities_found}\n"
            f"⏰ {_md(_local_time(stats.last_scan_at or format_timestamp(now_utc())))}"
        )
        return await self.send_message_async(text)

    async def send_test_message(self) -> bool:
        """Send a test message to verify the bot works."""
        text = (
            "🤖 *PolyArb Arbitrage Scanner*\n\n"
            "✅ Bot connection successful\\!\n"
            "📡 Ready to send arbitrage alerts\\.\n\n"
            "_This is a test message\\._"
        )
        return await self.send_message_async(text)

    async def aclose(self) -> None:
        """Shut down the bot's HTTP session."""
        if self._bot is not None and self._initialized:
            await self._bot.shutdown()
            self._initialized = False


def create_telegram_service(
    settings: Optional[Settings] = None,
) -> TelegramService:
    """Create Telegram service from settings."""
    return TelegramService(settings=settings)
