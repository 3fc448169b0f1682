"""
polyarb CLI entry point.

Usage:
    # Scan once and print results
    polyarb --once

    # Scan on an interval and send alerts
    polyarb --scheduled

    # Show configuration and provider health
    polyarb --status
"""

import asyncio
import signal
from typing import Any, Optional

import click
from rich.console import Console
from rich.table import Table

from polyarb.arb.engine import ScanEngine
from polyarb.arb.gate import AlertGate
from polyarb.core.config import (
    ScannerConfig,
    get_settings,
    load_alert_config,
    load_scanner_config,
    load_yaml_config,
)
from polyarb.core.errors import PolyArbError
from polyarb.core.logging import get_logger, setup_logging
from polyarb.domain.models import Opportunity, ScannerState
from polyarb.providers.base import ProviderStatus
from polyarb.providers.polymarket import PolymarketProvider
from polyarb.services.scheduler import create_scheduler_service
from polyarb.services.telegram import create_telegram_service

console = Console()
logger = get_logger("cli")

RISK_COLORS = {"LOW": "green", "MEDIUM": "yellow", "HIGH": "red", "EXTREME": "bold red"}


def load_config_file() -> dict[str, Any]:
    """Load config/config.yaml, falling back to built-in defaults."""
    try:
        return load_yaml_config()
    except FileNotFoundError as e:
        logger.warning(f"{e}, using defaults")
        return {}


def build_scanner_config(
    config: dict[str, Any],
    min_profit: Optional[float] = None,
    max_risk: Optional[int] = None,
) -> ScannerConfig:
    """Scanner config from YAML and env, with command-line overrides on top."""
    scanner_config = load_scanner_config(config)
    overrides: dict[str, Any] = {}
    if min_profit is not None:
        overrides["min_profit_percent"] = min_profit
    if max_risk is not None:
        overrides["max_risk_score"] = max_risk
    if not overrides:
        return scanner_config
    return ScannerConfig(**{**scanner_config.model_dump(), **overrides})


def display_state(state: ScannerState, top: int) -> None:
    """Display scan results in terminal."""
    stats = state.stats

    console.print("\n" + "=" * 60)
    console.print("[bold blue]Polymarket Intra-Market Arbitrage Scan[/bold blue]")
    console.print("=" * 60 + "\n")

    console.print(
        f"Markets scanned: [bold]{stats.markets_scanned}[/bold]  "
        f"Opportunities: [bold]{stats.active_opportunities}[/bold]  "
        f"Best net: [bold]{stats.best_profit:.2f}%[/bold]  "
        f"Duration: {stats.last_scan_duration_ms:.0f} ms"
    )
    if stats.last_error:
        console.print(f"[yellow]Last error: {stats.last_error}[/yellow]")
    console.print()

    opportunities = state.opportunities[:top]
    if opportunities:
        table = Table(title="Opportunities")
        table.add_column("Market", style="cyan", max_width=50)
        table.add_column("Direction")
        table.add_column("Sum Ask", justify="right")
        table.add_column("Gross %", justify="right")
        table.add_column("Net %", justify="right", style="green")
        table.add_column("Risk")
        table.add_column("Size", justify="right")

        for opp in opportunities:
            color = RISK_COLORS.get(opp.risk_level.value, "white")
            table.add_row(
                opp.market.question,
                opp.direction.value,
                f"{opp.pricing.combined_ask:.3f}",
                f"{opp.gross_profit_percent:.2f}",
                f"{opp.net_profit_percent:.2f}",
                f"[{color}]{opp.risk_level.value} ({opp.risk_score})[/{color}]",
                f"${opp.recommended_size:.0f}-${opp.max_size:.0f}",
            )

        console.print(table)
        console.print()
    else:
        console.print("[dim]No opportunities found[/dim]\n")

    if state.near_misses:
        table = Table(title="Near Misses")
        table.add_column("Market", style="cyan", max_width=50)
        table.add_column("Sum Ask", justify="right")
        table.add_column("Deviation", justify="right")
        table.add_column("Side")

        for miss in state.near_misses[:top]:
            table.add_row(
                miss.question,
                f"{miss.combined_ask:.3f}",
                f"{miss.deviation_percent:.2f}%",
                miss.direction,
            )

        console.print(table)
        console.print()

    if state.live_markets:
        table = Table(title="Most Liquid Markets")
        table.add_column("Market", style="cyan", max_width=50)
        table.add_column("YES", justify="right")
        table.add_column("NO", justify="right")
        table.add_column("Spread", justify="right")
        table.add_column("Liquidity", justify="right")

        for entry in state.live_markets[:top]:
            table.add_row(
                entry.question,
                f"{entry.yes_price:.3f}",
                f"{entry.no_price:.3f}",
                f"{entry.spread_percent:.2f}%",
                f"{entry.liquidity:,.0f}",
            )

        console.print(table)
        console.print()


async def run_scan_once(scanner_config: ScannerConfig) -> ScannerState:
    """
    Execute one scan cycle.

    Returns:
        Engine state after the scan
    """
    logger.info("Starting single scan")
    engine = ScanEngine(PolymarketProvider(), config=scanner_config)
    try:
        await engine.run_scan()
        return engine.current_state()
    finally:
        await engine.aclose()


@click.command()
@click.option("--once", is_flag=True, help="Scan once and exit")
@click.option("--scheduled", is_flag=True, help="Scan on an interval and send alerts")
@click.option("--status", is_flag=True, help="Show system status")
@click.option("--top", default=10, show_default=True, help="Rows to show per table")
@click.option("--min-profit", type=float, default=None, help="Minimum gross profit percent")
@click.option("--max-risk", type=click.IntRange(1, 10), default=None, help="Maximum risk score")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
def main(
    once: bool,
    scheduled: bool,
    status: bool,
    top: int,
    min_profit: Optional[float],
    max_risk: Optional[int],
    verbose: bool,
) -> None:
    """polyarb - Polymarket Intra-Market Arbitrage Scanner"""

    # Setup logging
    log_level = "DEBUG" if verbose else None
    setup_logging(log_level=log_level)

    if status:
        asyncio.run(show_status())
        return

    if not (once or scheduled):
        # Default: show help
        ctx = click.get_current_context()
        click.echo(ctx.get_help())
        return

    config = load_config_file()
    try:
        scanner_config = build_scanner_config(config, min_profit, max_risk)
    except (PolyArbError, ValueError) as e:
        raise click.ClickException(str(e))

    if once:
        console.print("[bold]Scanning Polymarket...[/bold]\n")
        state = asyncio.run(run_scan_once(scanner_config))
        display_state(state, top)
        return

    asyncio.run(run_scheduled(scanner_config, config, top))


async def show_status() -> None:
    """Show system status."""
    settings = get_settings()
    config = load_config_file()
    scanner_config = load_scanner_config(config)
    alert_config = load_alert_config(config)

    console.print("\n[bold]polyarb System Status[/bold]\n")

    table = Table(title="Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")

    table.add_row("Environment", settings.polyarb_env)
    table.add_row("Timezone", settings.timezone)
    table.add_row("Log Level", settings.log_level)
    table.add_row("CLOB API", settings.clob_api_url)
    table.add_row("Min Profit", f"{scanner_config.min_profit_percent}%")
    table.add_row("Max Risk", str(scanner_config.max_risk_score))
    table.add_row("Min Liquidity", str(scanner_config.min_liquidity))
    table.add_row("Scan Interval", f"{scanner_config.scan_interval_seconds:g}s")
    table.add_row("Alert Cooldown", f"{alert_config.cooldown_seconds:g}s")
    table.add_row(
        "Telegram",
        "[green]✓ Configured[/green]" if settings.telegram_bot_token and settings.telegram_chat_id
        else "[red]✗ Missing[/red]",
    )

    console.print(table)
    console.print()

    provider = PolymarketProvider(settings=settings)
    try:
        health = await provider.healthcheck()
    finally:
        await provider.aclose()

    color = {
        ProviderStatus.HEALTHY: "green",
        ProviderStatus.DEGRADED: "yellow",
    }.get(health.status, "red")

    table = Table(title="Providers")
    table.add_column("Provider", style="cyan")
    table.add_column("Status")
    table.add_column("Latency", justify="right")
    table.add_row(
        provider.name,
        f"[{color}]{health.status.value}[/{color}] {health.message}",
        f"{health.latency_ms:.0f} ms" if health.latency_ms is not None else "-",
    )
    console.print(table)


async def run_scheduled(
    scanner_config: ScannerConfig,
    config: dict[str, Any],
    top: int,
) -> None:
    """Run recurring scans until interrupted."""
    settings = get_settings()
    alert_config = load_alert_config(config)

    console.print("[bold]Starting polyarb scanner...[/bold]")
    console.print("Press Ctrl+C to stop\n")

    engine = ScanEngine(PolymarketProvider(settings=settings), config=scanner_config)

    def report(cycle: list[Opportunity]) -> None:
        state = engine.current_state(top=top)
        console.print(
            f"[dim]{state.stats.last_scan_at}[/dim] "
            f"scan #{state.stats.total_scans}: {state.stats.markets_scanned} markets, "
            f"{len(cycle)} opportunities this cycle, best {state.stats.best_profit:.2f}%"
        )

    engine.on_cycle(report)

    telegram = create_telegram_service(settings)
    if telegram.enabled:
        gate = AlertGate(telegram, alert_config)
        engine.on_cycle(gate.dispatch)
        await telegram.send_test_message()
    else:
        console.print("[yellow]Telegram alerts disabled[/yellow]")

    scheduler = create_scheduler_service(settings)
    scheduler.add_interval_job(
        "scan",
        engine.run_scan,
        seconds=scanner_config.scan_interval_seconds,
        run_immediately=settings.polyarb_auto_scan,
    )
    scheduler.start()

    jobs = scheduler.get_jobs()
    table = Table(title="Scheduled Jobs")
    table.add_column("Job", style="cyan")
    table.add_column("Next Run")
    for job in jobs:
        table.add_row(job["name"], job["next_run"] or "N/A")
    console.print(table)

    # Handle shutdown
    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop.set)
        except NotImplementedError:
            # Windows event loops have no signal handlers; Ctrl+C still interrupts
            pass

    try:
        await stop.wait()
    finally:
        console.print("\n[yellow]Shutting down...[/yellow]")
        scheduler.stop()
        await engine.aclose()
        await telegram.aclose()


if __name__ == "__main__":
    main()
