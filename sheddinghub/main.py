import os
import argparse
import asyncio
import logging
from pathlib import Path

from sheddinghub.app import SheddingApp
from sheddinghub.config import HubConfig
from sheddinghub.config_manager import ConfigurationManager
from sheddinghub.models import EngineState
from sheddinghub.stage_info import get_stage_info
from sheddinghub.timezone_utils import format_time_until, now_configured


def _resolve_config_path(cli_path: str | None) -> Path:
    """
    Resolve config path with the following precedence:
    1) CLI: --config /path/to/config.yaml
    2) ENV: SHEDDINGHUB_CONFIG=/path/to/config.yaml
    3) Default: <project_root>/config.yaml  (parent of the 'sheddinghub' package dir)
    """
    if cli_path:
        return Path(cli_path).expanduser().resolve()

    env = os.getenv("SHEDDINGHUB_CONFIG")
    if env:
        return Path(env).expanduser().resolve()

    # project root = parent of this package directory
    return Path(__file__).resolve().parents[1] / "config.yaml"


def load_config(path: str | Path) -> HubConfig:
    config_manager = ConfigurationManager(str(Path(path).expanduser().resolve()))
    cfg = config_manager.load_config()
    logging.getLogger(__name__).info(
        f"Configuration loaded - owner {cfg.owner_id}, area {cfg.grid.area or 'not configured'}"
    )
    return cfg


def format_summary(state: EngineState, currency: str = "ZAR") -> str:
    """Plain-text status block printed by ``--once``."""
    info = get_stage_info(state.outage.stage)
    lines = [f"{info.title} - {info.description}", f"Area: {state.outage.area}"]
    if state.outage.is_demo:
        lines.append("Grid status unavailable: showing demo data")
    slot = state.outage.next_slot
    if slot is not None:
        lines.append(f"Next outage: {slot.start:%a %d %b %H:%M} - {slot.end:%H:%M} "
                     f"({format_time_until(slot.start, now_configured())})")
        lines.append(f"  {slot.note}")
    stats = state.stats
    lines.append(f"Usage: {stats.total_usage_w:.0f} W across {stats.active_device_count} active devices")
    lines.append(f"Estimated monthly cost: {currency} {stats.monthly_cost_estimate}")
    lines.append(f"Efficiency: {stats.efficiency_rating.value}")
    cats = state.categories
    lines.append(f"Devices: {len(cats.essential)} essential, {len(cats.high_usage)} high-usage, "
                 f"{len(cats.other)} other")
    for action in state.actions:
        if action.devices:
            names = ", ".join(d.name for d in action.devices)
            lines.append(f"* {action.reason}: turn off {names}")
        else:
            lines.append(f"* {action.message}")
    if info.tips:
        lines.append("Tips: " + "; ".join(info.tips))
    return "\n".join(lines)


async def amain(cfg_path: str | Path | None, once: bool = False) -> None:
    log = logging.getLogger(__name__)
    cfg = load_config(_resolve_config_path(str(cfg_path) if cfg_path else None))
    app = SheddingApp(cfg)
    try:
        if once:
            await app.init()
            print(format_summary(app.state, cfg.tariff.currency))
            return
        log.info("Starting loadshedding engine...")
        await app.run()
    except KeyboardInterrupt:
        log.info("Application interrupted by user")
        raise
    except Exception as e:
        log.error(f"Fatal error in application: {e}", exc_info=True)
        raise
    finally:
        await app.shutdown()


def main() -> None:
    parser = argparse.ArgumentParser(description="Loadshedding-aware home energy engine")
    parser.add_argument(
        "--config",
        help="Path to config.yaml (overrides SHEDDINGHUB_CONFIG and default).",
        required=False,
    )
    parser.add_argument("--once", action="store_true", help="Refresh once, print a summary and exit.")
    args = parser.parse_args()

    asyncio.run(amain(args.config, once=args.once))


if __name__ == "__main__":
    main()
