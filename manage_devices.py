#!/usr/bin/env python3
"""
Device Management CLI Tool
Add, list, switch and remove appliances, manage favorites and automation
rules, and run the "prepare for loadshedding" routine from a terminal.
"""

import argparse
import asyncio
import sys

from sheddinghub.app import SheddingApp
from sheddinghub.config_manager import ConfigurationManager
from sheddinghub.errors import DeviceValidationError, NotFoundError, TransientNetworkError
from sheddinghub.main import _resolve_config_path, load_config
from sheddinghub.models import DeviceStatus, PreparationOutcome, PreparationSummary


def confirm_in_terminal(summary: PreparationSummary) -> bool:
    print(summary.message)
    for device in summary.to_turn_off:
        print(f"  - {device.name} ({device.room}, {device.rated_power_w:.0f} W)")
    answer = input("Turn off non-essential devices? [y/N]: ").strip().lower()
    return answer in ("y", "yes")


def print_devices(app: SheddingApp):
    devices = app.state.devices
    if not devices:
        print("📭 No devices stored")
        return
    favorites = set(app.preferences.load_favorites())
    protected = app.state.settings.rules.protected_device_ids
    print("📋 Devices:")
    print("-" * 50)
    for d in devices:
        status = "🟢 On" if d.is_on else "🔴 Off"
        flags = []
        if d.id in favorites:
            flags.append("favorite")
        if d.id in protected:
            flags.append("protected")
        suffix = f" [{', '.join(flags)}]" if flags else ""
        print(f"{d.name} ({d.type.value}, {d.room}){suffix}")
        print(f"  ID: {d.id}")
        print(f"  Status: {status}  Power: {d.rated_power_w:.0f} W  Hours/day: {d.average_hours_per_day:g}")
        print()
    stats = app.state.stats
    print(f"Active usage: {stats.total_usage_w:.0f} W, est. {app.cfg.tariff.currency} "
          f"{stats.monthly_cost_estimate}/month, efficiency {stats.efficiency_rating.value}")
    for s in app.savings_suggestions():
        print(f"💡 {s.suggestion}")


async def run_command(app: SheddingApp, args) -> int:
    await app.load_preferences()
    await app.refresh_devices()

    if args.command == 'list':
        print_devices(app)

    elif args.command == 'add':
        try:
            device = await app.add_device(args.name, args.type, args.room, args.power, args.hours)
        except (DeviceValidationError, TransientNetworkError) as e:
            print(f"❌ {e}")
            return 1
        print(f"✅ Added {device.name} with ID {device.id}")

    elif args.command == 'remove':
        try:
            device = await asyncio.to_thread(app.repository.get, app.owner_id, args.device_id)
        except (NotFoundError, TransientNetworkError) as e:
            print(f"❌ {e}")
            return 1
        if not await app.delete_device(device.id):
            print(f"❌ {app.last_notice}")
            return 1
        print(f"✅ Removed {device.name} ({device.id})")

    elif args.command == 'toggle':
        result = await app.toggle_device(args.device_id)
        if not result.success:
            print(f"❌ {result.error}")
            return 1
        device = next(d for d in result.devices if d.id == args.device_id)
        print(f"✅ {device.name} is now {device.status.value}")

    elif args.command == 'room':
        result = await app.set_room_status(args.room, DeviceStatus(args.status))
        if not result.success:
            print(f"❌ {result.error}")
            return 1
        print(f"✅ Devices in {args.room} switched {args.status}")

    elif args.command == 'favorite':
        try:
            favorites = app.preferences.toggle_favorite(args.device_id)
        except TransientNetworkError as e:
            print(f"❌ {e}")
            return 1
        state = "added to" if args.device_id in favorites else "removed from"
        print(f"⭐ {args.device_id} {state} favorites")

    elif args.command == 'protect':
        app.last_notice = None
        await app.toggle_protected(args.device_id)
        if app.last_notice:
            print(f"❌ {app.last_notice}")
            return 1
        state = "protected" if args.device_id in app.state.settings.rules.protected_device_ids else "unprotected"
        print(f"🛡️ {args.device_id} is now {state}")

    elif args.command == 'automation':
        app.last_notice = None
        await app.set_automation_enabled(args.state == 'on')
        if app.last_notice:
            print(f"❌ {app.last_notice}")
            return 1
        print(f"⚙️ Automation {'armed' if app.state.settings.enabled else 'disarmed'}")

    elif args.command == 'prepare':
        result = await app.prepare_for_outage(None if args.yes else confirm_in_terminal)
        icon = "✅" if result.outcome in (PreparationOutcome.COMPLETED, PreparationOutcome.NOTHING_ACTIVE) else "ℹ️"
        if result.outcome == PreparationOutcome.FAILED:
            icon = "❌"
        print(f"{icon} {result.message}")
        return 1 if result.outcome == PreparationOutcome.FAILED else 0

    return 0


def main():
    parser = argparse.ArgumentParser(description="Manage appliances for the loadshedding engine")
    parser.add_argument('--config', help='Path to config.yaml')
    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    subparsers.add_parser('list', help='List all devices')

    add_parser = subparsers.add_parser('add', help='Add a device')
    add_parser.add_argument('name', help='Device name')
    add_parser.add_argument('type', help='Device type (e.g., refrigerator, tv, geyser)')
    add_parser.add_argument('room', help='Room name')
    add_parser.add_argument('power', help='Rated power in watts')
    add_parser.add_argument('--hours', help='Average hours of use per day (default 8)')

    remove_parser = subparsers.add_parser('remove', help='Remove a device')
    remove_parser.add_argument('device_id', help='Device ID')

    toggle_parser = subparsers.add_parser('toggle', help='Switch a device on/off')
    toggle_parser.add_argument('device_id', help='Device ID')

    room_parser = subparsers.add_parser('room', help='Switch every device in a room')
    room_parser.add_argument('room', help='Room name')
    room_parser.add_argument('status', choices=['on', 'off'])

    favorite_parser = subparsers.add_parser('favorite', help='Toggle a favorite device')
    favorite_parser.add_argument('device_id', help='Device ID')

    protect_parser = subparsers.add_parser('protect', help='Toggle protection from automatic shutdown')
    protect_parser.add_argument('device_id', help='Device ID')

    automation_parser = subparsers.add_parser('automation', help='Arm or disarm automation')
    automation_parser.add_argument('state', choices=['on', 'off'])

    prepare_parser = subparsers.add_parser('prepare', help='Turn off non-essential devices now')
    prepare_parser.add_argument('--yes', action='store_true', help='Skip the confirmation prompt')

    area_parser = subparsers.add_parser('area', help='Set the loadshedding area (omit to clear)')
    area_parser.add_argument('area', nargs='?', default=None, help='Area name')

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return

    config_path = _resolve_config_path(args.config)
    if args.command == 'area':
        cfg = ConfigurationManager(str(config_path)).update_area(args.area)
        print(f"📍 Area set to {cfg.grid.area or 'not configured'}")
        return

    cfg = load_config(config_path)
    app = SheddingApp(cfg)
    sys.exit(asyncio.run(run_command(app, args)))

if __name__ == "__main__":
    main()
