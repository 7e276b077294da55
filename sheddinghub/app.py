import asyncio, logging, sys
from datetime import datetime
from typing import Any, Callable, Optional

from sheddinghub.config import HubConfig
from sheddinghub.device_control import DeviceController
from sheddinghub.device_repository import DeviceRepository
from sheddinghub.engine.automation import AutomationRuleEngine
from sheddinghub.engine.categorizer import categorize_devices
from sheddinghub.engine.notifications import NotificationScheduler
from sheddinghub.engine.outage import OutageScheduleEstimator
from sheddinghub.engine.preparation import ConfirmCallback, PreparationPlanner, keep_on_ids_for
from sheddinghub.engine.usage import UsageCostEstimator
from sheddinghub.errors import NotFoundError, TransientNetworkError
from sheddinghub.grid_status import GridStatusClient
from sheddinghub.models import (
    AutomationRules, AutomationSettings, Device, DeviceStatus, EngineState, NotificationPrefs,
    OutageState, PreparationOutcome, PreparationResult, ToggleResult,
)
from sheddinghub.notifier import LogNotifier, Notifier
from sheddinghub.preference_store import PreferenceStore
from sheddinghub.timezone_utils import now_configured
from sheddinghub.validation import validate_device_input


log = logging.getLogger(__name__)

NOTIFICATION_TITLE = "Loadshedding warning"
SETTINGS_NOT_SAVED = "Could not save your settings. Please try again."


class SheddingApp:
    """
    Owns the engine state for one user session.

    Every input change (grid refresh, device switch, settings edit) produces
    a new EngineState whose derived parts (categories, stats, actions) are
    recomputed from scratch. A background task refreshes the outage estimate
    on a fixed interval until ``shutdown`` cancels it.
    """

    def __init__(self, cfg: HubConfig,
                 repository: Optional[DeviceRepository] = None,
                 preferences: Optional[PreferenceStore] = None,
                 grid_client: Optional[GridStatusClient] = None,
                 estimator: Optional[OutageScheduleEstimator] = None,
                 notifier: Optional[Notifier] = None,
                 clock: Callable[[], datetime] = now_configured):
        self.cfg = cfg
        self.owner_id = cfg.owner_id
        self.clock = clock
        db_path = cfg.storage.db_path
        self.repository = repository or DeviceRepository(db_path)
        self.preferences = preferences or PreferenceStore(cfg.owner_id, db_path)
        self.grid_client = grid_client or GridStatusClient(cfg.grid.status_url, cfg.grid.timeout_secs)
        self.estimator = estimator or OutageScheduleEstimator(seed=cfg.grid.demo_seed)
        self.notifier = notifier or LogNotifier()

        threshold = cfg.categorization.high_usage_threshold_w
        self.usage = UsageCostEstimator(cfg.tariff.rate_per_kwh, threshold, cfg.tariff.days_per_month)
        self.automation = AutomationRuleEngine(lookahead_minutes=cfg.scheduler.automation_lookahead_minutes)
        self.notifications = NotificationScheduler()
        self.planner = PreparationPlanner(self.repository, self.owner_id, threshold)
        self.controller = DeviceController(self.repository, self.owner_id, on_snapshot=self._on_snapshot)

        self.state = EngineState()
        self.last_notice: Optional[str] = None  # Dismissible notice for the UI, e.g. a failed write
        self._refresh_task: Optional[asyncio.Task] = None

    def _configure_logging(self):
        """Configure logging based on config settings."""
        log_config = self.cfg.logging
        root_logger = logging.getLogger()
        log_level = getattr(logging, log_config.level.upper())
        root_logger.setLevel(log_level)

        if not root_logger.handlers:
            console_handler = logging.StreamHandler(sys.stdout)
            console_handler.setLevel(log_level)
            console_handler.setFormatter(logging.Formatter(log_config.format))
            root_logger.addHandler(console_handler)

        logging.getLogger("sheddinghub").setLevel(log_level)
        # aiohttp access/connection chatter is not actionable here
        logging.getLogger("aiohttp").setLevel(logging.WARNING)

    # ------------------------------------------------------------------
    # state derivation
    # ------------------------------------------------------------------

    def _derive(self, state: EngineState, now: Optional[datetime] = None) -> EngineState:
        """Recompute categories, stats and actions for a snapshot."""
        now = now or self.clock()
        categories = categorize_devices(
            state.devices,
            self.cfg.categorization.high_usage_threshold_w,
            self.cfg.categorization.essential_types,
        )
        self.automation.set_armed(state.settings.enabled)
        actions = self.automation.evaluate(categories, state.outage.next_slot, state.settings.rules, now)
        return state.model_copy(update={
            "categories": categories,
            "stats": self.usage.estimate(state.devices),
            "actions": actions,
        })

    def _replace(self, **changes: Any) -> EngineState:
        self.state = self._derive(self.state.model_copy(update=changes))
        return self.state

    def _on_snapshot(self, devices) -> None:
        self._replace(devices=list(devices))

    # ------------------------------------------------------------------
    # lifecycle
    # ------------------------------------------------------------------

    async def init(self):
        self._configure_logging()
        log.info(f"Initializing loadshedding engine for owner {self.owner_id}")
        await self.load_preferences()
        await self.refresh_devices()
        await self.refresh()

    async def load_preferences(self) -> EngineState:
        try:
            settings = await asyncio.to_thread(self.preferences.load_automation)
            prefs = await asyncio.to_thread(self.preferences.load_notification_prefs)
        except TransientNetworkError as e:
            log.error(f"Error loading preferences: {e}")
            self.last_notice = "Could not load your settings. Using defaults."
            return self.state
        return self._replace(settings=settings, notification_prefs=prefs)

    async def refresh_devices(self) -> EngineState:
        try:
            devices = await asyncio.to_thread(self.repository.list, self.owner_id)
        except TransientNetworkError as e:
            log.error(f"Error fetching appliances: {e}")
            self.last_notice = "Could not load your devices. Pull to retry."
            return self.state
        return self._replace(devices=devices)

    async def _fetch_outage(self, now: datetime) -> OutageState:
        try:
            stage = await self.grid_client.fetch_stage()
        except TransientNetworkError as e:
            log.warning(f"Grid status unavailable, using demo data: {e}")
            return self.estimator.fallback_state(now)
        return self.estimator.build_state(stage, now, self.cfg.grid.area)

    async def refresh(self) -> EngineState:
        """One refresh cycle: outage estimate, derived state, notification check."""
        now = self.clock()
        outage = await self._fetch_outage(now)
        log.info(f"Loadshedding data updated: stage {outage.stage}, area {outage.area}"
                 + (" (demo)" if outage.is_demo else ""))
        self.state = self._derive(self.state.model_copy(update={"outage": outage}), now)
        self._check_notification(now)
        return self.state

    def _check_notification(self, now: datetime) -> Optional[str]:
        demo = self.state.outage.is_demo
        self.notifications.prune(now, demo=demo)
        if not self.state.notification_prefs.enabled:
            return None
        message = self.notifications.should_notify(self.state.outage.next_slot,
                                                   self.state.settings.rules, now, demo=demo)
        if message is None:
            return None
        try:
            self.notifier.notify(NOTIFICATION_TITLE, message)
        except Exception as e:
            log.error(f"Failed to deliver outage notification: {e}", exc_info=True)
        return message

    async def _refresh_loop(self):
        interval = self.cfg.scheduler.refresh_interval_secs
        log.info(f"Starting outage refresh loop every {interval:.0f}s")
        while True:
            await asyncio.sleep(interval)
            try:
                await self.refresh()
            except Exception as e:
                log.error(f"Error in outage refresh loop: {e}", exc_info=True)

    def start(self) -> asyncio.Task:
        if self._refresh_task is None or self._refresh_task.done():
            self._refresh_task = asyncio.create_task(self._refresh_loop())
        return self._refresh_task

    async def run(self):
        await self.init()
        task = self.start()
        try:
            await task
        except asyncio.CancelledError:
            log.info("Refresh loop stopped")

    async def shutdown(self):
        """Cancel the refresh task; safe to call more than once."""
        task, self._refresh_task = self._refresh_task, None
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        log.info("Loadshedding engine shut down")

    # ------------------------------------------------------------------
    # settings
    # ------------------------------------------------------------------

    async def _save_settings(self, settings: AutomationSettings) -> EngineState:
        try:
            await asyncio.to_thread(self.preferences.save_automation, settings)
        except TransientNetworkError as e:
            log.error(f"Error saving automation settings: {e}")
            self.last_notice = SETTINGS_NOT_SAVED
            return self.state
        return self._replace(settings=settings)

    async def set_automation_enabled(self, enabled: bool) -> EngineState:
        settings = self.state.settings.model_copy(update={"enabled": enabled})
        return await self._save_settings(settings)

    async def update_rule(self, key: str, value: Any) -> EngineState:
        if key not in AutomationRules.model_fields:
            raise KeyError(f"Unknown automation rule: {key}")
        rules = AutomationRules.model_validate(
            {**self.state.settings.rules.model_dump(), key: value}
        )
        return await self._save_settings(self.state.settings.model_copy(update={"rules": rules}))

    async def toggle_protected(self, device_id: str) -> EngineState:
        protected = set(self.state.settings.rules.protected_device_ids)
        protected ^= {device_id}
        return await self.update_rule("protected_device_ids", protected)

    async def set_notifications_enabled(self, enabled: bool) -> EngineState:
        prefs = NotificationPrefs(enabled=enabled)
        try:
            await asyncio.to_thread(self.preferences.save_notification_prefs, prefs)
        except TransientNetworkError as e:
            log.error(f"Error saving notification preferences: {e}")
            self.last_notice = SETTINGS_NOT_SAVED
            return self.state
        return self._replace(notification_prefs=prefs)

    # ------------------------------------------------------------------
    # devices
    # ------------------------------------------------------------------

    def _after_toggle(self, result: ToggleResult) -> ToggleResult:
        if not result.success:
            self.last_notice = "Failed to update device status. Please try again."
        return result

    async def toggle_device(self, device_id: str) -> ToggleResult:
        return self._after_toggle(await self.controller.toggle(self.state.devices, device_id))

    async def set_room_status(self, room: str, status: DeviceStatus) -> ToggleResult:
        return self._after_toggle(await self.controller.set_room_status(self.state.devices, room, status))

    async def add_device(self, name: Any, type: Any, room: Any, rated_power_w: Any,
                         average_hours_per_day: Any = None) -> Device:
        """
        Validate and store a new device.

        Raises DeviceValidationError on bad input and TransientNetworkError
        when the write fails.
        """
        fields = validate_device_input(name, type, room, rated_power_w, average_hours_per_day)
        device = Device(id="", owner_id=self.owner_id, status=DeviceStatus.OFF, **fields)
        stored = await asyncio.to_thread(self.repository.insert, device)
        self._replace(devices=[stored, *self.state.devices])
        return stored

    async def delete_device(self, device_id: str) -> bool:
        """Delete a device and its favorite flag. Returns False if the write failed."""
        try:
            await asyncio.to_thread(self.repository.delete, self.owner_id, device_id)
        except NotFoundError:
            log.debug(f"Device {device_id} already gone")
        except TransientNetworkError as e:
            log.error(f"Error deleting device {device_id}: {e}")
            self.last_notice = "Failed to delete device. Please try again."
            return False
        try:
            await asyncio.to_thread(self.preferences.remove_favorite, device_id)
        except TransientNetworkError as e:
            log.warning(f"Could not clear favorite for deleted device {device_id}: {e}")
        self._replace(devices=[d for d in self.state.devices if d.id != device_id])
        return True

    async def prepare_for_outage(self, confirm: Optional[ConfirmCallback] = None) -> PreparationResult:
        keep_on = keep_on_ids_for(self.state.categories, self.state.settings.rules)
        result = await self.planner.prepare(self.state.devices, keep_on, confirm)
        if result.outcome == PreparationOutcome.COMPLETED:
            off_ids = {d.id for d in result.turned_off}
            self._replace(devices=[
                d.model_copy(update={"status": DeviceStatus.OFF}) if d.id in off_ids else d
                for d in self.state.devices
            ])
        elif result.outcome == PreparationOutcome.FAILED:
            self.last_notice = result.message
        return result

    def savings_suggestions(self):
        return self.usage.savings_suggestions(self.state.devices)
