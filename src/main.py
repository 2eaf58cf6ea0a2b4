import asyncio
import logging
import signal
from typing import Optional

from app_config import (
    AppConfig,
    AppConfigurationError,
    SecretConfig,
    load_app_config,
    load_secret_config,
    resolve_config_path,
)
from focus import AsyncioIntervalScheduler, DurationConfig, FocusEngine
from notify import (
    DesktopNotifier,
    PhaseNotificationSink,
    SoundDeviceAudioOutput,
)
from persistence import JsonFileSnapshotStore
from runtime import FocusRuntime, RuntimeBootstrap, RuntimeHooks
from server import ServerConfigurationError, UIServer, UIServerConfig
from session_gateway import (
    GatewayConfigurationError,
    HttpSessionGateway,
    SessionGatewayConfig,
)


def setup_logging(level: int = logging.INFO) -> logging.Logger:
    """Configure logging for the application."""
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    return logging.getLogger("focus_app")


def setup_signal_handlers(stop_event: asyncio.Event) -> None:
    """Set the stop event on SIGTERM and SIGINT."""
    loop = asyncio.get_running_loop()
    for signum in (signal.SIGTERM, signal.SIGINT):
        try:
            loop.add_signal_handler(signum, stop_event.set)
        except NotImplementedError:  # pragma: no cover - Windows event loops
            signal.signal(
                signum,
                lambda _signum, _frame: loop.call_soon_threadsafe(stop_event.set),
            )


def build_notifier(
    app_config: AppConfig,
    durations: DurationConfig,
) -> PhaseNotificationSink:
    settings = app_config.notifications
    return PhaseNotificationSink(
        audio_output=SoundDeviceAudioOutput(
            output_device_index=settings.output_device,
            logger=logging.getLogger("notify.output"),
        ),
        desktop_notifier=(
            DesktopNotifier(logger=logging.getLogger("notify.desktop"))
            if settings.desktop_enabled
            else None
        ),
        sound_enabled=durations.plays_sound,
        volume=settings.volume,
        logger=logging.getLogger("notify"),
    )


def build_durations(app_config: AppConfig) -> DurationConfig:
    settings = app_config.focus
    return DurationConfig(
        focus_minutes=settings.focus_minutes,
        short_break_minutes=settings.short_break_minutes,
        long_break_minutes=settings.long_break_minutes,
        sound_enabled=settings.sound_enabled,
    )


async def run_app(
    app_config: AppConfig,
    secret_config: SecretConfig,
    logger: logging.Logger,
) -> int:
    try:
        gateway_config = SessionGatewayConfig.from_settings(
            app_config.session_gateway,
            api_token=secret_config.api_token,
        )
    except GatewayConfigurationError as error:
        logger.error("Session gateway configuration error: %s", error)
        return 1
    if not gateway_config.api_token:
        logger.warning("FOCUS_API_TOKEN is not set; requests are sent unauthenticated.")

    gateway = HttpSessionGateway(gateway_config, logger=logging.getLogger("focus.gateway"))

    # Optional UI server for websocket state + commands
    ui_server: Optional[UIServer] = None
    try:
        ui_server_config = UIServerConfig.from_settings(app_config.ui_server)
        if ui_server_config.enabled:
            ui_server = UIServer(ui_server_config, logger=logging.getLogger("ui_server"))
        else:
            logger.info("UI server disabled via ui_server.enabled=false")
    except ServerConfigurationError as error:
        logger.error("UI server configuration error: %s", error)
        logger.warning("Continuing without UI server.")

    durations = build_durations(app_config)
    notifier = build_notifier(app_config, durations)
    engine = FocusEngine(
        gateway=gateway,
        store=JsonFileSnapshotStore(
            app_config.persistence.snapshot_file,
            logger=logging.getLogger("persistence"),
        ),
        notifier=notifier,
        scheduler=AsyncioIntervalScheduler(logger=logging.getLogger("focus.scheduler")),
        durations=durations,
        logger=logging.getLogger("focus"),
    )

    runtime = FocusRuntime(
        RuntimeBootstrap(
            logger=logger,
            engine=engine,
            ui_server=ui_server,
            hooks=RuntimeHooks(setup_signal_handlers=setup_signal_handlers),
            close_gateway=gateway.aclose,
            notifier=notifier,
        )
    )
    return await runtime.run()


def main() -> int:
    """Run the focus engine until interrupted."""
    logger = setup_logging(level=logging.INFO)

    try:
        config_path = resolve_config_path()
        app_config = load_app_config(str(config_path))
        secret_config = load_secret_config()
        logger.info("Loaded runtime config: %s", config_path)
    except AppConfigurationError as error:
        logger.error("App configuration error: %s", error)
        return 1

    try:
        return asyncio.run(run_app(app_config, secret_config, logger))
    except KeyboardInterrupt:
        logger.info("Shutdown requested by keyboard interrupt.")
        return 0


if __name__ == "__main__":
    raise SystemExit(main())
