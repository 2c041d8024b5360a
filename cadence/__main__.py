"""Allow running Cadence as a module: python -m cadence."""

import argparse
import logging
import sys

from PyQt6.QtWidgets import QApplication, QSystemTrayIcon

from .app import APP_NAME, CadenceTray, make_tray_icon
from .audio.cues import CueManager
from .database.db import init_db
from .database.store import SequenceStore
from .logging_setup import configure_logging
from .services.keepalive import keepalive_for_platform
from .services.notifications import QtScheduledNotifier
from .settings import load_settings, save_settings
from .timer.engine import Phase, SequencePlaybackEngine

logger = logging.getLogger("cadence")


def _parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="cadence", description=__doc__)
    parser.add_argument("--sequence", help="start the named sequence right away")
    parser.add_argument(
        "--last", action="store_true", help="start the sequence played last time",
    )
    parser.add_argument("--verbose", action="store_true", help="debug logging")
    parser.add_argument("--log-json", action="store_true", help="JSON log lines")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    args = _parse_args(sys.argv[1:] if argv is None else argv)
    settings = load_settings()
    configure_logging(
        verbose=args.verbose or settings.log_verbose,
        log_json=args.log_json or settings.log_json,
    )

    init_db()
    store = SequenceStore()
    logger.info("Cadence ready with %d sequence(s)", store.count())

    app = QApplication(sys.argv)
    app.setApplicationName(APP_NAME)
    app.setOrganizationName(APP_NAME)
    app.setQuitOnLastWindowClosed(False)

    tray_icon = QSystemTrayIcon(make_tray_icon(Phase.IDLE))
    notifier = QtScheduledNotifier(
        deliver=tray_icon.showMessage,
        enabled=settings.notifications_enabled and not settings.do_not_disturb,
    )
    keepalive = keepalive_for_platform(settings.keep_awake)
    engine = SequencePlaybackEngine(
        notifier, keepalive, tick_interval_ms=settings.tick_interval_ms,
    )

    cues = CueManager()
    cues.set_volume(settings.sound_volume)
    cues.set_enabled(settings.sound_enabled)

    tray = CadenceTray(
        engine, store, settings=settings, cues=cues, tray_icon=tray_icon,
    )
    tray.show()

    if args.sequence:
        sequence = store.find_by_name(args.sequence)
        if sequence is None:
            logger.warning("No sequence named %r", args.sequence)
        else:
            tray.start_sequence(sequence)
    elif args.last:
        sequence = tray.last_sequence()
        if sequence is None:
            logger.warning("No previously played sequence to start")
        else:
            tray.start_sequence(sequence)

    app.aboutToQuit.connect(engine.stop)
    app.aboutToQuit.connect(lambda: save_settings(settings))
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
