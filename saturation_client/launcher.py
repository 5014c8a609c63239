from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path
from typing import Optional

from PyQt6.QtWidgets import QApplication

from saturation_client.effect_bridge import EFFECT_STATE_FILE, EffectStateFile
from saturation_client.logging_utils import configure_logging, debug_requested
from saturation_client.qt_host import QtDisplayTopology, SaturationIndicator, SettingsFileWatcher, qt_post
from saturation_client.settings_store import SETTINGS_FILE, SettingsStore
from saturation_client.sync_controller import SaturationSync

SETTINGS_ENV_VAR = "SATURATION_SETTINGS_FILE"
EFFECT_STATE_ENV_VAR = "SATURATION_EFFECT_STATE_FILE"
APP_DIR_NAME = "saturation-overlay"


def _config_home() -> Path:
    return Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config")) / APP_DIR_NAME


def _runtime_home() -> Path:
    runtime = os.environ.get("XDG_RUNTIME_DIR")
    if runtime:
        return Path(runtime) / APP_DIR_NAME
    return _config_home()


def resolve_settings_file(arg_path: Optional[str]) -> Path:
    if arg_path:
        return Path(arg_path).expanduser().resolve()
    env_override = os.getenv(SETTINGS_ENV_VAR)
    if env_override:
        return Path(env_override).expanduser().resolve()
    return _config_home() / SETTINGS_FILE


def resolve_effect_state_file(arg_path: Optional[str]) -> Path:
    if arg_path:
        return Path(arg_path).expanduser().resolve()
    env_override = os.getenv(EFFECT_STATE_ENV_VAR)
    if env_override:
        return Path(env_override).expanduser().resolve()
    return _runtime_home() / EFFECT_STATE_FILE


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Per-display saturation, hue and inversion control")
    parser.add_argument("--settings", help=f"Path to {SETTINGS_FILE}")
    parser.add_argument("--effect-state", help="Path of the effect state file read by the renderer")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logger = configure_logging(debug_requested(args.debug))

    settings_path = resolve_settings_file(args.settings)
    effect_path = resolve_effect_state_file(args.effect_state)
    logger.info("Starting saturation overlay (pid=%s)", os.getpid())
    logger.debug("Resolved settings file to %s; effect state file to %s", settings_path, effect_path)

    app = QApplication(sys.argv[:1])
    app.setQuitOnLastWindowClosed(False)

    store = SettingsStore(settings_path, post_fn=qt_post)
    watcher = SettingsFileWatcher(store)
    topology = QtDisplayTopology(app)
    effect = EffectStateFile(effect_path)
    sync = SaturationSync(
        store,
        topology,
        effect,
        indicator_factory=SaturationIndicator,
    )
    sync.activate()
    try:
        exit_code = app.exec()
    finally:
        sync.deactivate()
        topology.close()
        watcher.close()
    logger.info("Saturation overlay exiting with code %s", exit_code)
    return int(exit_code)
