from __future__ import annotations

"""
Configuration Domain Management.

Handles persistent storage of assembler preferences using JSON in the
user data directory. Supports default fallback and forward-compatible
merging of new keys into older files.
"""

import json
import logging
import os
from typing import Any, Dict

from urdf_assembler.domain.constants import (
    ASSET_API_PREFIX,
    CURRENT_CONFIG_VERSION,
    DEFAULT_STATIC_BASE,
    DESCRIPTION_EXTENSIONS,
    MANIFEST_FILENAME,
    MESH_EXTENSIONS,
    SAMPLES_API_PATH,
)
from urdf_assembler.infra.fs import get_user_data_dir

logger = logging.getLogger(__name__)

# -----------------------------------------------------------------------------
# Constants & Defaults
# -----------------------------------------------------------------------------
CONFIG_FILE = os.path.join(get_user_data_dir(), "config.json")


# -----------------------------------------------------------------------------
# Configuration Models (Dict-based)
# -----------------------------------------------------------------------------
def get_default_config() -> Dict[str, Any]:
    """
    Generate the default runtime configuration.
    This dictionary drives the behavior of the assembly pipeline.

    Returns:
        Dict[str, Any]: Default configuration values.
    """
    return {
        # Asset addressing
        "static_mode": True,
        "static_base_url": DEFAULT_STATIC_BASE,
        "asset_api_prefix": ASSET_API_PREFIX,

        # Sample hosting
        "samples_base_url": "",
        "samples_api_path": SAMPLES_API_PATH,
        "manifest_filename": MANIFEST_FILENAME,

        # Resolution heuristics
        "urdf_sibling_heuristic": True,

        # Mesh loading
        "probe_remote_assets": True,
        "load_collision": False,
        "mesh_extensions": list(MESH_EXTENSIONS),

        # Discovery
        "description_extensions": list(DESCRIPTION_EXTENSIONS),
        "max_workers": 8,

        # Transport
        "request_timeout": 10,
    }




def get_default_app_state() -> Dict[str, Any]:
    """
    Layout of config.json: a schema version, process-wide settings
    (logging) and the pipeline configuration of the last session.
    """
    return {
        "version": CURRENT_CONFIG_VERSION,
        "app_settings": {
            "log_level": "INFO",
            "log_to_file": False,
        },
        "last_session": get_default_config(),
    }


# -----------------------------------------------------------------------------
# Persistence Logic
# -----------------------------------------------------------------------------
def load_app_state() -> Dict[str, Any]:
    """
    Read config.json, overlaying its sections on the defaults.

    Keys missing from an older file keep their default values. A missing,
    unreadable or malformed file yields the default state.

    Returns:
        Dict[str, Any]: The complete application state.
    """
    state = get_default_app_state()

    if not os.path.exists(CONFIG_FILE):
        logger.debug(f"No config file at {CONFIG_FILE}; using defaults.")
        return state

    try:
        with open(CONFIG_FILE, "r", encoding="utf-8") as f:
            stored = json.load(f)
    except (OSError, ValueError) as e:
        logger.error(f"Config file {CONFIG_FILE} is unreadable ({e}); using defaults.")
        return state

    if not isinstance(stored, dict):
        logger.warning(f"Config file {CONFIG_FILE} does not hold an object; using defaults.")
        return state

    for section in ("app_settings", "last_session"):
        if isinstance(stored.get(section), dict):
            state[section].update(stored[section])

    if stored.get("version") != CURRENT_CONFIG_VERSION:
        logger.info(f"Upgrading config file from version {stored.get('version')} to {CURRENT_CONFIG_VERSION}")
    return state


def save_app_state(state: Dict[str, Any]) -> None:
    """Write the application state to config.json; failures are logged, not raised."""
    state["version"] = CURRENT_CONFIG_VERSION
    try:
        os.makedirs(os.path.dirname(CONFIG_FILE), exist_ok=True)
        with open(CONFIG_FILE, "w", encoding="utf-8") as f:
            json.dump(state, f, ensure_ascii=False, indent=4)
    except OSError as e:
        logger.error(f"Could not write {CONFIG_FILE}: {e}")
        return
    logger.debug(f"Config written to {CONFIG_FILE}")


# -----------------------------------------------------------------------------
# Facade API
# -----------------------------------------------------------------------------
def load_config() -> Dict[str, Any]:
    """Pipeline configuration of the last session, completed with defaults."""
    return dict(load_app_state()["last_session"])


def save_config(config: Dict[str, Any]) -> None:
    """Store config as the 'last_session' section, keeping the app settings."""
    state = load_app_state()
    state["last_session"] = dict(config)
    save_app_state(state)
