from constants import *
import copy
import yaml
import os

import logging

# Retrieve main logger
logger = logging.getLogger("main")


# Cache variable
_cached_settings = None


def _merge_defaults(settings):
    # Deep merge with defaults so new sections and keys are always present
    merged_settings = copy.deepcopy(DEFAULT_SETTINGS)
    for section, values in (settings or {}).items():
        if isinstance(values, dict) and section in merged_settings and isinstance(merged_settings[section], dict):
            merged_settings[section].update(values)
        else:
            merged_settings[section] = values
    return merged_settings


def _apply_env_overrides(settings):
    api_key = os.environ.get("TMDB_API_KEY")
    if api_key:
        settings["tmdb"]["api_key"] = api_key
    access_token = os.environ.get("TMDB_READ_ACCESS_TOKEN")
    if access_token:
        settings["tmdb"]["access_token"] = access_token
    return settings


def load_settings(force=False):
    global _cached_settings

    if _cached_settings and not force:
        return _cached_settings

    if os.path.exists(CONFIG_FILE):
        logger.debug(f"Reading configuration file: {CONFIG_FILE}")
        with open(CONFIG_FILE, "r") as yaml_file:
            settings = _merge_defaults(yaml.safe_load(yaml_file) or {})
    else:
        settings = copy.deepcopy(DEFAULT_SETTINGS)
        try:
            os.makedirs(CONFIG_DIR, exist_ok=True)
            with open(CONFIG_FILE, "w") as yaml_file:
                yaml.dump(settings, yaml_file)
        except OSError as e:
            logger.warning(f"Unable to write default configuration file {CONFIG_FILE}: {e}")

    _cached_settings = _apply_env_overrides(settings)
    return _cached_settings

