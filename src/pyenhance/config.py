"""Configuration loader for pyenhance."""
import importlib.util
import logging
from pathlib import Path
from typing import Any, Dict

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILENAME = "pyenhance.config.py"

# Upper-case config names -> option names used by the CLI and EnhanceApp
CONFIG_KEYS = {
    "COMPONENTS_DIR": "components_dir",
    "PAGES_DIR": "pages_dir",
    "STATIC_DIR": "static_dir",
    "MAX_DEPTH": "max_depth",
    "PROPAGATE_STATE": "propagate_state",
    "HOST": "host",
    "PORT": "port",
    "DEBUG": "debug",
}

PATH_KEYS = {"components_dir", "pages_dir", "static_dir"}


def load_config(path: Path | str | None = None) -> Dict[str, Any]:
    """
    Load configuration from a python file.

    If path is provided, loads from there.
    Otherwise, looks for pyenhance.config.py in the current working directory.

    Returns the recognised upper-case variables of the config module, keyed
    by option name (COMPONENTS_DIR -> components_dir). Unknown names are
    ignored.
    """
    if path is None:
        path = Path.cwd() / DEFAULT_CONFIG_FILENAME
    else:
        path = Path(path)

    if not path.exists():
        return {}

    try:
        spec = importlib.util.spec_from_file_location("pyenhance_config", path)
        if spec is None or spec.loader is None:
            return {}

        module = importlib.util.module_from_spec(spec)
        spec.loader.exec_module(module)
    except Exception as e:
        logger.warning("Failed to load config from %s: %s", path, e)
        return {}

    config: Dict[str, Any] = {}
    for key, option in CONFIG_KEYS.items():
        if hasattr(module, key):
            value = getattr(module, key)
            # Path objects become strings so they can be used as CLI defaults
            config[option] = str(value) if option in PATH_KEYS else value
    return config
