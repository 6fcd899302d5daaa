import os
import sys
import yaml
import logging

APP_NAME = "desktop-thumbnailer"

DEFAULT_THEME = "hicolor"
DEFAULT_SIZE = 256
DEFAULT_FALLBACK_THEMES = ["Adwaita", "Papirus"]
DEFAULT_FALLBACK_ICON = "application-x-generic"
DEFAULT_FALLBACK_ICON_THEME = "Adwaita"
DEFAULT_THEME_COMMAND = ["gsettings", "get", "org.gnome.desktop.interface", "icon-theme"]

VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

STDERR_LOG_FORMAT = "%(levelname)s: %(message)s"
FILE_LOG_FORMAT = "%(asctime)s %(levelname)s %(module)s:%(lineno)d %(message)s"


def get_config_path():
    """Get the XDG configuration file path"""
    xdg_config_home = os.environ.get("XDG_CONFIG_HOME", os.path.expanduser("~/.config"))
    return os.path.join(xdg_config_home, APP_NAME, "config.yml")


def get_default_log_path():
    xdg_state_home = os.environ.get("XDG_STATE_HOME", os.path.expanduser("~/.local/state"))
    return os.path.join(xdg_state_home, APP_NAME, "logs", f"{APP_NAME}.log")


def get_default_config():
    return {
        "log_path": get_default_log_path(),
        "log_level": "INFO",
        "default_theme": DEFAULT_THEME,
        "fallback_themes": list(DEFAULT_FALLBACK_THEMES),
        "fallback_icon": DEFAULT_FALLBACK_ICON,
        "fallback_icon_theme": DEFAULT_FALLBACK_ICON_THEME,
        "default_size": DEFAULT_SIZE,
        "theme_command": list(DEFAULT_THEME_COMMAND),
    }


def ensure_dir_exists(file_path):
    """Create the parent directory of file_path. False when it has none or it cannot be made."""
    dir_name = os.path.dirname(file_path or "")
    if not dir_name:
        return False
    try:
        os.makedirs(dir_name, exist_ok=True)
    except OSError as e:
        # Called before logging is configured
        print(f"Warning: cannot create {dir_name}: {e}", file=sys.stderr)
        return False
    return True


def _validate_config(final_config, default_config_data):
    size = final_config.get("default_size")
    if isinstance(size, bool) or not isinstance(size, int) or size <= 0:
        print(f"Warning (load_config): Invalid default_size '{size}'. "
              f"Using default: {DEFAULT_SIZE}", file=sys.stderr)
        final_config["default_size"] = DEFAULT_SIZE

    themes = final_config.get("fallback_themes")
    if not isinstance(themes, list) or not all(isinstance(t, str) and t for t in themes):
        print(f"Warning (load_config): fallback_themes should be a list of theme names, got {themes!r}. "
              f"Using default: {DEFAULT_FALLBACK_THEMES}", file=sys.stderr)
        final_config["fallback_themes"] = list(DEFAULT_FALLBACK_THEMES)

    command = final_config.get("theme_command")
    if not isinstance(command, list) or not command:
        print(f"Warning (load_config): theme_command should be a non-empty list, got {command!r}", file=sys.stderr)
        final_config["theme_command"] = list(DEFAULT_THEME_COMMAND)

    level = str(final_config.get("log_level", "")).upper()
    if level not in VALID_LOG_LEVELS:
        print(f"Warning (load_config): Invalid log_level '{final_config.get('log_level')}'. "
              f"Valid options: {VALID_LOG_LEVELS}. Using default: 'INFO'", file=sys.stderr)
        final_config["log_level"] = "INFO"

    # String settings must never be empty; an empty theme name would match nothing
    for key in ("default_theme", "fallback_icon", "fallback_icon_theme"):
        value = final_config.get(key)
        if not isinstance(value, str) or not value.strip():
            final_config[key] = default_config_data[key]


def load_config(config_path_override=None):
    default_config_data = get_default_config()

    paths_to_check = []
    if config_path_override:
        paths_to_check.append(os.path.expanduser(config_path_override))
    paths_to_check.append(get_config_path())

    loaded_user_config = None
    for path_to_try in paths_to_check:
        if path_to_try and os.path.exists(path_to_try):
            try:
                with open(path_to_try, "r", encoding="utf-8") as f:
                    content = f.read()
                    if not content.strip():  # Handle truly empty file
                        loaded_user_config = {}
                    else:
                        loaded_user_config = yaml.safe_load(content)
                        if loaded_user_config is None:  # Only comments
                            loaded_user_config = {}
                if not isinstance(loaded_user_config, dict):
                    print(f"Warning (load_config): Config at {path_to_try} is not a mapping, ignoring it", file=sys.stderr)
                    loaded_user_config = None
                    continue
                # Use print here as logging is not set up yet
                print(f"INFO (load_config): Loaded configuration from {path_to_try}", file=sys.stderr)
                break
            except (OSError, yaml.YAMLError) as e:
                print(f"Warning (load_config): Could not load/parse config from {path_to_try}: {e}", file=sys.stderr)
                loaded_user_config = None

    final_config = default_config_data.copy()
    if loaded_user_config is not None:
        final_config.update(loaded_user_config)  # User settings override defaults

    if final_config.get("log_path"):
        final_config["log_path"] = os.path.expanduser(str(final_config["log_path"]))

    _validate_config(final_config, default_config_data)
    return final_config


def setup_logging(log_path, log_level):
    """Send the root logger to stderr and, when log_path is usable, to a per-run log file."""
    level = str(log_level).upper()
    if level not in VALID_LOG_LEVELS:
        level = "INFO"

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    # stdout stays clean for the caller
    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setFormatter(logging.Formatter(STDERR_LOG_FORMAT))
    root.addHandler(stream_handler)

    if not log_path or not ensure_dir_exists(log_path):
        return

    try:
        # Truncated on every run; one run renders one thumbnail
        file_handler = logging.FileHandler(log_path, mode="w", encoding="utf-8")
    except OSError as e:
        logging.warning(f"No log file at {log_path}: {e}")
        return
    file_handler.setFormatter(logging.Formatter(FILE_LOG_FORMAT))
    root.addHandler(file_handler)
