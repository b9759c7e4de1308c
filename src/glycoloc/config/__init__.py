from .config_file import (
    get_configuration, set_configuration, current_configuration,
    load_configuration_from_path, recursive_merge,
    DEFAULT_CONFIG, CONFIG_DIR, USER_CONFIG_PATH, DEBUG_MODE)

__all__ = [
    "get_configuration", "set_configuration", "current_configuration",
    "load_configuration_from_path", "recursive_merge",
    "DEFAULT_CONFIG", "CONFIG_DIR", "USER_CONFIG_PATH", "DEBUG_MODE",
]
