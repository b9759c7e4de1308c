import os
import copy
import shutil

import hjson
import click


CONFIG_DIR = os.environ.get("GLYCOLOC_CONFIG_DIR") or click.get_app_dir("glycoloc")

CONFIG_FILE_NAME = "glycoloc-cfg.hjson"
USER_CONFIG_PATH = os.path.join(CONFIG_DIR, CONFIG_FILE_NAME)

DEFAULT_CONFIG = {
    "version": 0.1,
    "localization": {
        "max_glycans_per_peptide": 3,
        "fragment_error_tolerance": 2e-5,
        "precursor_error_tolerance": 1e-5,
        "build_decoys": False,
        "o_glycan_motifs": ["S", "T"],
        "n_glycan_motifs": ["Nxs", "Nxt"],
        "glycan_search_type": "o_glycan",
        "oxonium_ion_filter": False,
        "site_probability_threshold": 0.75,
        "score_tie_tolerance": 0.0,
        "graph_tie_tolerance": 1e-8,
        "n_workers": 4,
    },
    "environment": {
        "log_file_name": "glycoloc-log",
        "log_file_mode": "a"
    },
}

_CURRENT_CONFIG = None


def populate_config_dir():
    os.makedirs(CONFIG_DIR)
    with open(USER_CONFIG_PATH, 'w') as fh:
        hjson.dump(DEFAULT_CONFIG, fh)


def delete_config_dir():
    shutil.rmtree(CONFIG_DIR, ignore_errors=True)


def recursive_merge(a, b):
    for k, v in b.items():
        if isinstance(b[k], dict) and isinstance(a.get(k), dict):
            recursive_merge(a[k], v)
        else:
            a[k] = v


def load_configuration_from_path(path):
    with open(path) as fh:
        cfg = hjson.load(fh)
    config = copy.deepcopy(DEFAULT_CONFIG)
    recursive_merge(config, cfg)
    return config


def get_configuration():
    """Load the user's configuration, creating the configuration directory
    with the default settings on first use. A file named :const:`CONFIG_FILE_NAME`
    in the current working directory overrides the user's settings.

    Returns
    -------
    dict
    """
    global _CURRENT_CONFIG
    if not os.path.exists(USER_CONFIG_PATH):
        if not os.path.exists(CONFIG_DIR):
            populate_config_dir()
        else:
            with open(USER_CONFIG_PATH, 'w') as fh:
                hjson.dump(DEFAULT_CONFIG, fh)
    _CURRENT_CONFIG = load_configuration_from_path(USER_CONFIG_PATH)
    local_config_path = os.path.join(os.getcwd(), CONFIG_FILE_NAME)
    if os.path.exists(local_config_path):
        with open(local_config_path) as fh:
            local_config = hjson.load(fh)
        recursive_merge(_CURRENT_CONFIG, local_config)
    return _CURRENT_CONFIG


def set_configuration(obj):
    global _CURRENT_CONFIG
    _CURRENT_CONFIG = None
    if not os.path.exists(CONFIG_DIR):
        os.makedirs(CONFIG_DIR)
    with open(USER_CONFIG_PATH, 'w') as fh:
        hjson.dump(obj, fh)
    return get_configuration()


def current_configuration():
    if _CURRENT_CONFIG is None:
        try:
            return get_configuration()
        except (OSError, hjson.HjsonDecodeError):
            return copy.deepcopy(DEFAULT_CONFIG)
    return _CURRENT_CONFIG


DEBUG_MODE = bool(os.environ.get("GLYCOLOCDEBUG"))
