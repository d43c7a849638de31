import os
from pathlib import Path


def get_root_path():
    project_root = Path(os.environ.get("PROJECT_ROOT", ".")).resolve()
    return project_root


def parse_key_value_pairs(pairs):
    """Turn ["web=1.2.0", "worker=1.2.1"] into {"web": "1.2.0", "worker": "1.2.1"}."""
    result = {}
    for pair in pairs or []:
        key, sep, value = pair.partition("=")
        if not sep or not key.strip() or not value.strip():
            raise ValueError(f"Expected NAME=VALUE, got '{pair}'")
        result[key.strip()] = value.strip()
    return result
