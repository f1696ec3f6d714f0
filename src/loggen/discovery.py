import os
from pathlib import Path
from typing import List, Optional

from loggen.config import ConfigError


def discover_files(input_root, exclude=None) -> List[Path]:
    """
    Find every regular file under the input root.

    Args:
        input_root: Root of the sample tree
        exclude: Directory to skip, e.g. an output root nested in the input

    Returns:
        Sorted list of paths relative to input_root

    Raises:
        ConfigError: input_root is missing or not a directory
    """
    root = Path(input_root)
    if not root.exists():
        raise ConfigError(f"Input base directory not found: {root}")
    if not root.is_dir():
        raise ConfigError(f"Input base directory is not a directory: {root}")

    excluded: Optional[Path] = Path(exclude).resolve() if exclude else None
    found = []

    def on_error(error: OSError):
        print(f"[WARNING] Skipping unreadable directory: {error.filename} ({error.strerror})", flush=True)

    for dirpath, dirnames, filenames in os.walk(root, onerror=on_error):
        if excluded is not None:
            dirnames[:] = [d for d in dirnames if (Path(dirpath) / d).resolve() != excluded]

        for name in filenames:
            path = Path(dirpath) / name
            if path.is_file():
                found.append(path.relative_to(root))

    return sorted(found)
