"""Schedule file I/O: atomic text writes and YAML loading.

Exports may be picked up by the device transport while the editor is
still writing, so every export goes through :func:`atomic_write_text`:
the payload lands in a uniquely named sibling file that is fsynced and
then renamed over the target.  Readers see either the previous schedule
or the new one, never a prefix.

Usage:
    from tubedrop.utils import fs
    fs.atomic_write_text(out_dir / "drop_schedule.json", payload)
    raw = fs.load_yaml("tube.yaml")
"""

import os
import tempfile
from pathlib import Path
from typing import Any, Union

import yaml

PathLike = Union[str, Path]


def ensure_dir(p: PathLike) -> Path:
    """Create *p* (and parents) if missing; return it as a Path."""
    p = Path(p)
    p.mkdir(parents=True, exist_ok=True)
    return p


def atomic_write_text(path: PathLike, text: str, encoding: str = "utf-8") -> None:
    """Replace *path* with *text* in one rename.

    Parameters
    ----------
    path : str | Path
        Target file; parent directories are created.
    text : str
        Full file content.
    encoding : str
        Text encoding, default ``"utf-8"``.

    Raises
    ------
    OSError
        If the temporary file cannot be written or renamed.  The target
        is left untouched and the temporary file is removed.
    """
    path = Path(path)
    directory = ensure_dir(path.parent)

    fd, tmp_name = tempfile.mkstemp(
        prefix=f".{path.name}.", suffix=".tmp", dir=directory,
    )
    try:
        with os.fdopen(fd, "w", encoding=encoding, newline="") as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def load_yaml(path: PathLike) -> Any:
    """Parse a YAML document with ``yaml.safe_load``.

    Returns ``None`` for an empty file; callers decide whether that is an
    error.

    Raises
    ------
    FileNotFoundError
        If *path* does not exist.
    yaml.YAMLError
        If the document does not parse.
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"YAML file not found: {path}")
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f)
