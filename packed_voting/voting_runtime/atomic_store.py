# packed_voting/voting_runtime/atomic_store.py
from __future__ import annotations

"""
Snapshot persistence for registry state.

- Atomic write (temp file + os.replace + directory fsync)
- Rolling backups (.bak1, .bak2, ...) rotated before each save
- Load fallback: primary -> bak1 -> bak2 -> ...
- A .journal marker exists only while a save is in flight, so a leftover
  journal means the last save did not finish
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional, Union

log = logging.getLogger(__name__)

JsonDict = Dict[str, Any]
PathLike = Union[str, Path]


def _fsync_dir(dir_path: Path) -> None:
    try:
        fd = os.open(str(dir_path), os.O_DIRECTORY)
    except (OSError, AttributeError):
        # O_DIRECTORY is not available everywhere (e.g. Windows).
        return
    try:
        os.fsync(fd)
    finally:
        os.close(fd)


def _json_dumps(obj: JsonDict) -> bytes:
    return json.dumps(obj, ensure_ascii=False, sort_keys=True, separators=(",", ":")).encode("utf-8")


def atomic_write_bytes(path: Path, data: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_name = tempfile.mkstemp(prefix=path.name + ".", suffix=".tmp", dir=str(path.parent))
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())

        os.replace(str(tmp_path), str(path))
        _fsync_dir(path.parent)
    finally:
        if tmp_path.exists():
            tmp_path.unlink()


def read_json(path: Path) -> Optional[JsonDict]:
    if not path.exists():
        return None
    try:
        obj = json.loads(path.read_bytes().decode("utf-8"))
    except (OSError, ValueError):
        log.warning("unreadable snapshot %s", path, exc_info=True)
        return None
    return obj if isinstance(obj, dict) else None


def _rotate_backups(path: Path, keep: int) -> None:
    if keep <= 0:
        return

    # .bak(N-1) -> .bakN, oldest falls off the end
    for i in range(keep, 1, -1):
        src = path.with_suffix(path.suffix + f".bak{i-1}")
        dst = path.with_suffix(path.suffix + f".bak{i}")
        if src.exists():
            os.replace(str(src), str(dst))

    if path.exists():
        os.replace(str(path), str(path.with_suffix(path.suffix + ".bak1")))


class SnapshotStore:
    def __init__(self, data_dir: PathLike = ".", filename: str = "voting_state.json", keep_backups: int = 2) -> None:
        self.data_dir = Path(data_dir)
        self.filename = filename
        self.keep_backups = int(keep_backups)

    @property
    def path(self) -> Path:
        return self.data_dir / self.filename

    @property
    def journal_path(self) -> Path:
        return self.path.with_suffix(self.path.suffix + ".journal")

    def exists(self) -> bool:
        return self.path.exists()

    def interrupted(self) -> bool:
        return self.journal_path.exists()

    def candidates(self) -> list:
        paths = [self.path]
        for i in range(1, max(1, self.keep_backups) + 1):
            paths.append(self.path.with_suffix(self.path.suffix + f".bak{i}"))
        return paths

    def load(self) -> Optional[JsonDict]:
        if self.interrupted():
            log.warning("snapshot journal present at %s; last save may be incomplete", self.journal_path)
        for p in self.candidates():
            obj = read_json(p)
            if obj is not None:
                if p != self.path:
                    log.warning("loaded registry snapshot from backup %s", p)
                return obj
        return None

    def save(self, state: JsonDict) -> None:
        data = _json_dumps(state)

        atomic_write_bytes(self.journal_path, b"1")
        _rotate_backups(self.path, keep=self.keep_backups)
        atomic_write_bytes(self.path, data)
        self.journal_path.unlink()
