# -*- coding: utf-8 -*-
"""
晶格快照 I/O：JSON / HDF5 / 纯文本

快照内容：name, size, complete, spins (L×L, ±1)。
格式由文件后缀决定：
    - ``.json``（默认）：sort_keys 输出，同一状态两次写入字节一致
    - ``.h5`` / ``.hdf5``：attrs + int8 数据集，``track_times=False`` 去掉时间戳
    - ``.txt``：首三行 name / size / complete，随后每行一行自旋
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Union

import h5py
import numpy as np

__all__ = ["save_snapshot", "load_snapshot", "snapshot_format"]

_H5_SUFFIXES = (".h5", ".hdf5")
_TXT_SUFFIXES = (".txt", ".dat")


def snapshot_format(path: Union[str, Path]) -> str:
    suf = Path(path).suffix.lower()
    if suf in _H5_SUFFIXES:
        return "hdf5"
    if suf in _TXT_SUFFIXES:
        return "text"
    return "json"


def _check_spins(spins: Any, size: int) -> np.ndarray:
    arr = np.asarray(spins, dtype=np.int8)
    if arr.shape != (int(size), int(size)):
        raise ValueError(f"spins shape {arr.shape} does not match size {size}")
    return arr


def save_snapshot(path: Union[str, Path], name: str, size: int, complete: bool, spins: Any) -> Path:
    """写入快照并返回路径。父目录不存在时自动创建。"""
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    arr = _check_spins(spins, size)
    fmt = snapshot_format(p)

    if fmt == "hdf5":
        with h5py.File(p, "w") as f:
            f.attrs["name"] = str(name)
            f.attrs["size"] = int(size)
            f.attrs["complete"] = bool(complete)
            f.create_dataset("spins", data=arr, track_times=False)
    elif fmt == "text":
        lines = [str(name), str(int(size)), "1" if complete else "0"]
        lines.extend(" ".join(str(int(v)) for v in row) for row in arr)
        p.write_text("\n".join(lines) + "\n", encoding="utf-8")
    else:
        payload = {
            "name": str(name),
            "size": int(size),
            "complete": bool(complete),
            "spins": arr.tolist(),
        }
        with open(p, "w", encoding="utf-8") as f:
            json.dump(payload, f, sort_keys=True, separators=(",", ":"))
            f.write("\n")
    return p


def load_snapshot(path: Union[str, Path]) -> Dict[str, Any]:
    """读取快照，返回 dict(name, size, complete, spins: np.ndarray[int8])。"""
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Snapshot not found: {p}")
    fmt = snapshot_format(p)

    if fmt == "hdf5":
        with h5py.File(p, "r") as f:
            name = f.attrs["name"]
            if isinstance(name, bytes):
                name = name.decode("utf-8")
            out = {
                "name": str(name),
                "size": int(f.attrs["size"]),
                "complete": bool(f.attrs["complete"]),
                "spins": np.asarray(f["spins"][()], dtype=np.int8),
            }
    elif fmt == "text":
        lines = p.read_text(encoding="utf-8").splitlines()
        if len(lines) < 3:
            raise ValueError(f"Malformed text snapshot: {p}")
        size = int(lines[1])
        rows = [[int(v) for v in ln.split()] for ln in lines[3:3 + size]]
        out = {
            "name": lines[0],
            "size": size,
            "complete": lines[2].strip() == "1",
            "spins": np.asarray(rows, dtype=np.int8),
        }
    else:
        with open(p, "r", encoding="utf-8") as f:
            d = json.load(f)
        out = {
            "name": str(d["name"]),
            "size": int(d["size"]),
            "complete": bool(d["complete"]),
            "spins": np.asarray(d["spins"], dtype=np.int8),
        }

    _check_spins(out["spins"], out["size"])
    return out
