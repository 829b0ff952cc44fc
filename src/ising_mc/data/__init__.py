# -*- coding: utf-8 -*-
"""
数据层
======

子模块
------
- snapshot_io: 晶格快照读写（.json / .h5 / .txt，按后缀选择格式）

示例
----
>>> from ising_mc.data.snapshot_io import save_snapshot, load_snapshot
>>> save_snapshot('run.json', 'demo', 4, False, spins)
>>> load_snapshot('run.json')['size']
4
"""

# ising_mc/data/__init__.py
from importlib import import_module
from typing import TYPE_CHECKING

__all__ = ["snapshot_io"]

_lazy = {
    "snapshot_io": ".snapshot_io",
}


def __getattr__(name: str):
    if name in _lazy:
        mod = import_module(_lazy[name], __name__)
        globals()[name] = mod
        return mod
    raise AttributeError(f"{__name__} has no attribute {name!r}")


def __dir__():
    return sorted(list(__all__))


if TYPE_CHECKING:
    from . import snapshot_io
