# -*- coding: utf-8 -*-
"""
工具层
======

子模块
------
- logger: 日志、进度与计时
- config: 运行配置（文件 / 环境变量 / 命令行合并）

示例
----
>>> from ising_mc.utils.logger import setup_logger
>>> logger = setup_logger('ising_mc', level='INFO')
"""

# ising_mc/utils/__init__.py
from importlib import import_module
from typing import TYPE_CHECKING

__all__ = ["logger", "config"]

_lazy = {
    "logger": ".logger",
    "config": ".config",
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
    from . import logger, config
