# -*- coding: utf-8 -*-
import logging
import sys
from pathlib import Path

import pytest

# ----------------------------- 路径适配 -----------------------------
# 确保未安装时也能导入 src/ising_mc
try:
    _ROOT = Path(__file__).resolve().parents[1]
except NameError:
    _ROOT = Path.cwd()

if str(_ROOT / "src") not in sys.path:
    sys.path.insert(0, str(_ROOT / "src"))


@pytest.fixture
def restore_package_logger():
    """setup_logger 会替换 'ising_mc' 的 handlers 并关闭 propagate，测试结束后复原。"""
    pkg = logging.getLogger("ising_mc")
    handlers, propagate, level = list(pkg.handlers), pkg.propagate, pkg.level
    yield pkg
    for h in list(pkg.handlers):
        pkg.removeHandler(h)
        h.close()
    for h in handlers:
        pkg.addHandler(h)
    pkg.propagate = propagate
    pkg.setLevel(level)
