# -*- coding: utf-8 -*-
"""
运行配置（dataclass + YAML/JSON 文件 + 环境变量 + 命令行，分层覆盖）

实现功能：
    - 策略名标准化（"mpi" → "distributed"，"omp"/"threads" → "shared_memory" 等）
    - 余数策略标准化（"strict" → "reject"）
    - 硬性约束（构造时直接抛 ValueError）：
         sweeps > 0, size > 0, temperature 有限且 >= 0
         棋盘格策略（shared_memory / gpu）要求 size 为偶数
    - validate_config() 返回非致命 warnings 列表

合并优先级：默认 < 文件 (--config) < 环境变量 (ISING_MC__field=value) < 命令行
"""

from __future__ import annotations

import argparse
import ast
import json
import logging
import math
import os
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

from ..core.partition import normalize_remainder_policy
from ..simulation.base import available_strategies, normalize_strategy_name

logger = logging.getLogger(__name__)

__all__ = [
    'SimulationConfig',
    'load_config', 'save_config', 'load_from_env',
    'merge_configs', 'validate_config', 'build_parser', 'from_args',
]

ENV_PREFIX = 'ISING_MC'
_CHECKERBOARD_STRATEGIES = ('shared_memory', 'gpu')
_LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------
def _deep_merge(d1: Dict[str, Any], d2: Dict[str, Any]) -> Dict[str, Any]:
    """将 d2 深度合并到 d1（原地修改 d1 并返回它）。"""
    for k, v in (d2 or {}).items():
        if k in d1 and isinstance(d1[k], dict) and isinstance(v, dict):
            _deep_merge(d1[k], v)
        else:
            d1[k] = v
    return d1


def _set_by_path(d: Dict[str, Any], path: List[str], value: Any):
    """按照 path（list）在嵌套 dict 中设置 value。"""
    cur = d
    for key in path[:-1]:
        if key not in cur or not isinstance(cur[key], dict):
            cur[key] = {}
        cur = cur[key]
    cur[path[-1]] = value


def _parse_env_value(s: str):
    """将环境变量字符串解析为 Python 值（literal_eval 优先，兼容 true/false/none）。"""
    if s is None:
        return None
    try:
        return ast.literal_eval(s)
    except (ValueError, SyntaxError, TypeError):
        sl = s.strip()
        sl_l = sl.lower()
        if sl_l == 'true':
            return True
        if sl_l == 'false':
            return False
        if sl_l in ('none', 'null'):
            return None
        return sl


def _is_int(v: Any) -> bool:
    return isinstance(v, int) and not isinstance(v, bool)


# -----------------------------------------------------------------------------
# Dataclass
# -----------------------------------------------------------------------------
@dataclass
class SimulationConfig:
    # 运行标识与输出
    name: str = 'ising'
    output: Optional[str] = None  # 快照路径；后缀决定格式（.json/.h5/.txt），None 表示不落盘

    # 物理参数
    sweeps: int = 1000
    size: int = 32
    temperature: float = 2.269

    # 执行策略
    strategy: str = 'sequential'   # 'sequential' | 'shared_memory' | 'gpu' | 'distributed'（同义词会归一化）
    n_threads: Optional[int] = None
    remainder_policy: str = 'spread'

    # 随机种子（None = OS 熵）
    seed: Optional[int] = None

    # 日志
    log_level: str = 'INFO'
    log_file: Optional[str] = None
    progress_every: int = 0

    def __post_init__(self):
        if not (_is_int(self.sweeps) and self.sweeps > 0):
            raise ValueError(f"sweeps must be a positive integer, got {self.sweeps!r}")
        if not (_is_int(self.size) and self.size > 0):
            raise ValueError(f"size must be a positive integer, got {self.size!r}")
        try:
            self.temperature = float(self.temperature)
        except (TypeError, ValueError):
            raise ValueError(f"temperature must be numeric, got {self.temperature!r}")
        if not math.isfinite(self.temperature) or self.temperature < 0.0:
            raise ValueError(f"temperature must be finite and >= 0, got {self.temperature!r}")

        self.strategy = normalize_strategy_name(self.strategy)
        if self.strategy not in available_strategies():
            raise ValueError(f"Unknown strategy: {self.strategy!r}. "
                             f"Use one of {available_strategies()} (synonyms accepted).")
        self.remainder_policy = normalize_remainder_policy(self.remainder_policy).value

        if self.n_threads is not None and not (_is_int(self.n_threads) and self.n_threads > 0):
            raise ValueError("n_threads must be a positive int or None")
        if self.seed is not None and not (_is_int(self.seed) and self.seed >= 0):
            raise ValueError("seed must be a non-negative int or None")
        if not (_is_int(self.progress_every) and self.progress_every >= 0):
            raise ValueError("progress_every must be a non-negative integer")

        self.log_level = str(self.log_level).strip().upper()
        if self.log_level not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of {_LOG_LEVELS}, got {self.log_level!r}")

        # 周期边界 + 棋盘格 ⇒ size 必须为偶数
        if self.strategy in _CHECKERBOARD_STRATEGIES and self.size % 2 == 1:
            raise ValueError(f"strategy '{self.strategy}' uses checkerboard updates and requires an "
                             f"EVEN size, got size={self.size}")

        if self.output is not None:
            self.output = str(self.output)
        self.name = str(self.name)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'SimulationConfig':
        """接受扁平字典，或包在 ``simulation:`` 段下的字典。"""
        d = dict(d or {})
        if isinstance(d.get('simulation'), dict):
            nested = d.pop('simulation')
            d = _deep_merge(d, nested)
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(d) - known)
        if unknown:
            raise ValueError(f"Unknown config keys: {unknown}. Known keys: {sorted(known)}")
        return cls(**d)


# -----------------------------------------------------------------------------
# I/O
# -----------------------------------------------------------------------------
def _read_config_dict(filepath: str) -> Dict[str, Any]:
    p = Path(filepath)
    if not p.exists():
        raise FileNotFoundError(f"Config file not found: {filepath}")
    suf = p.suffix.lower()
    if suf in ('.yaml', '.yml'):
        with open(p, 'r', encoding='utf-8') as f:
            cfg = yaml.safe_load(f) or {}
    elif suf == '.json':
        with open(p, 'r', encoding='utf-8') as f:
            cfg = json.load(f) or {}
    else:
        raise ValueError(f"Unsupported config file extension: {suf}")
    if not isinstance(cfg, dict):
        raise ValueError(f"Config file {filepath} must contain a mapping at top level")
    return cfg


def load_config(filepath: str) -> SimulationConfig:
    """从 YAML 或 JSON 文件加载配置并返回 SimulationConfig。"""
    return SimulationConfig.from_dict(_read_config_dict(filepath))


def save_config(config: SimulationConfig, filepath: str, format: Optional[str] = None) -> Path:
    """将配置保存为 YAML 或 JSON。默认根据后缀判断格式。"""
    p = Path(filepath)
    p.parent.mkdir(parents=True, exist_ok=True)
    data = config.to_dict()
    fmt = format
    if fmt is None:
        fmt = 'json' if p.suffix.lower() == '.json' else 'yaml'

    if fmt == 'yaml':
        with open(p, 'w', encoding='utf-8') as f:
            yaml.safe_dump(data, f, default_flow_style=False, allow_unicode=True, sort_keys=False)
    elif fmt == 'json':
        with open(p, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
    else:
        raise ValueError(f"Unsupported format: {fmt}")
    logger.info("config saved: %s", p)
    return p


# -----------------------------------------------------------------------------
# Environment variables (ISING_MC__size=64)
# -----------------------------------------------------------------------------
def load_from_env(prefix: str = ENV_PREFIX, sep: str = '__',
                  environ: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
    """
    从环境变量读取以 prefix 开头、用 sep 分层的键，返回嵌套 dict。
    例： ISING_MC__size=64  → {'size': 64}
    """
    env = os.environ if environ is None else environ
    out: Dict[str, Any] = {}
    pfx = prefix + sep
    for k, v in env.items():
        if not k.startswith(pfx):
            continue
        parts = [p.lower() for p in k[len(pfx):].split(sep) if p]
        if not parts:
            continue
        _set_by_path(out, parts, _parse_env_value(v))
    return out


# -----------------------------------------------------------------------------
# Merge & validate
# -----------------------------------------------------------------------------
def merge_configs(base: SimulationConfig, override: Dict[str, Any]) -> SimulationConfig:
    """将 override（dict）合并到 base 的字典表示上，并返回新的（重新校验过的）配置。"""
    base_dict = base.to_dict()
    over = dict(override or {})
    if isinstance(over.get('simulation'), dict):
        over = _deep_merge(over, over.pop('simulation'))
    _deep_merge(base_dict, over)
    return SimulationConfig.from_dict(base_dict)


def validate_config(cfg: SimulationConfig) -> Tuple[bool, List[str]]:
    """
    非致命的一致性检查（仅返回 issues，不抛错；硬约束已在 __post_init__ 完成）。
    """
    issues: List[str] = []

    if cfg.n_threads is not None and cfg.strategy != 'shared_memory':
        issues.append(f"n_threads={cfg.n_threads} is ignored by strategy '{cfg.strategy}'")
    if cfg.n_threads is not None and cfg.n_threads > cfg.size:
        issues.append(f"n_threads ({cfg.n_threads}) > size ({cfg.size}); extra threads would own no rows")
    if cfg.remainder_policy != 'spread' and cfg.strategy != 'distributed':
        issues.append(f"remainder_policy='{cfg.remainder_policy}' only affects the distributed strategy")
    if cfg.output is None:
        issues.append("output is not set; no snapshots will be written")
    if cfg.temperature == 0.0:
        issues.append("temperature=0: only energy-lowering or neutral flips are accepted")

    ok = len(issues) == 0
    return ok, issues


# -----------------------------------------------------------------------------
# CLI helpers
# -----------------------------------------------------------------------------
def build_parser(prog: Optional[str] = 'ising-mc') -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog=prog,
        description="2D Ising Metropolis Monte-Carlo with sequential / threaded / GPU / MPI execution",
    )
    ap.add_argument('sweeps', type=int, nargs='?', help='number of sweeps (> 0)')
    ap.add_argument('size', type=int, nargs='?', help='lattice side length (> 0)')
    ap.add_argument('temperature', type=float, nargs='?', help='temperature (>= 0)')
    ap.add_argument('output', type=str, nargs='?', help='snapshot path (.json | .h5 | .txt)')
    ap.add_argument('--strategy', type=str, default=None,
                    help=f"execution strategy: {', '.join(available_strategies())}")
    ap.add_argument('--threads', dest='n_threads', type=int, default=None,
                    help='worker threads for shared_memory')
    ap.add_argument('--seed', type=int, default=None, help='root random seed')
    ap.add_argument('--remainder', dest='remainder_policy', type=str, default=None,
                    choices=['spread', 'reject'], help='row remainder policy (distributed)')
    ap.add_argument('--name', type=str, default=None, help='run name stored in snapshots')
    ap.add_argument('--progress-every', dest='progress_every', type=int, default=None,
                    help='log progress every N sweeps (0 = off)')
    ap.add_argument('--config', type=str, default=None, help='config file (yaml|json)')
    ap.add_argument('--env-prefix', type=str, default=ENV_PREFIX,
                    help=f'environment variable prefix (default {ENV_PREFIX})')
    ap.add_argument('--log-level', dest='log_level', type=str, default=None,
                    help='DEBUG | INFO | WARNING | ERROR')
    ap.add_argument('--log-file', dest='log_file', type=str, default=None, help='also log to this file')
    return ap


_CLI_FIELDS = ('sweeps', 'size', 'temperature', 'output', 'strategy', 'n_threads', 'seed',
               'remainder_policy', 'name', 'progress_every', 'log_level', 'log_file')


def config_from_namespace(ns: argparse.Namespace, environ: Optional[Dict[str, str]] = None) -> SimulationConfig:
    """默认 <- 文件 <- 环境变量 <- 命令行，合并后做一次最终校验。"""
    merged: Dict[str, Any] = SimulationConfig().to_dict()
    if ns.config:
        file_over = _read_config_dict(ns.config)
        if isinstance(file_over.get('simulation'), dict):
            file_over = _deep_merge(file_over, file_over.pop('simulation'))
        _deep_merge(merged, file_over)
    _deep_merge(merged, load_from_env(prefix=ns.env_prefix, environ=environ))
    _deep_merge(merged, {k: getattr(ns, k) for k in _CLI_FIELDS if getattr(ns, k, None) is not None})
    return SimulationConfig.from_dict(merged)


def from_args(args: Optional[List[str]] = None,
              environ: Optional[Dict[str, str]] = None) -> SimulationConfig:
    """解析命令行并合并所有来源，返回校验过的 SimulationConfig。"""
    ns = build_parser().parse_args(args=args)
    return config_from_namespace(ns, environ=environ)
