# -*- coding: utf-8 -*-
"""
日志记录器

实现功能：
    - 格式化: 控制台输出支持彩色高亮（仅真实终端），文件输出保持纯文本结构化格式。
    - 轮转: 可选按大小 / 按时间轮转日志文件。
    - 多进程（MPI）: 可选 rank 标签，写入每条记录的前缀，便于区分各 rank 的输出。
    - 进度 / 计时: ProgressLogger 按 sweep 数打印进度，PerformanceMonitor 提供计时器与计数器。
"""

from __future__ import annotations

import logging
import sys
import time
from pathlib import Path
from typing import Optional, Dict, Any, Union

from logging.handlers import RotatingFileHandler, TimedRotatingFileHandler

__all__ = [
    'setup_logger', 'get_logger', 'resolve_level',
    'ProgressLogger', 'PerformanceMonitor',
]

DEFAULT_LOGGER_NAME = 'ising_mc'


# -----------------------------------------------------------------------------
# Colored terminal formatter (only affects console handler)
# -----------------------------------------------------------------------------
class ColoredFormatter(logging.Formatter):
    """
    控制台彩色格式化器：仅临时包装 levelname 字段以添加颜色码，
    并在返回前恢复，避免对 record 做持久性修改。
    """
    COLORS = {
        'DEBUG': '\033[36m',    # cyan
        'INFO': '\033[32m',     # green
        'WARNING': '\033[33m',  # yellow
        'ERROR': '\033[31m',    # red
        'CRITICAL': '\033[35m', # magenta
    }
    RESET = '\033[0m'

    def format(self, record: logging.LogRecord) -> str:
        orig_levelname = record.levelname
        try:
            color = self.COLORS.get(orig_levelname)
            if color:
                record.levelname = f"{color}{orig_levelname}{self.RESET}"
            return super().format(record)
        finally:
            record.levelname = orig_levelname  # restore


class _RankFilter(logging.Filter):
    """给每条记录注入 ``rank_tag``（无 rank 时为空串）。"""

    def __init__(self, rank: Optional[int]):
        super().__init__()
        self.tag = f"[rank {int(rank)}] " if rank is not None else ""

    def filter(self, record: logging.LogRecord) -> bool:
        record.rank_tag = self.tag
        return True


def resolve_level(level: Union[int, str]) -> int:
    """'debug' / 'INFO' / 10 -> logging 级别整数。"""
    if isinstance(level, int):
        return level
    value = logging.getLevelName(str(level).strip().upper())
    if not isinstance(value, int):
        raise ValueError(f"Unknown log level: {level!r}")
    return value


# -----------------------------------------------------------------------------
# Handler 工厂
# -----------------------------------------------------------------------------
def _make_console_handler(level: int, use_color: bool, utc: bool) -> logging.Handler:
    datefmt = '%Y-%m-%d %H:%M:%S'
    if use_color:
        fmt = '%(asctime)s | %(levelname)s | %(rank_tag)s%(message)s'
        formatter = ColoredFormatter(fmt, datefmt=datefmt)
    else:
        fmt = '%(asctime)s | %(levelname)-8s | %(rank_tag)s%(message)s'
        formatter = logging.Formatter(fmt, datefmt=datefmt)
    if utc:
        formatter.converter = time.gmtime  # type: ignore
    ch = logging.StreamHandler(sys.stdout)
    ch.setLevel(level)
    ch.setFormatter(formatter)
    return ch


def _make_file_handler(log_path: Path, rotate: Optional[Dict[str, Any]], utc: bool) -> logging.Handler:
    log_path.parent.mkdir(parents=True, exist_ok=True)
    datefmt = '%Y-%m-%d %H:%M:%S'
    fmt = '%(asctime)s | %(levelname)-8s | %(name)s | %(rank_tag)s%(message)s'
    if rotate:
        if 'when' in rotate:
            fh = TimedRotatingFileHandler(
                str(log_path),
                when=rotate.get('when', 'D'),
                interval=int(rotate.get('interval', 1)),
                backupCount=int(rotate.get('backupCount', 14)),
                encoding='utf-8',
                utc=utc
            )
        else:
            fh = RotatingFileHandler(
                str(log_path),
                maxBytes=int(rotate.get('maxBytes', 10_000_000)),
                backupCount=int(rotate.get('backupCount', 5)),
                encoding='utf-8'
            )
    else:
        fh = logging.FileHandler(str(log_path), mode='a', encoding='utf-8')
    fh.setLevel(logging.DEBUG)  # logger.level controls emission
    formatter = logging.Formatter(fmt, datefmt=datefmt)
    if utc:
        formatter.converter = time.gmtime  # type: ignore
    fh.setFormatter(formatter)
    return fh


# -----------------------------------------------------------------------------
# setup_logger / get_logger
# -----------------------------------------------------------------------------
def setup_logger(
    name: str = DEFAULT_LOGGER_NAME,
    level: Union[int, str] = logging.INFO,
    log_file: Optional[str] = None,
    use_color: bool = True,
    utc: bool = False,
    rotate: Optional[Dict[str, Any]] = None,
    rank: Optional[int] = None,
) -> logging.Logger:
    """
    配置并返回 logger。重复调用会覆盖同名 logger 的 handlers。

    rank 不为 None 时每条记录带 ``[rank N]`` 前缀；多 rank 同时写文件时，
    调用方应为每个 rank 传入不同的 log_file。
    """
    lvl = resolve_level(level)
    logger = logging.getLogger(name)
    logger.setLevel(lvl)

    # 移除并关闭现有 handlers（避免重复输出）
    for h in list(logger.handlers):
        logger.removeHandler(h)
        h.close()
    for f in list(logger.filters):
        if isinstance(f, _RankFilter):
            logger.removeFilter(f)
    logger.propagate = False

    # 仅在真实终端时启用颜色
    use_color = bool(use_color and hasattr(sys.stdout, "isatty") and sys.stdout.isatty())

    rank_filter = _RankFilter(rank)
    handlers = [_make_console_handler(lvl, use_color, utc)]
    if log_file:
        handlers.append(_make_file_handler(Path(log_file), rotate, utc))
    for h in handlers:
        # 子 logger 的记录经 propagate 到达这里时不经过 logger 级 filter，挂在 handler 上
        h.addFilter(rank_filter)
        logger.addHandler(h)

    return logger


def get_logger(name: str = DEFAULT_LOGGER_NAME) -> logging.Logger:
    """获取 logger（若未 setup，返回同名 logger 对象，但不自动配置 handlers）。"""
    return logging.getLogger(name)


# -----------------------------------------------------------------------------
# ProgressLogger
# -----------------------------------------------------------------------------
class ProgressLogger:
    """按步数或时间间隔打印进度的简单工具。"""
    def __init__(self, total: int, desc: str = "Progress",
                 logger: Optional[logging.Logger] = None,
                 log_every_n: int = 10,
                 log_every_seconds: Optional[float] = None):
        self.total = int(total)
        self.desc = desc
        self.logger = logger or get_logger()
        self.log_every_n = max(1, int(log_every_n))
        self.log_every_seconds = float(log_every_seconds) if log_every_seconds is not None else None

        self.current = 0
        self.start_time = time.time()
        self.last_log_time = self.start_time

    def update(self, n: int = 1):
        self.current = min(self.total, self.current + int(n))
        now = time.time()
        should = (self.current % self.log_every_n == 0) or (self.current >= self.total)
        if self.log_every_seconds is not None:
            should = should or ((now - self.last_log_time) >= self.log_every_seconds)
        if should:
            self._log_progress(now)
            self.last_log_time = now

    def _log_progress(self, now: Optional[float] = None):
        if now is None:
            now = time.time()
        elapsed = max(1e-9, now - self.start_time)
        percent = 100.0 * self.current / max(1, self.total)
        speed = self.current / elapsed
        remaining = max(0, self.total - self.current)
        eta = remaining / max(speed, 1e-9)
        self.logger.info(
            "%s: %d/%d sweeps (%.1f%%) | %.2f sweeps/s | ETA: %.1fs",
            self.desc, self.current, self.total, percent, speed, eta
        )


# -----------------------------------------------------------------------------
# PerformanceMonitor
# -----------------------------------------------------------------------------
class PerformanceMonitor:
    """轻量性能监控（计时器/计数器）。计时使用单调时钟 perf_counter。"""
    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or get_logger()
        self.timers: Dict[str, float] = {}
        self.counters: Dict[str, int] = {}

    def start_timer(self, name: str):
        self.timers[name] = time.perf_counter()

    def stop_timer(self, name: str, log: bool = True) -> Optional[float]:
        if name not in self.timers:
            self.logger.warning("timer '%s' was never started", name)
            return None
        start = self.timers.pop(name)
        elapsed = time.perf_counter() - start
        if log:
            self.logger.info("%s: %.4f s", name, elapsed)
        return elapsed

    def count(self, name: str, value: int = 1):
        self.counters[name] = self.counters.get(name, 0) + int(value)

    def get_counter(self, name: str) -> int:
        return int(self.counters.get(name, 0))

    def reset(self):
        self.timers.clear()
        self.counters.clear()
