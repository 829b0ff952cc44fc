# -*- coding: utf-8 -*-
"""
命令行入口

    ising-mc SWEEPS SIZE TEMPERATURE [OUTPUT] [--strategy S] [--threads N] [--seed N]
             [--remainder spread|reject] [--config FILE] [--log-level L] [--log-file F]

分布式运行：

    mpiexec -n 4 ising-mc 500 64 2.269 out.json --strategy distributed

退出码即 SimulationStatus（0 成功，1 失败）。分布式模式下任何异常都会记录日志并
中止整个 MPI world，避免其余 rank 卡在集合通信里。
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from .core.lattice import Lattice
from .core.observables import summarize
from .simulation.base import SimulationStatus, get_strategy
from .utils.config import SimulationConfig, build_parser, config_from_namespace, validate_config
from .utils.logger import setup_logger

__all__ = ["main", "run"]

logger = logging.getLogger("ising_mc.cli")


def _strategy_options(config: SimulationConfig, context: Any = None) -> Dict[str, Any]:
    opts: Dict[str, Any] = {"progress_every": config.progress_every}
    if config.strategy == "shared_memory":
        opts["n_threads"] = config.n_threads
    elif config.strategy == "distributed":
        opts["context"] = context
        opts["remainder_policy"] = config.remainder_policy
    return opts


def _rank_log_file(log_file: Optional[str], rank: Optional[int]) -> Optional[str]:
    """非 0 rank 写到各自的文件（run.log -> run.rank2.log）。"""
    if not log_file or not rank:
        return log_file
    p = Path(log_file)
    return str(p.with_name(f"{p.stem}.rank{rank}{p.suffix}"))


def run(config: SimulationConfig, context: Any = None) -> SimulationStatus:
    """按配置构建晶格与策略并完成一次完整运行。"""
    lattice = Lattice.from_config(config)
    strategy = get_strategy(config.strategy, **_strategy_options(config, context))
    status = strategy.initialise(lattice)

    if lattice.energy_history:
        stats = summarize(
            lattice.energy_history, lattice.magnetism_history,
            lattice.temperature, lattice.size,
            discard=len(lattice.energy_history) // 5,
        )
        logger.info("E/N=%.6f  <m>=%.6f  <|m|>=%.6f  C=%.4f  chi=%.4f  (%d samples)",
                    stats["E_mean"], stats["m_mean"], stats["abs_m_mean"],
                    stats["C"], stats["chi"], stats["n_samples"])
    return status


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    ns = parser.parse_args(argv)
    try:
        config = config_from_namespace(ns)
    except (ValueError, FileNotFoundError) as e:
        parser.print_usage(sys.stderr)
        print(f"{parser.prog}: error: {e}", file=sys.stderr)
        return int(SimulationStatus.FAILURE)

    context = None
    if config.strategy == "distributed":
        try:
            from .simulation.distributed import DistributedContext
        except ImportError as e:
            print(f"{parser.prog}: error: {e}", file=sys.stderr)
            return int(SimulationStatus.FAILURE)
        context = DistributedContext.from_world()

    rank = context.rank if context is not None else None
    setup_logger("ising_mc", level=config.log_level,
                 log_file=_rank_log_file(config.log_file, rank), rank=rank)

    if context is None or context.is_master:
        logger.info("run %r: sweeps=%d size=%d T=%g strategy=%s",
                    config.name, config.sweeps, config.size, config.temperature, config.strategy)
        _, issues = validate_config(config)
        for it in issues:
            logger.warning("config: %s", it)

    try:
        status = run(config, context)
    except Exception:
        logger.exception("simulation failed")
        if context is not None:
            context.abort(int(SimulationStatus.FAILURE))
        return int(SimulationStatus.FAILURE)
    return int(status)


if __name__ == "__main__":
    sys.exit(main())
