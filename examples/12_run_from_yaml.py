# examples/12_run_from_yaml.py
"""
从 YAML 读取配置并运行；环境变量 ISING_MC__<field> 可覆盖文件中的值，例如

    ISING_MC__strategy=threads ISING_MC__n_threads=4 python examples/12_run_from_yaml.py
"""

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
for p in (ROOT, ROOT / "src"):
    s = str(p)
    if s not in sys.path:
        sys.path.insert(0, s)

from ising_mc.cli import run
from ising_mc.utils.config import load_config, load_from_env, merge_configs, validate_config
from ising_mc.utils.logger import setup_logger


def main():
    # 1. 读取 YAML 配置，叠加环境变量，并做一致性检查
    cfg = load_config(Path(__file__).parent / "configs" / "run_L64.yaml")
    cfg = merge_configs(cfg, load_from_env())

    ok, warnings = validate_config(cfg)
    if not ok:
        for w in warnings:
            print("[config warning]", w)

    # 2. 日志
    setup_logger("ising_mc", level=cfg.log_level, log_file=cfg.log_file)

    # 3. 运行（clear -> save -> simulate -> mark_complete -> save）
    status = run(cfg)
    print("status:", status.name)


if __name__ == "__main__":
    main()
