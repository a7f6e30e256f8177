from __future__ import annotations

import os
import subprocess
import sys
from pathlib import Path


def _build_env(repo_root: Path) -> dict[str, str]:
    env = os.environ.copy()
    src_path = str(repo_root / "src")
    existing = env.get("PYTHONPATH")
    env["PYTHONPATH"] = src_path if not existing else f"{src_path}{os.pathsep}{existing}"
    return env


def main() -> int:
    repo_root = Path(__file__).resolve().parents[2]
    example_dir = repo_root / "examples" / "minimal_end_to_end"
    config_path = example_dir / "job.toml"

    if not config_path.exists():
        print(f"Missing job config: {config_path}", file=sys.stderr)
        return 1

    command = [
        sys.executable,
        "-m",
        "geombridge.cli",
        "--config",
        str(config_path),
    ]

    subprocess.run(
        command,
        cwd=example_dir,
        env=_build_env(repo_root),
        check=True,
    )

    outputs_root = example_dir / "_outputs"
    print(f"job.json: {outputs_root / 'job.json'}")
    print(f"optimized.xyz: {outputs_root / 'optimized.xyz'}")
    log_path = outputs_root / "optimize.log"
    print(f"log: {log_path if log_path.exists() else 'not kept'}")

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
