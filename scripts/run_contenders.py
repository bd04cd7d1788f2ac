"""CLI entrypoint that races several contenders for one lock key."""

from __future__ import annotations

import argparse
import asyncio
from pathlib import Path
from typing import Optional

from distlock.core.factory import build_protector
from distlock.core.settings import LockSettings
from distlock.utils.logging import get_logger


logger = get_logger("ContenderCLI")


def _load_settings(path: Optional[Path]) -> LockSettings:
    if path is None:
        return LockSettings.from_env()
    return LockSettings.from_file(path)


async def main() -> None:
    parser = argparse.ArgumentParser(description="Race N contenders for the same distributed lock.")
    parser.add_argument("--config", type=Path, default=None, help="Path to lock settings YAML (default: env vars)")
    parser.add_argument("--key", default="R", help="Lock key to contend on")
    parser.add_argument("--contenders", type=int, default=2, help="Number of concurrent callers")
    parser.add_argument("--lease-ms", type=int, default=5000, help="Lease (and deadline) per call")
    parser.add_argument("--work-seconds", type=float, default=1.0, help="How long each winner works")
    args = parser.parse_args()

    settings = _load_settings(args.config)
    protector = build_protector(settings)

    @protector.protect(key=args.key, lease_ms=args.lease_ms)
    async def work(contender: int) -> str:
        await asyncio.sleep(args.work_seconds)
        return f"contender {contender} finished"

    try:
        results = await asyncio.gather(*(work(i) for i in range(args.contenders)))
        for index, result in enumerate(results):
            logger.info("contender %d: %s %s", index, result.status.value, result.value or result.error or "")
        await protector.guard.wait_abandoned(timeout=args.lease_ms / 1000)
    finally:
        await protector.close()


if __name__ == "__main__":
    asyncio.run(main())
