"""Environment and connectivity diagnostics."""

from __future__ import annotations

import platform
import sys
from collections import Counter
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, Literal

from fridgelist.db.cache_store import LocalCacheStore
from fridgelist.errors import ConfigurationError
from fridgelist.integrations.fridge_api import FridgeApiClient

Status = Literal["ok", "warn", "fail"]


@dataclass(frozen=True)
class CheckResult:
    """Outcome of a single diagnostic check."""

    name: str
    status: Status
    message: str


def _check_python() -> CheckResult:
    version = platform.python_version()
    if sys.version_info < (3, 10):
        return CheckResult(
            name="Python",
            status="fail",
            message=f"Detected {version}. Install Python 3.10 or newer.",
        )
    return CheckResult(name="Python", status="ok", message=f"Detected {version}")


def _check_configuration(gateway: FridgeApiClient) -> CheckResult:
    if gateway.is_configured:
        return CheckResult(name="Configuration", status="ok", message=gateway.config.base_url)
    return CheckResult(
        name="Configuration",
        status="warn",
        message="Set FRIDGELIST_API_URL and FRIDGELIST_API_KEY (or pass --url/--api-key).",
    )


def _check_cache(cache: LocalCacheStore) -> CheckResult:
    counted = cache.count()
    if not counted.ok:
        return CheckResult(name="Local cache", status="fail", message=str(counted.error))
    count = counted.unwrap()
    if count == 0:
        return CheckResult(
            name="Local cache",
            status="ok",
            message=f"empty ({cache.database_path})",
        )
    stamp = cache.last_update_timestamp()
    saved = ""
    if stamp.ok and stamp.unwrap() is not None:
        saved_at = datetime.fromtimestamp(stamp.unwrap() / 1000, tz=timezone.utc)
        saved = f", saved {saved_at.isoformat(timespec='seconds')}"
    return CheckResult(
        name="Local cache",
        status="ok",
        message=f"{count} item(s){saved} ({cache.database_path})",
    )


def _check_remote(gateway: FridgeApiClient) -> CheckResult:
    health = gateway.check_health()
    if health.ok:
        return CheckResult(name="Fridge API", status="ok", message="reachable")
    if isinstance(health.error, ConfigurationError):
        return CheckResult(name="Fridge API", status="warn", message="skipped, not configured")
    return CheckResult(name="Fridge API", status="fail", message=str(health.error))


def collect_checks(gateway: FridgeApiClient, cache: LocalCacheStore) -> list[CheckResult]:
    return [
        _check_python(),
        _check_configuration(gateway),
        _check_cache(cache),
        _check_remote(gateway),
    ]


def format_report(results: Iterable[CheckResult]) -> str:
    """Render a human-readable report."""

    icon = {"ok": "✓", "warn": "⚠", "fail": "✖"}
    lines: list[str] = []
    counts: Counter[str] = Counter()
    for result in results:
        counts[result.status] += 1
        lines.append(f"{icon[result.status]} {result.name}: {result.message}")
    lines.append("")
    lines.append(
        f"Summary: {counts['ok']} ok · {counts['warn']} warning(s) · {counts['fail']} failure(s)"
    )
    return "\n".join(lines)


def run_diagnostics(gateway: FridgeApiClient, cache: LocalCacheStore) -> tuple[int, str]:
    """Execute diagnostics and return (exit_code, report)."""

    checks = collect_checks(gateway, cache)
    exit_code = 1 if any(result.status == "fail" for result in checks) else 0
    return exit_code, format_report(checks)


__all__ = ["CheckResult", "collect_checks", "format_report", "run_diagnostics"]
