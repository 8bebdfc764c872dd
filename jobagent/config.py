"""Core agent configuration & tunable maintenance rules.

All values that may evolve (retention windows, cooldowns, pool sizes, tick
rates, run guard backend) are centralized here so they can be adjusted
without diving into job logic. Deployments override them via environment
variables; tests monkeypatch the dicts directly.
"""
from __future__ import annotations

import os


def _env_int(name: str, default: int) -> int:
	raw = os.getenv(name)
	return int(raw) if raw and raw.strip() else default


def _env_bool(name: str, default: bool) -> bool:
	raw = os.getenv(name)
	if raw is None or not raw.strip():
		return default
	return raw.strip().lower() in ("1", "true", "yes", "on")


# -------------------------------- Fan-out --------------------------------- #
# Upper bound of concurrent per-record units in one job run. Keep it at or
# below the database connection pool size.
FANOUT_SETTINGS: dict[str, int] = {
	"max_workers": _env_int("FANOUT_MAX_WORKERS", 8),
}

# ------------------------------- Scheduler -------------------------------- #
SCHEDULER_SETTINGS: dict[str, float | int] = {
	"tick_seconds": _env_int("SCHEDULER_TICK_SECONDS", 15),
	"worker_count": _env_int("SCHEDULER_WORKER_COUNT", 4),
	"heartbeat_seconds": _env_int("AGENT_HEARTBEAT_SECONDS", 60),
	"poll_timeout": 5.0,   # Worker dequeue timeout (seconds)
}

# --------------------------------- Queue ---------------------------------- #
QUEUE_SETTINGS: dict[str, dict[str, int] | int] = {
	"priorities": {  # Lower number = higher priority
		"high": 0,     # operator-triggered runs
		"normal": 5,   # scheduled runs
		"low": 10,
	},
	"warn_depth": 100,
	"max_in_memory": 1000,
}

# ------------------------------- Run Guard -------------------------------- #
RUN_GUARD_SETTINGS: dict[str, str | int | bool] = {
	"use_redis": _env_bool("RUN_GUARD_USE_REDIS", False),
	"redis_url": os.getenv("REDIS_URL", "redis://localhost:6379/0"),
	"key_prefix": "jobagent:run:",
	# Lock expiry protects against a crashed worker holding a job forever.
	"ttl_seconds": _env_int("RUN_GUARD_TTL_SECONDS", 3600),
	"health_check_timeout": 2,
}

# --------------------------------- Agent ---------------------------------- #
AGENT_SETTINGS: dict[str, str] = {
	"name": os.getenv("AGENT_NAME", "Maintenance Jobs Agent"),
	"type": "PyJobAgent",
	"prefix": os.getenv("AGENT_PREFIX", "MJ"),
	"version": "1.0.0",
	"id_file": os.getenv("AGENT_ID_FILE", "./.jobagent_id"),
}

# ------------------------------- Retention -------------------------------- #
# Thresholds are relative to the run's "now". Values in minutes.
RETENTION_SETTINGS: dict[str, int] = {
	"job_runs_minutes": 24 * 60,
	"agent_liveness_minutes": 30,
	"email_token_minutes": 24 * 60,
	"inactive_user_minutes": 60,
	"deleted_item_grace_minutes": 24 * 60,
	"deleted_folder_grace_minutes": 24 * 60,
	"deleted_user_grace_minutes": 24 * 60,
	"deleted_group_grace_minutes": 60,
}

# ------------------------------- Locations -------------------------------- #
LOCATION_SETTINGS: dict[str, int] = {
	"user_switch_cooldown_hours": 24,   # Users may switch once per day
	"group_grace_period_days": 7,       # New groups follow their members freely
	"group_block_after_switch_days": 2,
}

__all__ = [
	"FANOUT_SETTINGS",
	"SCHEDULER_SETTINGS",
	"QUEUE_SETTINGS",
	"RUN_GUARD_SETTINGS",
	"AGENT_SETTINGS",
	"RETENTION_SETTINGS",
	"LOCATION_SETTINGS",
]
