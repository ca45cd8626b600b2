"""
Connector health monitoring service.

Tracks the health of external data connectors (SharePoint, ADLS, ...):
- Per-connector health status derived from errors in a sliding window
- Sync operation tracking (start / complete / error)
- Capped error and sync history
- Aggregated metrics (documents processed, durations, success/error rates)
- Status change listeners for alerts
- Dashboard widget data

Usage:
    from docsync.services.connector_health_service import connector_health_service

    connector_health_service.register_connector("adls-main", ConnectorType.ADLS)
    start = connector_health_service.track_sync_start("adls-main", sync_type="incremental")
    ...
    connector_health_service.track_sync_complete("adls-main", {"status": SyncStatus.SUCCESS})
"""

import asyncio
import logging
import time
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional

from ..config import settings

logger = logging.getLogger("docsync.health")

StatusListener = Callable[[str, str, str], None]


class ConnectorStatus(str, Enum):
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"
    UNKNOWN = "unknown"
    DISCONNECTED = "disconnected"


class SyncStatus(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    SUCCESS = "success"
    PARTIAL = "partial"
    FAILURE = "failure"


class ConnectorType(str, Enum):
    SHAREPOINT = "sharepoint"
    ADLS = "adls"
    BLOB_STORAGE = "blob_storage"
    LOCAL_FILE = "local_file"
    CUSTOM = "custom"


class ErrorSeverity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


def _now_ms() -> float:
    return time.time() * 1000


def _iso(ms: Optional[float]) -> Optional[str]:
    if ms is None:
        return None
    return datetime.fromtimestamp(ms / 1000, tz=timezone.utc).isoformat()


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _value(item: Any) -> Any:
    return item.value if isinstance(item, Enum) else item


def default_config() -> Dict[str, int]:
    """Health thresholds taken from settings."""
    return {
        "error_window_ms": settings.connector_error_window_ms,
        "max_error_history": settings.connector_max_error_history,
        "health_check_interval_ms": settings.connector_health_check_interval_ms,
        "unhealthy_threshold": settings.connector_unhealthy_threshold,
        "degraded_threshold": settings.connector_degraded_threshold,
        "sync_timeout_ms": settings.connector_sync_timeout_ms,
        "history_size": settings.connector_history_size,
    }


def _empty_metrics() -> Dict[str, float]:
    return {
        "total_syncs": 0,
        "successful_syncs": 0,
        "failed_syncs": 0,
        "partial_syncs": 0,
        "documents_processed": 0,
        "documents_failed": 0,
        "total_bytes_processed": 0,
        "average_sync_duration": 0,
        "total_sync_duration": 0,
    }


class ActivityWindow:
    """Events kept only while they are younger than ``window_ms``."""

    def __init__(self, window_ms: int):
        self.window_ms = window_ms
        self._events: List[Dict[str, Any]] = []

    def add(self, event: Dict[str, Any]) -> None:
        self._cleanup()
        self._events.append({**event, "timestamp": _now_ms()})

    def count(self) -> int:
        self._cleanup()
        return len(self._events)

    def events(self) -> List[Dict[str, Any]]:
        self._cleanup()
        return list(self._events)

    def events_by_type(self, event_type: str) -> List[Dict[str, Any]]:
        self._cleanup()
        return [e for e in self._events if e.get("type") == event_type]

    def clear(self) -> None:
        self._events = []

    def _cleanup(self) -> None:
        cutoff = _now_ms() - self.window_ms
        self._events = [e for e in self._events if e["timestamp"] > cutoff]


class ConnectorState:
    """Health, sync and error bookkeeping for a single connector."""

    def __init__(self, connector_id: str, connector_type: str, config: Dict[str, int]):
        self.connector_id = connector_id
        self.connector_type = connector_type
        self.config = config

        self.status = ConnectorStatus.UNKNOWN
        self.sync_status = SyncStatus.IDLE
        self.last_status_change: Optional[str] = None
        self.status_message = "Connector initialized"

        self.last_sync_start: Optional[float] = None
        self.last_sync_end: Optional[float] = None
        self.last_sync_duration: Optional[float] = None
        self.last_sync_result: Optional[SyncStatus] = None
        self.last_sync_type: Optional[str] = None
        self.current_sync_id: Optional[str] = None

        self.error_window = ActivityWindow(config["error_window_ms"])
        self.error_history: List[Dict[str, Any]] = []
        self.last_error: Optional[Dict[str, Any]] = None

        self.metrics = _empty_metrics()

        self.connection_config: Dict[str, Any] = {}
        self.is_enabled = True
        self.created_at = _utc_now_iso()
        self.last_health_check: Optional[str] = None

    def calculate_status(self) -> ConnectorStatus:
        error_count = self.error_window.count()

        if not self.is_enabled:
            return ConnectorStatus.DISCONNECTED
        if error_count >= self.config["unhealthy_threshold"]:
            return ConnectorStatus.UNHEALTHY
        if error_count >= self.config["degraded_threshold"]:
            return ConnectorStatus.DEGRADED
        if self.last_sync_result == SyncStatus.SUCCESS or self.last_health_check:
            return ConnectorStatus.HEALTHY
        return ConnectorStatus.UNKNOWN

    def update_status(self) -> Dict[str, Any]:
        """Recalculate status; report whether it changed."""
        new_status = self.calculate_status()
        if new_status != self.status:
            old_status = self.status
            self.status = new_status
            self.last_status_change = _utc_now_iso()
            return {"changed": True, "old_status": old_status, "new_status": new_status}
        return {"changed": False}

    def add_error(self, error: Dict[str, Any]) -> Dict[str, Any]:
        entry = {
            "type": error.get("type") or "unknown",
            "message": error.get("message"),
            "code": error.get("code"),
            "severity": _value(error.get("severity") or ErrorSeverity.MEDIUM),
            "context": error.get("context") or {},
            "timestamp": _now_ms(),
        }
        self.error_window.add(entry)
        self.error_history.append(entry)
        self.last_error = entry

        overflow = len(self.error_history) - self.config["max_error_history"]
        if overflow > 0:
            del self.error_history[:overflow]

        return self.update_status()

    def start_sync(self, sync_id: str, sync_type: str = "full") -> None:
        self.current_sync_id = sync_id
        self.sync_status = SyncStatus.RUNNING
        self.last_sync_start = _now_ms()
        self.last_sync_type = sync_type
        self.update_status()

    def complete_sync(self, result: Dict[str, Any]) -> Dict[str, Any]:
        duration = _now_ms() - self.last_sync_start if self.last_sync_start else 0
        status = SyncStatus(_value(result["status"]))

        self.last_sync_end = _now_ms()
        self.last_sync_duration = duration
        self.last_sync_result = status
        self.sync_status = status
        self.current_sync_id = None

        metrics = self.metrics
        metrics["total_syncs"] += 1
        metrics["total_sync_duration"] += duration
        metrics["average_sync_duration"] = metrics["total_sync_duration"] / metrics["total_syncs"]
        metrics["documents_processed"] += result.get("documents_processed") or 0
        metrics["documents_failed"] += result.get("documents_failed") or 0
        metrics["total_bytes_processed"] += result.get("bytes_processed") or 0

        if status == SyncStatus.SUCCESS:
            metrics["successful_syncs"] += 1
        elif status == SyncStatus.PARTIAL:
            metrics["partial_syncs"] += 1
        elif status == SyncStatus.FAILURE:
            metrics["failed_syncs"] += 1

        return {"duration": duration, "status": status}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "connector_id": self.connector_id,
            "connector_type": _value(self.connector_type),
            "status": self.status.value,
            "sync_status": self.sync_status.value,
            "status_message": self.status_message,
            "last_status_change": self.last_status_change,
            "last_sync_start": _iso(self.last_sync_start),
            "last_sync_end": _iso(self.last_sync_end),
            "last_sync_duration": self.last_sync_duration,
            "last_sync_result": _value(self.last_sync_result),
            "last_sync_type": self.last_sync_type,
            "error_count": self.error_window.count(),
            "last_error": self.last_error,
            "metrics": dict(self.metrics),
            "is_enabled": self.is_enabled,
            "created_at": self.created_at,
            "last_health_check": self.last_health_check,
        }


class ConnectorHealthService:
    """
    In-memory health registry for connectors.

    Methods that address an unknown connector return
    ``{"success": False, "error": "Connector not registered"}`` (or ``None``
    for read accessors) instead of raising.
    """

    NOT_REGISTERED = {"success": False, "error": "Connector not registered"}

    def __init__(self):
        self.config = default_config()
        self.connectors: Dict[str, ConnectorState] = {}
        self.listeners: List[StatusListener] = []
        self.sync_history: List[Dict[str, Any]] = []

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------
    def register_connector(
        self,
        connector_id: str,
        connector_type: Any,
        connection_config: Optional[Dict[str, Any]] = None,
        is_enabled: Optional[bool] = None,
    ) -> Dict[str, Any]:
        if connector_id in self.connectors:
            logger.warning(f"Connector {connector_id} already registered, updating configuration")

        state = ConnectorState(connector_id, _value(connector_type), self.config)
        if connection_config:
            state.connection_config = connection_config
        if is_enabled is not None:
            state.is_enabled = is_enabled
            state.update_status()

        self.connectors[connector_id] = state
        logger.info(f"Connector registered: {connector_id} ({_value(connector_type)})")
        return state.to_dict()

    def unregister_connector(self, connector_id: str) -> bool:
        if self.connectors.pop(connector_id, None) is not None:
            logger.info(f"Connector unregistered: {connector_id}")
            return True
        return False

    # ------------------------------------------------------------------
    # Sync tracking
    # ------------------------------------------------------------------
    def track_sync_start(
        self,
        connector_id: str,
        sync_id: Optional[str] = None,
        sync_type: str = "full",
        expected_documents: Optional[int] = None,
    ) -> Dict[str, Any]:
        state = self.connectors.get(connector_id)
        if state is None:
            return dict(self.NOT_REGISTERED)

        sync_id = sync_id or f"sync-{connector_id}-{int(_now_ms())}"
        state.start_sync(sync_id, sync_type)

        self._add_to_sync_history({
            "sync_id": sync_id,
            "connector_id": connector_id,
            "connector_type": state.connector_type,
            "sync_type": sync_type,
            "status": "started",
            "start_time": _utc_now_iso(),
            "expected_documents": expected_documents,
        })

        logger.info(f"Sync started: connector={connector_id} sync_id={sync_id} type={sync_type}")
        return {
            "success": True,
            "sync_id": sync_id,
            "connector_id": connector_id,
            "start_time": _iso(state.last_sync_start),
        }

    def track_sync_complete(self, connector_id: str, result: Dict[str, Any]) -> Dict[str, Any]:
        state = self.connectors.get(connector_id)
        if state is None:
            return dict(self.NOT_REGISTERED)

        sync_id = state.current_sync_id
        status = SyncStatus(_value(result.get("status") or SyncStatus.SUCCESS))
        outcome = state.complete_sync({
            "status": status,
            "documents_processed": result.get("documents_processed") or 0,
            "documents_failed": result.get("documents_failed") or 0,
            "bytes_processed": result.get("bytes_processed") or 0,
        })

        if sync_id:
            self._update_sync_history(sync_id, {
                "status": status.value,
                "end_time": _utc_now_iso(),
                "duration": outcome["duration"],
                "documents_processed": result.get("documents_processed"),
                "documents_failed": result.get("documents_failed"),
                "errors": result.get("errors"),
            })

        logger.info(
            f"Sync completed: connector={connector_id} status={status.value} "
            f"duration={outcome['duration']:.0f}ms documents={result.get('documents_processed') or 0}"
        )
        logger.debug(f"connector.sync.duration={outcome['duration']:.0f} connector={connector_id}")

        self._check_and_notify_status_change(state)

        return {
            "success": True,
            "connector_id": connector_id,
            "duration": outcome["duration"],
            "status": status.value,
            "metrics": dict(state.metrics),
        }

    def track_sync_error(self, connector_id: str, error: Dict[str, Any]) -> Dict[str, Any]:
        state = self.connectors.get(connector_id)
        if state is None:
            return dict(self.NOT_REGISTERED)

        entry = {
            "type": error.get("type") or "sync_error",
            "message": error.get("message") or "Unknown error",
            "code": error.get("code"),
            "severity": self.classify_error_severity(error),
            "context": {
                "document_id": error.get("document_id"),
                "sync_id": state.current_sync_id,
                "phase": error.get("phase"),
                **(error.get("context") or {}),
            },
        }

        previous_status = state.status
        state.add_error(entry)

        logger.error(
            f"Connector sync error: connector={connector_id} type={entry['type']} "
            f"severity={_value(entry['severity'])} message={entry['message']}"
        )

        if previous_status != state.status:
            self._notify_status_change(connector_id, previous_status, state.status)

        return {
            "success": True,
            "connector_id": connector_id,
            "error_count": state.error_window.count(),
            "current_status": state.status.value,
            "severity": _value(entry["severity"]),
        }

    @staticmethod
    def classify_error_severity(error: Dict[str, Any]) -> ErrorSeverity:
        if error.get("severity"):
            return ErrorSeverity(_value(error["severity"]))

        message = (error.get("message") or "").lower()
        code = str(error.get("code") or "").lower()

        if "authentication failed" in message or "unauthorized" in message or "auth" in code:
            return ErrorSeverity.CRITICAL
        if "connection refused" in message or "not found" in message or "permission denied" in message:
            return ErrorSeverity.HIGH
        if "retry" in message or "rate limit" in message or "throttl" in message:
            return ErrorSeverity.LOW
        return ErrorSeverity.MEDIUM

    # ------------------------------------------------------------------
    # Read accessors
    # ------------------------------------------------------------------
    def get_connector_status(self, connector_id: str) -> Optional[Dict[str, Any]]:
        state = self.connectors.get(connector_id)
        return state.to_dict() if state else None

    def get_all_connectors_status(self) -> List[Dict[str, Any]]:
        return [state.to_dict() for state in self.connectors.values()]

    def get_health_summary(self) -> Dict[str, Any]:
        connectors = self.get_all_connectors_status()
        summary: Dict[str, Any] = {
            "total_connectors": len(connectors),
            "by_status": {s.value: 0 for s in ConnectorStatus},
            "by_sync_status": {s.value: 0 for s in SyncStatus},
            "total_errors_in_window": 0,
            "active_syncs": 0,
            "issues": [],
        }

        for connector in connectors:
            summary["by_status"][connector["status"]] += 1
            summary["by_sync_status"][connector["sync_status"]] += 1
            summary["total_errors_in_window"] += connector["error_count"]

            if connector["sync_status"] == SyncStatus.RUNNING.value:
                summary["active_syncs"] += 1

            if connector["status"] == ConnectorStatus.UNHEALTHY.value:
                summary["issues"].append({
                    "connector_id": connector["connector_id"],
                    "severity": "critical",
                    "message": f"Connector is unhealthy with {connector['error_count']} errors",
                    "last_error": connector["last_error"],
                })
            elif connector["status"] == ConnectorStatus.DEGRADED.value:
                summary["issues"].append({
                    "connector_id": connector["connector_id"],
                    "severity": "warning",
                    "message": f"Connector is degraded with {connector['error_count']} errors",
                    "last_error": connector["last_error"],
                })

        by_status = summary["by_status"]
        if by_status["unhealthy"] > 0:
            overall = ConnectorStatus.UNHEALTHY
        elif by_status["degraded"] > 0:
            overall = ConnectorStatus.DEGRADED
        elif by_status["healthy"] > 0:
            overall = ConnectorStatus.HEALTHY
        else:
            overall = ConnectorStatus.UNKNOWN

        summary["overall_status"] = overall.value
        summary["timestamp"] = _utc_now_iso()
        return summary

    def get_error_history(self, connector_id: str, limit: int = 20) -> List[Dict[str, Any]]:
        """Most recent errors first."""
        state = self.connectors.get(connector_id)
        if state is None:
            return []
        return list(reversed(state.error_history[-limit:])) if limit > 0 else []

    def get_sync_history(self, connector_id: Optional[str] = None, limit: int = 20) -> List[Dict[str, Any]]:
        """Most recent syncs first, optionally for a single connector."""
        history = self.sync_history
        if connector_id:
            history = [h for h in history if h["connector_id"] == connector_id]
        return list(reversed(history[-limit:])) if limit > 0 else []

    def analyze_error_patterns(self, connector_id: str) -> Optional[Dict[str, Any]]:
        state = self.connectors.get(connector_id)
        if state is None:
            return None

        errors = state.error_window.events()
        by_type: Dict[str, Dict[str, Any]] = {}
        by_severity = {s.value: 0 for s in ErrorSeverity}

        for error in errors:
            error_type = error.get("type") or "unknown"
            bucket = by_type.setdefault(error_type, {"count": 0, "last_occurrence": None})
            bucket["count"] += 1
            bucket["last_occurrence"] = error["timestamp"]

            severity = _value(error.get("severity") or ErrorSeverity.MEDIUM)
            if severity in by_severity:
                by_severity[severity] += 1

        trending = [
            {"type": error_type, "count": data["count"], "last_occurrence": _iso(data["last_occurrence"])}
            for error_type, data in sorted(by_type.items(), key=lambda kv: kv[1]["count"], reverse=True)[:5]
        ]

        recommendations = []
        if by_severity["critical"] > 0:
            recommendations.append({
                "priority": "critical",
                "action": "Investigate critical errors immediately",
                "details": f"{by_severity['critical']} critical errors detected",
            })
        if by_type.get("auth_error", {}).get("count", 0) > 2:
            recommendations.append({
                "priority": "high",
                "action": "Check connector authentication credentials",
                "details": "Multiple authentication failures detected",
            })
        if by_type.get("timeout", {}).get("count", 0) > 3:
            recommendations.append({
                "priority": "medium",
                "action": "Consider increasing timeout settings or checking network connectivity",
                "details": "Multiple timeout errors detected",
            })

        return {
            "total_errors": len(errors),
            "by_type": {
                k: {"count": v["count"], "last_occurrence": _iso(v["last_occurrence"])}
                for k, v in by_type.items()
            },
            "by_severity": by_severity,
            "trending": trending,
            "recommendations": recommendations,
        }

    def get_connector_metrics(self, connector_id: str) -> Optional[Dict[str, Any]]:
        state = self.connectors.get(connector_id)
        if state is None:
            return None

        metrics = state.metrics
        total = metrics["total_syncs"]
        return {
            "connector_id": connector_id,
            "connector_type": state.connector_type,
            **metrics,
            "error_rate": (metrics["failed_syncs"] / total) * 100 if total else 0,
            "success_rate": (metrics["successful_syncs"] / total) * 100 if total else 0,
            "current_errors_in_window": state.error_window.count(),
        }

    def get_dashboard_widget(self) -> Dict[str, Any]:
        summary = self.get_health_summary()
        connectors = self.get_all_connectors_status()

        recent_activity = [
            {
                "timestamp": sync["start_time"],
                "success": 1 if sync["status"] == SyncStatus.SUCCESS.value else 0,
                "failure": 1 if sync["status"] == SyncStatus.FAILURE.value else 0,
            }
            for sync in self.sync_history[-24:]
        ]

        return {
            "summary": {
                "status": summary["overall_status"],
                "total_connectors": summary["total_connectors"],
                "healthy_counts": summary["by_status"],
                "active_syncs": summary["active_syncs"],
                "total_errors": summary["total_errors_in_window"],
            },
            "connectors": [
                {
                    "id": c["connector_id"],
                    "type": c["connector_type"],
                    "status": c["status"],
                    "sync_status": c["sync_status"],
                    "last_sync": c["last_sync_end"],
                    "error_count": c["error_count"],
                }
                for c in connectors
            ],
            "recent_activity": recent_activity,
            "issues": summary["issues"][:5],
            "last_updated": _utc_now_iso(),
        }

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------
    def add_status_change_listener(self, listener: StatusListener) -> None:
        if listener not in self.listeners:
            self.listeners.append(listener)

    def remove_status_change_listener(self, listener: StatusListener) -> None:
        if listener in self.listeners:
            self.listeners.remove(listener)

    # ------------------------------------------------------------------
    # Health checks and administration
    # ------------------------------------------------------------------
    async def perform_health_check(
        self,
        connector_id: str,
        check_fn: Callable[[], Awaitable[Dict[str, Any]]],
    ) -> Dict[str, Any]:
        """
        Run ``check_fn`` with the configured timeout and fold the outcome into
        the connector's status.

        A healthy result marks the connector HEALTHY; an unhealthy result or
        an exception is recorded as a HIGH severity error.
        """
        state = self.connectors.get(connector_id)
        if state is None:
            return dict(self.NOT_REGISTERED)

        started = _now_ms()
        timeout_seconds = self.config["sync_timeout_ms"] / 1000

        try:
            result = await asyncio.wait_for(check_fn(), timeout=timeout_seconds)
        except asyncio.TimeoutError:
            return self._health_check_failed(connector_id, state, "Health check timed out", started)
        except Exception as e:
            return self._health_check_failed(connector_id, state, str(e), started)

        duration = _now_ms() - started
        state.last_health_check = _utc_now_iso()
        healthy = bool(result.get("healthy"))

        if healthy:
            previous_status = state.status
            state.status = ConnectorStatus.HEALTHY
            state.status_message = result.get("message") or "Health check passed"
            if previous_status != state.status:
                state.last_status_change = _utc_now_iso()
                self._notify_status_change(connector_id, previous_status, state.status)
        else:
            self.track_sync_error(connector_id, {
                "type": "health_check_failed",
                "message": result.get("message") or "Health check failed",
                "severity": ErrorSeverity.HIGH,
            })

        logger.debug(f"connector.health_check.duration={duration:.0f} connector={connector_id} healthy={healthy}")

        return {
            "success": True,
            "healthy": healthy,
            "message": result.get("message"),
            "duration": duration,
            "connector_status": state.status.value,
        }

    def _health_check_failed(
        self, connector_id: str, state: ConnectorState, message: str, started: float
    ) -> Dict[str, Any]:
        self.track_sync_error(connector_id, {
            "type": "health_check_error",
            "message": message,
            "severity": ErrorSeverity.HIGH,
        })
        return {
            "success": False,
            "healthy": False,
            "message": message,
            "duration": _now_ms() - started,
            "connector_status": state.status.value,
        }

    def set_connector_enabled(self, connector_id: str, enabled: bool) -> Dict[str, Any]:
        state = self.connectors.get(connector_id)
        if state is None:
            return dict(self.NOT_REGISTERED)

        previous_status = state.status
        state.is_enabled = enabled
        state.update_status()
        logger.info(f"Connector {connector_id} enabled={enabled}")

        if previous_status != state.status:
            self._notify_status_change(connector_id, previous_status, state.status)

        return {
            "success": True,
            "connector_id": connector_id,
            "enabled": enabled,
            "status": state.status.value,
        }

    def reset_connector_metrics(self, connector_id: str) -> Dict[str, Any]:
        state = self.connectors.get(connector_id)
        if state is None:
            return dict(self.NOT_REGISTERED)

        state.metrics = _empty_metrics()
        state.error_window.clear()
        state.error_history = []
        state.last_error = None
        state.update_status()

        logger.info(f"Connector metrics reset: {connector_id}")
        return {"success": True, "connector_id": connector_id, "status": state.status.value}

    def get_config(self) -> Dict[str, int]:
        return dict(self.config)

    def update_config(self, updates: Dict[str, int]) -> None:
        """Apply new thresholds; error windows restart empty."""
        self.config = {**self.config, **updates}
        for state in self.connectors.values():
            state.config = self.config
            state.error_window = ActivityWindow(self.config["error_window_ms"])
        logger.info(f"Connector health config updated: {updates}")

    def reset(self) -> None:
        self.connectors.clear()
        self.listeners.clear()
        self.sync_history = []
        self.config = default_config()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _add_to_sync_history(self, entry: Dict[str, Any]) -> None:
        self.sync_history.append(entry)
        overflow = len(self.sync_history) - self.config["history_size"]
        if overflow > 0:
            del self.sync_history[:overflow]

    def _update_sync_history(self, sync_id: str, updates: Dict[str, Any]) -> None:
        for entry in self.sync_history:
            if entry["sync_id"] == sync_id:
                entry.update(updates)
                return

    def _check_and_notify_status_change(self, state: ConnectorState) -> None:
        change = state.update_status()
        if change["changed"]:
            self._notify_status_change(state.connector_id, change["old_status"], change["new_status"])

    def _notify_status_change(self, connector_id: str, old_status: Any, new_status: Any) -> None:
        old_value, new_value = _value(old_status), _value(new_status)
        logger.info(f"Connector {connector_id} status changed: {old_value} -> {new_value}")

        for listener in list(self.listeners):
            try:
                listener(connector_id, old_value, new_value)
            except Exception as e:
                logger.warning(f"Connector status listener error: {e}")


# Global service instance
connector_health_service = ConnectorHealthService()
