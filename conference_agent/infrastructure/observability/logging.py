import structlog
import logging
import sys
from typing import Dict, Any, Optional
import os


def setup_logging(
    log_level: str = "INFO",
    log_format: str = "json",
    service_name: str = "conference-voice-agent"
) -> None:
    """Setup structured logging configuration"""

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper(), logging.INFO)
    )

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if log_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    structlog.contextvars.bind_contextvars(
        service=service_name,
        environment=os.getenv("ENVIRONMENT", "development"),
    )


class ContextLogger:
    """Structured events for conversation context and function dispatch"""

    def __init__(self, name: str):
        self.logger = structlog.get_logger(name)

    def log_context_update(
        self,
        session_id: str,
        action: str,
        details: Optional[Dict[str, Any]] = None
    ):
        self.logger.info(
            "context_update",
            session_id=session_id,
            action=action,
            details=details or {}
        )

    def log_function_call(
        self,
        session_id: str,
        function_name: str,
        parameters: Dict[str, Any],
        success: bool,
        result_count: int = 0,
        duration_ms: Optional[float] = None,
        error: Optional[str] = None
    ):
        """Log one dispatched function call for analytics"""

        self.logger.info(
            "function_call",
            session_id=session_id,
            function_name=function_name,
            parameters=parameters,
            success=success,
            result_count=result_count,
            duration_ms=duration_ms,
            error=error
        )


context_logger = ContextLogger("conference_agent")


class MetricsCollector:
    """In-process counters, gauges and latency aggregates"""

    def __init__(self):
        self.latencies: Dict[str, Dict[str, float]] = {}
        self.counters: Dict[str, int] = {}
        self.gauges: Dict[str, float] = {}

    def record_latency(self, operation: str, duration_ms: float):
        entry = self.latencies.setdefault(
            operation, {"count": 0, "sum": 0.0, "min": float("inf"), "max": 0.0}
        )
        entry["count"] += 1
        entry["sum"] += duration_ms
        entry["min"] = min(entry["min"], duration_ms)
        entry["max"] = max(entry["max"], duration_ms)

    def increment_counter(self, name: str, value: int = 1):
        self.counters[name] = self.counters.get(name, 0) + value

    def set_gauge(self, name: str, value: float):
        self.gauges[name] = value

    def get_metrics_summary(self) -> Dict[str, Any]:
        """Get summary of all metrics"""

        latency = {
            operation: {
                "count": entry["count"],
                "avg": entry["sum"] / entry["count"] if entry["count"] else 0,
                "min": entry["min"] if entry["min"] != float("inf") else 0,
                "max": entry["max"],
            }
            for operation, entry in self.latencies.items()
        }
        return {
            "latency": latency,
            "counters": dict(self.counters),
            "gauges": dict(self.gauges),
        }
