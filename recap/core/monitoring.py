"""调用监控。

按 ``service_type:service_name`` 汇总外部服务调用次数、失败次数与耗时，
由 ``@monitor`` 装饰器自动上报。
"""

from __future__ import annotations

import inspect
import logging
import threading
import time
from collections import deque
from dataclasses import dataclass, field
from functools import wraps
from typing import Dict, List, Optional

logger = logging.getLogger("recap.core.monitoring")


@dataclass
class MonitoringConfig:
    """监控配置"""

    enabled: bool = True
    max_samples_per_service: int = 1000
    enable_percentiles: bool = True


@dataclass
class ServiceMetrics:
    """服务指标汇总"""

    service_type: str
    service_name: str
    total_calls: int = 0
    success_calls: int = 0
    failed_calls: int = 0
    response_times: deque = field(default_factory=lambda: deque(maxlen=1000))
    avg_response_time: float = 0.0
    max_response_time: float = 0.0
    p95_response_time: float = 0.0
    p99_response_time: float = 0.0

    @property
    def error_rate(self) -> float:
        if self.total_calls == 0:
            return 0.0
        return self.failed_calls / self.total_calls

    @property
    def success_rate(self) -> float:
        return 1.0 - self.error_rate

    def update_response_time(self, duration: float, enable_percentiles: bool = True) -> None:
        self.response_times.append(duration)

        sorted_times = sorted(self.response_times)
        self.avg_response_time = sum(sorted_times) / len(sorted_times)
        self.max_response_time = sorted_times[-1]

        if enable_percentiles and len(sorted_times) >= 20:
            self.p95_response_time = _percentile(sorted_times, 0.95)
            self.p99_response_time = _percentile(sorted_times, 0.99)


def _percentile(sorted_values: List[float], percentile: float) -> float:
    if not sorted_values:
        return 0.0
    index = int(len(sorted_values) * percentile)
    index = min(max(index, 0), len(sorted_values) - 1)
    return sorted_values[index]


class MetricsCollector:
    """指标收集器（线程安全）"""

    def __init__(self, config: MonitoringConfig):
        self.config = config
        self._metrics: Dict[str, ServiceMetrics] = {}
        self._lock = threading.Lock()

    def record_call(
        self,
        service_type: str,
        service_name: str,
        success: bool,
        duration: float,
    ) -> None:
        key = f"{service_type}:{service_name}"
        with self._lock:
            if key not in self._metrics:
                self._metrics[key] = ServiceMetrics(
                    service_type=service_type,
                    service_name=service_name,
                    response_times=deque(maxlen=self.config.max_samples_per_service),
                )

            metrics = self._metrics[key]
            metrics.total_calls += 1
            if success:
                metrics.success_calls += 1
            else:
                metrics.failed_calls += 1

            metrics.update_response_time(duration, self.config.enable_percentiles)

        if not success:
            logger.debug(
                "Recorded failed call %s after %.3fs (error_rate=%.2f)",
                key,
                duration,
                metrics.error_rate,
            )

    def get_metrics(self, service_type: str, service_name: str) -> Optional[ServiceMetrics]:
        key = f"{service_type}:{service_name}"
        with self._lock:
            return self._metrics.get(key)

    def get_all_metrics(self) -> Dict[str, ServiceMetrics]:
        with self._lock:
            return dict(self._metrics)


def monitor(service_type: str, service_name: str):
    """监控装饰器：自动收集调用指标"""

    def decorator(func):
        if inspect.iscoroutinefunction(func):

            @wraps(func)
            async def async_wrapper(*args, **kwargs):
                monitoring = MonitoringSystem.get_instance()
                if not monitoring.config.enabled:
                    return await func(*args, **kwargs)

                start_time = time.monotonic()
                success = False
                try:
                    result = await func(*args, **kwargs)
                    success = True
                    return result
                finally:
                    monitoring.collector.record_call(
                        service_type,
                        service_name,
                        success,
                        time.monotonic() - start_time,
                    )

            return async_wrapper

        @wraps(func)
        def sync_wrapper(*args, **kwargs):
            monitoring = MonitoringSystem.get_instance()
            if not monitoring.config.enabled:
                return func(*args, **kwargs)

            start_time = time.monotonic()
            success = False
            try:
                result = func(*args, **kwargs)
                success = True
                return result
            finally:
                monitoring.collector.record_call(
                    service_type,
                    service_name,
                    success,
                    time.monotonic() - start_time,
                )

        return sync_wrapper

    return decorator


class MonitoringSystem:
    """监控系统（单例模式）"""

    _instance: Optional["MonitoringSystem"] = None
    _lock = threading.Lock()

    def __init__(self, config: Optional[MonitoringConfig] = None):
        if config is None:
            config = MonitoringConfig()

        self.config = config
        self.collector = MetricsCollector(config)

    @classmethod
    def get_instance(cls, config: Optional[MonitoringConfig] = None) -> "MonitoringSystem":
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = cls(config)
        return cls._instance

    @classmethod
    def reset(cls, config: Optional[MonitoringConfig] = None) -> "MonitoringSystem":
        with cls._lock:
            cls._instance = cls(config)
        return cls._instance


def metrics_snapshot() -> List[Dict[str, object]]:
    """当前进程内各服务的调用指标，按 service_type:service_name 排序"""
    collector = MonitoringSystem.get_instance().collector
    snapshot: List[Dict[str, object]] = []
    for key, metrics in sorted(collector.get_all_metrics().items()):
        snapshot.append(
            {
                "service": key,
                "calls": metrics.total_calls,
                "failed": metrics.failed_calls,
                "success_rate": round(metrics.success_rate, 3),
                "avg_seconds": round(metrics.avg_response_time, 3),
                "max_seconds": round(metrics.max_response_time, 3),
                "p95_seconds": round(metrics.p95_response_time, 3),
                "p99_seconds": round(metrics.p99_response_time, 3),
            }
        )
    return snapshot


def log_metrics_summary(target: Optional[logging.Logger] = None) -> None:
    target = target or logger
    for entry in metrics_snapshot():
        target.info(
            "Service metrics %s: calls=%s failed=%s success_rate=%s avg=%ss max=%ss",
            entry["service"],
            entry["calls"],
            entry["failed"],
            entry["success_rate"],
            entry["avg_seconds"],
            entry["max_seconds"],
        )
