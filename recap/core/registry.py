"""服务注册中心

按 (service_type, name) 管理 ASR 与 LLM 厂商实现：
- 通过 ``register_service`` 装饰器在模块导入时注册
- 通过 ``ServiceRegistry.get`` 获取实例（默认缓存；传入 config 时每次新建）
"""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass
from threading import Lock
from typing import Any, Callable, Dict, List, Optional, Type

logger = logging.getLogger(__name__)


@dataclass
class ServiceMetadata:
    """服务元数据

    Attributes:
        name: 服务名称（如 "deepgram", "anthropic"）
        service_type: 服务类型（"asr", "llm"）
        provider: 厂商标识（默认与 name 相同）
        priority: 优先级（数值越小优先级越高）
        description: 服务描述
        display_name: 用户友好的显示名称
    """

    name: str
    service_type: str
    provider: str = ""
    priority: int = 100
    description: str = ""
    display_name: str = ""

    def __post_init__(self) -> None:
        if not self.provider:
            self.provider = self.name
        if not self.display_name:
            self.display_name = self.name.capitalize()


class ServiceRegistry:
    # 格式: {service_type: {name: (service_class, metadata, instance)}}
    _services: Dict[str, Dict[str, tuple[Type[Any], ServiceMetadata, Optional[Any]]]] = {
        "asr": {},
        "llm": {},
    }

    _lock = Lock()

    @classmethod
    def register(
        cls,
        service_type: str,
        name: str,
        service_class: Type[Any],
        metadata: Optional[ServiceMetadata] = None,
    ) -> None:
        if service_type not in cls._services:
            raise ValueError(
                f"Unsupported service_type: {service_type}. "
                f"Supported types: {list(cls._services.keys())}"
            )

        if metadata is None:
            metadata = ServiceMetadata(name=name, service_type=service_type)

        with cls._lock:
            cls._services[service_type][name] = (service_class, metadata, None)
            logger.debug(
                "Registered %s service: %s (class=%s, priority=%s)",
                service_type,
                name,
                service_class.__name__,
                metadata.priority,
            )

    @classmethod
    def get(
        cls,
        service_type: str,
        name: str,
        force_new: bool = False,
        config: Optional[Any] = None,
    ) -> Any:
        """获取服务实例

        首次调用时创建并缓存实例；传入 config 或 force_new 时总是新建且不缓存。

        Raises:
            ValueError: 服务类型不支持或服务未注册
            RuntimeError: 服务实例化失败（如缺少 API Key）
        """
        if service_type not in cls._services:
            raise ValueError(f"Unsupported service_type: {service_type}")

        if name not in cls._services[service_type]:
            available = list(cls._services[service_type].keys())
            raise ValueError(
                f"Service '{name}' not registered for type '{service_type}'. "
                f"Available services: {available}"
            )

        with cls._lock:
            service_class, metadata, cached_instance = cls._services[service_type][name]

            if config is not None:
                force_new = True

            if not force_new and cached_instance is not None:
                return cached_instance

            try:
                kwargs: dict[str, Any] = {}
                sig = inspect.signature(service_class.__init__)
                if "config" in sig.parameters and config is not None:
                    kwargs["config"] = config
                instance = service_class(**kwargs)
            except Exception as exc:
                logger.error(
                    "Failed to instantiate %s service '%s': %s", service_type, name, exc
                )
                raise RuntimeError(
                    f"Failed to instantiate {service_type} service '{name}': {exc}"
                ) from exc

            if not force_new:
                cls._services[service_type][name] = (service_class, metadata, instance)
            return instance

    @classmethod
    def list_services(cls, service_type: str) -> List[str]:
        if service_type not in cls._services:
            raise ValueError(f"Unsupported service_type: {service_type}")
        return list(cls._services[service_type].keys())

    @classmethod
    def get_metadata(cls, service_type: str, name: str) -> ServiceMetadata:
        if not cls.is_registered(service_type, name):
            raise ValueError(f"Service '{name}' not registered for type '{service_type}'")
        _, metadata, _ = cls._services[service_type][name]
        return metadata

    @classmethod
    def describe(cls, service_type: str) -> List[ServiceMetadata]:
        """按优先级（数值小者在前）返回已注册服务的元数据"""
        if service_type not in cls._services:
            raise ValueError(f"Unsupported service_type: {service_type}")
        entries = [metadata for _, metadata, _ in cls._services[service_type].values()]
        return sorted(entries, key=lambda metadata: (metadata.priority, metadata.name))

    @classmethod
    def is_registered(cls, service_type: str, name: str) -> bool:
        return service_type in cls._services and name in cls._services[service_type]

    @classmethod
    def reset_instances(cls, service_type: Optional[str] = None) -> None:
        """丢弃缓存的实例（保留注册信息），主要用于测试"""
        with cls._lock:
            types = [service_type] if service_type else list(cls._services)
            for svc_type in types:
                for name, (service_class, metadata, _) in list(cls._services[svc_type].items()):
                    cls._services[svc_type][name] = (service_class, metadata, None)


def register_service(
    service_type: str,
    name: str,
    metadata: Optional[ServiceMetadata] = None,
) -> Callable[[Type[Any]], Type[Any]]:
    """服务注册装饰器

    Example:
        @register_service("asr", "deepgram")
        class DeepgramASRService(ASRService):
            ...
    """

    def decorator(cls: Type[Any]) -> Type[Any]:
        ServiceRegistry.register(service_type, name, cls, metadata)
        return cls

    return decorator
