"""
Console component interfaces

Abstract seams between the view layer and its collaborators, so fetchers
and coordinators can run against fakes in tests.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional


class INotifier(ABC):
    """Sink for user-facing notifications"""

    @abstractmethod
    def success(self, message: str) -> Any:
        pass

    @abstractmethod
    def error(self, message: str) -> Any:
        pass

    @abstractmethod
    def info(self, message: str) -> Any:
        pass

    @abstractmethod
    def warning(self, message: str) -> Any:
        pass


class IResourceGateway(ABC):
    """REST operations of one resource family

    Implementations return the raw backend payload and raise the
    ``TransportException`` family on network or HTTP failures.
    """

    @abstractmethod
    async def list(self, params: Optional[Dict[str, Any]] = None) -> Any:
        pass

    @abstractmethod
    async def get(self, entity_id: str) -> Any:
        pass

    @abstractmethod
    async def create(self, payload: Dict[str, Any]) -> Any:
        pass

    @abstractmethod
    async def update(self, entity_id: str, payload: Dict[str, Any]) -> Any:
        pass

    @abstractmethod
    async def delete(self, entity_id: str) -> Any:
        pass

    @abstractmethod
    async def transition(self, entity_id: str, name: str,
                         payload: Optional[Dict[str, Any]] = None) -> Any:
        pass
