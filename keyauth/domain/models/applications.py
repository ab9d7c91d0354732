"""Domain model for third-party applications keys are issued for."""

from dataclasses import dataclass
from typing import Any, Dict

from keyauth.domain.models.common import AppName

DEFAULT_APP_NAME = AppName("default")


@dataclass(frozen=True)
class ApplicationRecord:
    name: AppName
    is_active: bool = True

    def to_document(self) -> Dict[str, Any]:
        return {"isActive": self.is_active}

    @classmethod
    def from_document(cls, name: str, document: Dict[str, Any]) -> "ApplicationRecord":
        return cls(name=AppName(name), is_active=bool(document.get("isActive", True)))

    @property
    def status(self) -> str:
        return "ACTIVE" if self.is_active else "PAUSED"
