from __future__ import annotations

import base64
import json
import logging
from enum import Enum
from functools import lru_cache
from pathlib import Path
from threading import Lock
from typing import Dict, List, Optional

from pydantic import BaseModel

from errors import ConfigError
from settings import get_settings

logger = logging.getLogger(__name__)


class ParameterType(str, Enum):
    string = "String"
    string_list = "StringList"
    secure_string = "SecureString"


class Parameter(BaseModel):
    name: str
    value: str
    type: ParameterType = ParameterType.string
    version: int = 1


class ParameterNotFound(KeyError):
    def __str__(self) -> str:
        return str(self.args[0]) if self.args else super().__str__()


class ParameterAlreadyExists(ValueError):
    pass


class MockParameterStore:
    """In-process stand-in for SSM Parameter Store.

    With a ``persistence_path`` every call re-reads the JSON file first, so
    separate processes sharing the file observe each other's writes.
    """

    def __init__(self, persistence_path: Optional[Path] = None) -> None:
        self._parameters: Dict[str, Parameter] = {}
        self.persistence_path = persistence_path
        self._lock = Lock()
        if persistence_path:
            persistence_path.parent.mkdir(parents=True, exist_ok=True)
            self._load_from_disk()

    def put_parameter(
        self,
        name: str,
        value: str,
        type: ParameterType = ParameterType.string,
        overwrite: bool = False,
    ) -> int:
        """Store ``value`` under ``name`` and return the new version."""
        with self._lock:
            self._load_from_disk()
            existing = self._parameters.get(name)
            if existing is not None and not overwrite:
                raise ParameterAlreadyExists(
                    f"Parameter {name!r} already exists; pass overwrite=True to replace it."
                )
            version = existing.version + 1 if existing else 1
            self._parameters[name] = Parameter(name=name, value=value, type=type, version=version)
            self._persist()
            return version

    def get_parameter(self, name: str, with_decryption: bool = False) -> Parameter:
        with self._lock:
            self._load_from_disk()
            parameter = self._parameters.get(name)
            if parameter is None:
                raise ParameterNotFound(f"Parameter {name!r} not found.")
            parameter = parameter.model_copy(deep=True)

        if parameter.type is ParameterType.secure_string and not with_decryption:
            parameter.value = base64.b64encode(parameter.value.encode("utf-8")).decode("ascii")
        return parameter

    def list_parameters(self) -> List[str]:
        with self._lock:
            self._load_from_disk()
            return sorted(self._parameters)

    def _persist(self) -> None:
        if not self.persistence_path:
            return
        payload = {name: item.model_dump(mode="json") for name, item in self._parameters.items()}
        self.persistence_path.write_text(
            json.dumps(payload, indent=2, sort_keys=True, ensure_ascii=False), encoding="utf-8"
        )

    def _load_from_disk(self) -> None:
        if not self.persistence_path or not self.persistence_path.exists():
            return

        try:
            raw = self.persistence_path.read_text(encoding="utf-8") or "{}"
            data = json.loads(raw)
        except (OSError, json.JSONDecodeError):
            data = {}

        for name, payload in data.items():
            self._parameters[name] = Parameter.model_validate(payload)


def read_parameter(
    store: MockParameterStore, name: str, with_decryption: bool = True
) -> Optional[str]:
    """Return the parameter value, or ``None`` when it is missing."""
    try:
        return store.get_parameter(name, with_decryption=with_decryption).value
    except ParameterNotFound:
        logger.warning("Failed to get parameter %s", name, extra={"param_name": name})
        return None


def read_required_parameter(
    store: MockParameterStore, name: str, with_decryption: bool = True
) -> str:
    value = read_parameter(store, name, with_decryption=with_decryption)
    if not value:
        raise ConfigError(f"Required parameter {name} is missing or could not be retrieved")
    return value


def parse_comma_separated_list(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


@lru_cache
def build_default_parameter_store(path: Optional[str] = None) -> MockParameterStore:
    settings = get_settings()
    store_path = settings.parameter_store_path if path is None else path
    persistence = Path(store_path) if store_path else None
    return MockParameterStore(persistence_path=persistence)
