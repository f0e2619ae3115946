import json
import logging
import os
import platform
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Dict, Any

from settings import CREDENTIALS_DIR

logger = logging.getLogger(__name__)


class CredentialStore(ABC):
    """Key-value persistence for credential records, addressed by record name"""

    @abstractmethod
    def get(self, name: str) -> Optional[Dict[str, Any]]:
        """Return the stored record, or None when it does not exist"""

    @abstractmethod
    def set(self, name: str, record: Dict[str, Any]) -> None:
        """Replace the record stored under ``name``"""

    @abstractmethod
    def exists(self, name: str) -> bool:
        pass

    @abstractmethod
    def delete(self, name: str) -> None:
        pass


class FileCredentialStore(CredentialStore):
    """Stores each record as ``<directory>/<name>.json`` with owner-only permissions

    Args:
        directory: Default location of every record
        paths: Optional per-record file paths that take precedence over ``directory``
    """

    def __init__(self, directory: Optional[str] = None, paths: Optional[Dict[str, str]] = None):
        self.directory = Path(directory if directory else CREDENTIALS_DIR).expanduser()
        self.paths = {name: Path(path).expanduser() for name, path in (paths or {}).items()}
        self._ensure_secure_directory(self.directory)

    def _ensure_secure_directory(self, directory: Path):
        if not directory.exists():
            directory.mkdir(parents=True, exist_ok=True)
            # Set directory permissions to 700 on Unix-like systems
            if platform.system() != "Windows":
                os.chmod(directory, 0o700)

    def path_for(self, name: str) -> Path:
        if name in self.paths:
            return self.paths[name]
        return self.directory / f"{name}.json"

    def get(self, name: str) -> Optional[Dict[str, Any]]:
        path = self.path_for(name)
        if not path.exists():
            return None

        try:
            data = json.loads(path.read_text())
        except (json.JSONDecodeError, IOError) as e:
            logger.warning(f"Ignoring unreadable credential record {path}: {e}")
            return None

        if not isinstance(data, dict):
            logger.warning(f"Ignoring credential record {path}: expected an object")
            return None
        return data

    def set(self, name: str, record: Dict[str, Any]) -> None:
        path = self.path_for(name)
        self._ensure_secure_directory(path.parent)
        path.write_text(json.dumps(record, indent=2))

        # Set file permissions to 600 on Unix-like systems
        if platform.system() != "Windows":
            os.chmod(path, 0o600)
        logger.debug(f"Saved credential record '{name}' to {path}")

    def exists(self, name: str) -> bool:
        return self.path_for(name).exists()

    def delete(self, name: str) -> None:
        path = self.path_for(name)
        if path.exists():
            path.unlink()


class InMemoryCredentialStore(CredentialStore):
    """Dictionary-backed store, nothing touches the disk"""

    def __init__(self, records: Optional[Dict[str, Dict[str, Any]]] = None):
        self._records: Dict[str, Dict[str, Any]] = dict(records or {})

    def get(self, name: str) -> Optional[Dict[str, Any]]:
        record = self._records.get(name)
        return dict(record) if record is not None else None

    def set(self, name: str, record: Dict[str, Any]) -> None:
        self._records[name] = dict(record)

    def exists(self, name: str) -> bool:
        return name in self._records

    def delete(self, name: str) -> None:
        self._records.pop(name, None)
