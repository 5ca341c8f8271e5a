"""
Almacenamiento de los XML generados (TRA, TA y copias de auditoría)
"""
import os
import tempfile
from abc import ABC, abstractmethod

from afipws.core.exceptions import FileAccessError


class TicketStore(ABC):
    """Operaciones mínimas sobre archivos que necesita el ciclo de vida del TA."""

    @abstractmethod
    def exists(self, path: str) -> bool: ...

    @abstractmethod
    def get(self, path: str) -> bytes: ...

    @abstractmethod
    def put(self, path: str, content) -> None: ...

    @abstractmethod
    def delete(self, path: str) -> None: ...

    @abstractmethod
    def is_directory(self, path: str) -> bool: ...

    @abstractmethod
    def make_directory(self, path: str, mode: int = 0o755, recursive: bool = False) -> None: ...


class LocalFileSystem(TicketStore):
    """Implementación sobre el sistema de archivos local.

    `put` escribe en un temporal del mismo directorio y lo renombra, de modo
    que un lector concurrente nunca ve un TA escrito a medias.
    """

    def exists(self, path):
        return os.path.exists(path)

    def get(self, path):
        try:
            with open(path, "rb") as f:
                return f.read()
        except OSError as e:
            raise FileAccessError(path, f"Fallo al abrir: {path} ({e})") from e

    def put(self, path, content):
        if isinstance(content, str):
            content = content.encode("utf-8")

        directory = os.path.dirname(os.path.abspath(path))
        try:
            fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".tmp-")
        except OSError as e:
            raise FileAccessError(path, f"No se pudo escribir {path} ({e})") from e

        try:
            with os.fdopen(fd, "wb") as f:
                f.write(content)
            os.replace(tmp_path, path)
        except OSError as e:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise FileAccessError(path, f"No se pudo escribir {path} ({e})") from e

    def delete(self, path):
        try:
            os.unlink(path)
        except OSError as e:
            raise FileAccessError(path, f"No se pudo eliminar {path} ({e})") from e

    def is_directory(self, path):
        return os.path.isdir(path)

    def make_directory(self, path, mode=0o755, recursive=False):
        try:
            if recursive:
                os.makedirs(path, mode=mode, exist_ok=True)
            else:
                os.mkdir(path, mode)
        except OSError as e:
            raise FileAccessError(path, f"No se pudo crear el directorio {path} ({e})") from e
