"""
Excepciones del cliente de web services de AFIP
"""
from typing import Any, Mapping, Optional


class AfipWsError(Exception):
    """Error base para toda falla de autenticación o conexión con AFIP."""

    def __init__(self, message: str, *, context: Optional[Mapping[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context = dict(context or {})


class FileAccessError(AfipWsError):
    """Certificado, clave, ticket o directorio inexistente o ilegible."""

    def __init__(self, path: str, message: Optional[str] = None):
        super().__init__(
            message or f"Error al abrir el archivo {path}, verifique su existencia",
            context={"path": path},
        )
        self.path = path


class SigningError(AfipWsError):
    """Falló la generación de la firma PKCS#7 del TRA."""
    pass


class TransportFault(AfipWsError):
    """SOAP Fault o falla de red informada por el servicio remoto."""

    def __init__(self, code: str, message: str):
        super().__init__(
            f"SOAP Fault: [{code}]: {message}",
            context={"faultcode": code, "faultstring": message},
        )
        self.code = code
        self.fault_message = message


class ServiceUnavailableError(TransportFault):
    """El método dummy del servicio reporta algún servidor caído."""

    def __init__(self, service: str, status: Mapping[str, Any]):
        degraded = ", ".join(f"{k}={v}" for k, v in status.items() if v != "OK")
        super().__init__("unavailable", f"Servicio {service} no disponible ({degraded})")
        self.service = service
        self.status = dict(status)


class ConfigurationError(AfipWsError):
    """Servicio desconocido o sin URL configurada."""
    pass
