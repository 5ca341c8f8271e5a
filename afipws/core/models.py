"""
Modelos de datos para la autenticación con WSAA y los servicios de AFIP
"""
import os
import xml.etree.ElementTree as ET
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from afipws.config import Config
from afipws.core.exceptions import ConfigurationError

# Tolerancia de reloj del TRA (no tiene relación con la vigencia del TA)
TRA_CLOCK_SKEW = timedelta(seconds=60)


class Identity(BaseModel):
    """Contribuyente y entorno de la sesión"""
    model_config = ConfigDict(frozen=True)

    cuit: str
    sandbox: bool = True


class WebServiceConfig(BaseModel):
    """Configuración de archivos, URLs y transporte para los web services"""
    model_config = ConfigDict(frozen=True)

    cuit: str
    sandbox: bool = True
    cert_path: str
    key_path: str
    passphrase: Optional[str] = None
    wsaa_wsdl: Optional[str] = Field(None, description="WSDL de WSAA (por defecto <url>?WSDL)")
    proxy_host: Optional[str] = None
    proxy_port: Optional[int] = None
    urls: Dict[str, str] = Field(default_factory=dict, description="URLs de homologación")
    urls_production: Dict[str, str] = Field(default_factory=dict, description="URLs de producción")
    wsdls: Dict[str, str] = Field(default_factory=dict, description="WSDL por servicio")
    ticket_dir: str
    timeout: int = 30
    verify_ssl: bool = True
    check_status: bool = True

    @classmethod
    def from_config(cls, **overrides):
        """Arma la configuración a partir de las variables de entorno (Config)"""
        afip = Config.AFIP_CONFIG
        values = {
            "cuit": afip["cuit"],
            "sandbox": afip["testing"],
            "cert_path": afip["cert_path"],
            "key_path": afip["key_path"],
            "passphrase": afip["passphrase"],
            "wsaa_wsdl": afip["wsaa_wsdl"],
            "proxy_host": afip["proxy_host"],
            "proxy_port": afip["proxy_port"],
            "urls": {ws: urls["testing"] for ws, urls in Config.AFIP_URLS.items()},
            "urls_production": {ws: urls["production"] for ws, urls in Config.AFIP_URLS.items()},
            "ticket_dir": afip["ticket_dir"],
            "timeout": afip["timeout"],
            "verify_ssl": afip["verify_ssl"],
            "check_status": afip["check_status"],
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        if not values["cuit"]:
            raise ConfigurationError("Falta el CUIT (AFIP_CUIT)")
        return cls(**values)

    @property
    def identity(self) -> Identity:
        return Identity(cuit=self.cuit, sandbox=self.sandbox)

    def endpoint(self, service: str) -> str:
        urls = self.urls if self.sandbox else self.urls_production
        url = urls.get(service)
        if not url:
            environment = "homologación" if self.sandbox else "producción"
            raise ConfigurationError(f"No hay URL de {environment} configurada para {service}")
        return url

    def wsdl(self, service: str) -> str:
        if service == "wsaa" and self.wsaa_wsdl:
            return self.wsaa_wsdl
        return self.wsdls.get(service) or f"{self.endpoint(service)}?WSDL"

    @property
    def proxies(self) -> Optional[Dict[str, str]]:
        if not self.proxy_host:
            return None
        address = self.proxy_host if not self.proxy_port else f"{self.proxy_host}:{self.proxy_port}"
        return {"http": f"http://{address}", "https": f"http://{address}"}

    def required_directories(self) -> List[str]:
        return [self.ticket_dir]

    def tra_path(self, service: str) -> str:
        return os.path.join(self.ticket_dir, f"TRA-{service}.xml")

    def ticket_path(self, service: str) -> str:
        return os.path.join(self.ticket_dir, f"TA-{self.cuit}-{service}.xml")

    def audit_path(self, name: str) -> str:
        return os.path.join(self.ticket_dir, name)


class TicketRequest(BaseModel):
    """Ticket de Requerimiento de Acceso (TRA)"""
    unique_id: int
    generation_time: datetime
    expiration_time: datetime
    service: str

    @classmethod
    def issue(cls, service: str, now: Optional[datetime] = None):
        now = (now or datetime.now()).astimezone().replace(microsecond=0)
        return cls(
            unique_id=int(now.timestamp()),
            generation_time=now - TRA_CLOCK_SKEW,
            expiration_time=now + TRA_CLOCK_SKEW,
            service=service,
        )

    def to_xml(self) -> str:
        root = ET.Element("loginTicketRequest", version="1.0")
        header = ET.SubElement(root, "header")
        ET.SubElement(header, "uniqueId").text = str(self.unique_id)
        ET.SubElement(header, "generationTime").text = self.generation_time.isoformat()
        ET.SubElement(header, "expirationTime").text = self.expiration_time.isoformat()
        ET.SubElement(root, "service").text = self.service
        body = ET.tostring(root, encoding="unicode")
        return f'<?xml version="1.0" encoding="UTF-8"?>\n{body}\n'


class AccessTicket(BaseModel):
    """Ticket de Acceso (TA) emitido por WSAA"""
    token: str
    sign: str
    expiration_time: datetime
    raw: str = Field(..., description="Documento tal como lo devolvió WSAA")

    @classmethod
    def from_xml(cls, content):
        if isinstance(content, bytes):
            content = content.decode("utf-8")

        root = ET.fromstring(content.encode("utf-8"))
        token = root.findtext("credentials/token")
        sign = root.findtext("credentials/sign")
        expiration = root.findtext("header/expirationTime")

        if not token or not sign or not expiration:
            raise ValueError("El TA no contiene credentials/token, credentials/sign o header/expirationTime")

        expiration_time = datetime.fromisoformat(expiration.strip())
        if expiration_time.tzinfo is None:
            expiration_time = expiration_time.astimezone()

        return cls(token=token.strip(), sign=sign.strip(), expiration_time=expiration_time, raw=content)

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        now = (now or datetime.now()).astimezone()
        return self.expiration_time < now


class RenewalOutcome(str, Enum):
    RENEWED = "renewed"
    VALID = "valid"


class WsmtxcaAuthRequest(BaseModel):
    token: str
    sign: str
    cuitRepresentada: str

    @classmethod
    def from_ticket(cls, ticket: AccessTicket, identity: Identity):
        return cls(token=ticket.token, sign=ticket.sign, cuitRepresentada=identity.cuit)


class WsfeAuthRequest(BaseModel):
    Token: str
    Sign: str
    Cuit: str

    @classmethod
    def from_ticket(cls, ticket: AccessTicket, identity: Identity):
        return cls(Token=ticket.token, Sign=ticket.sign, Cuit=identity.cuit)


class Wspn3AuthRequest(BaseModel):
    token: str
    sign: str

    @classmethod
    def from_ticket(cls, ticket: AccessTicket, identity: Identity):
        return cls(token=ticket.token, sign=ticket.sign)


# Forma de las credenciales que espera cada servicio
CREDENTIAL_SHAPES = {
    "wsmtxca": WsmtxcaAuthRequest,
    "wsfe": WsfeAuthRequest,
    "wspn3": Wspn3AuthRequest,
}


def shape_credentials(service: str, ticket: AccessTicket, identity: Identity):
    """Convierte el TA en la estructura de autenticación del servicio"""
    shape = CREDENTIAL_SHAPES.get(service)
    if shape is None:
        raise ConfigurationError(f"Servicio desconocido: {service}")
    return shape.from_ticket(ticket, identity)


class ServiceConnection(BaseModel):
    """Cliente SOAP listo para usar junto con sus credenciales"""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    service: str
    client: Any
    proxy: Any
    ticket: AccessTicket
    credentials: Union[WsmtxcaAuthRequest, WsfeAuthRequest, Wspn3AuthRequest]

    @property
    def auth(self) -> Dict[str, str]:
        return self.credentials.model_dump()
