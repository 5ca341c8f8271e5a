import requests
from zeep.exceptions import Fault, TransportError

from afipws.core.auth import AfipAuthenticator
from afipws.core.exceptions import ConfigurationError, ServiceUnavailableError, TransportFault
from afipws.core.models import CREDENTIAL_SHAPES, ServiceConnection, WebServiceConfig, shape_credentials
from afipws.core.storage import LocalFileSystem
from afipws.utils.logger import setup_logger
from afipws.utils.soap import build_soap_client

logger = setup_logger(__name__)

# Método de verificación ("ping") de cada servicio
STATUS_OPERATIONS = {
    "wsfe": "FEDummy",
    "wsmtxca": "dummy",
    "wspn3": "dummy",
}

STATUS_FIELDS = {
    "app_server": ("AppServer", "appserver"),
    "db_server": ("DbServer", "dbserver"),
    "auth_server": ("AuthServer", "authserver"),
}


def _field(result, name):
    if isinstance(result, dict):
        return result.get(name)
    return getattr(result, name, None)


def read_server_status(result):
    status = {}
    for key, names in STATUS_FIELDS.items():
        status[key] = next((_field(result, n) for n in names if _field(result, n) is not None), None)
    return status


class AfipClient:
    """Abre conexiones autenticadas contra los web services de AFIP"""

    def __init__(self, config: WebServiceConfig = None, store=None, authenticator=None, signer=None):
        self.config = config or WebServiceConfig.from_config()
        self.store = store or LocalFileSystem()
        self.authenticator = authenticator or AfipAuthenticator(self.config, store=self.store, signer=signer)

        # Guardar referencias
        self.identity = self.config.identity
        self.testing = self.config.sandbox

        if self.testing:
            logger.warning("MODO HOMOLOGACIÓN ACTIVO")

    def _check_service(self, service):
        if service not in CREDENTIAL_SHAPES:
            raise ConfigurationError(f"Servicio desconocido: {service}")

    def _open(self, service):
        return build_soap_client(
            self.config.wsdl(service),
            location=self.config.endpoint(service),
            proxies=self.config.proxies,
            timeout=self.config.timeout,
            verify_ssl=self.config.verify_ssl,
        )

    def connect(self, service, check_status=None):
        """
        Asegura un TA vigente y devuelve el cliente SOAP del servicio con sus credenciales.

        Args:
            service (str): wsfe, wsmtxca o wspn3
            check_status (bool, optional): ejecutar el método dummy antes de devolver
                la conexión; por defecto WebServiceConfig.check_status

        Returns:
            ServiceConnection: cliente, proxy del servicio, TA y credenciales
        """
        self._check_service(service)
        self.config.endpoint(service)

        ticket = self.authenticator.get_ticket(service)
        client, proxy = self._open(service)
        credentials = shape_credentials(service, ticket, self.identity)

        if check_status is None:
            check_status = self.config.check_status
        if check_status:
            self.check_server_status(service, proxy, fail=True)

        logger.info(f"Conexión con {service} lista ({self.config.endpoint(service)})")
        return ServiceConnection(
            service=service,
            client=client,
            proxy=proxy,
            ticket=ticket,
            credentials=credentials,
        )

    def authenticate(self, service="wsfe", force_new=False):
        """Credenciales del servicio como diccionario, renovando el TA si hace falta"""
        self._check_service(service)
        ticket = self.authenticator.get_ticket(service, force_new)
        return shape_credentials(service, ticket, self.identity).model_dump()

    def check_server_status(self, service, proxy=None, fail=False):
        self._check_service(service)
        if proxy is None:
            _, proxy = self._open(service)

        operation = STATUS_OPERATIONS[service]
        try:
            result = getattr(proxy, operation)()
        except Fault as e:
            raise TransportFault(str(e.code or "soap:Server"), e.message) from e
        except (TransportError, requests.exceptions.RequestException) as e:
            raise TransportFault("network", str(e)) from e

        status = read_server_status(result)
        logger.debug(f"Estado de {service}: {status}")

        if fail and any(value != "OK" for value in status.values()):
            logger.error(f"Servicio {service} no disponible: {status}")
            raise ServiceUnavailableError(service, status)
        return status
