import os
import xml.etree.ElementTree as ET
from datetime import datetime

from afipws.core.exceptions import FileAccessError, TransportFault
from afipws.core.models import AccessTicket, RenewalOutcome, WebServiceConfig
from afipws.core.storage import LocalFileSystem, TicketStore
from afipws.services.wsaa import WSAAService
from afipws.utils.cert_utils import TicketSigner
from afipws.utils.logger import setup_logger
from afipws.utils.xml_utils import create_tra_xml, parse_wsaa_response

logger = setup_logger(__name__)


class AfipAuthenticator:
    """
    Mantiene vigente el Ticket de Acceso (TA) por servicio y CUIT.

    No hay bloqueo entre procesos: dos procesos que encuentren el mismo TA
    vencido pueden autenticarse ambos y el último en escribir gana. Si se
    ejecutan instancias concurrentes para un mismo CUIT, el llamador debe
    serializarlas (por ejemplo con un lock de archivo).
    """

    def __init__(self, config: WebServiceConfig, store: TicketStore = None,
                 signer: TicketSigner = None, wsaa: WSAAService = None, clock=None):
        self.config = config
        self.identity = config.identity
        self.store = store or LocalFileSystem()
        self.signer = signer or TicketSigner()
        self.wsaa = wsaa or WSAAService(
            config.endpoint("wsaa"),
            wsdl=config.wsdl("wsaa"),
            proxies=config.proxies,
            timeout=config.timeout,
            verify_ssl=config.verify_ssl,
        )
        self.clock = clock or datetime.now

    def load_ticket(self, service):
        """TA guardado para el servicio, o None si no existe o no se puede leer"""
        path = self.config.ticket_path(service)
        if not self.store.exists(path):
            return None

        try:
            return AccessTicket.from_xml(self.store.get(path))
        except (ET.ParseError, ValueError) as e:
            logger.warning(f"TA ilegible en {path}, se renovará: {e}")
            return None

    def renew_if_needed(self, service):
        ticket = self.load_ticket(service)

        if ticket is None:
            logger.info(f"No hay TA para {service} (CUIT {self.identity.cuit})")
            return RenewalOutcome.RENEWED, self.authenticate(service)

        if ticket.is_expired(self.clock()):
            logger.info(f"TA de {service} vencido el {ticket.expiration_time.isoformat()}")
            return RenewalOutcome.RENEWED, self.authenticate(service)

        logger.debug(f"TA de {service} vigente hasta {ticket.expiration_time.isoformat()}")
        return RenewalOutcome.VALID, ticket

    def check_ta_renovation(self, service):
        """Renueva el TA si falta o está vencido"""
        outcome, _ = self.renew_if_needed(service)
        return outcome

    def get_ticket(self, service="wsfe", force_new=False):
        if force_new:
            return self.authenticate(service)
        _, ticket = self.renew_if_needed(service)
        return ticket

    def _ensure_directory(self, directory):
        if not self.store.is_directory(directory):
            logger.info(f"Creando directorio {directory}")
            self.store.make_directory(directory, 0o777, recursive=True)

    def check_prerequisites(self):
        """Crea los directorios de trabajo y verifica certificado y clave privada"""
        for directory in self.config.required_directories():
            self._ensure_directory(directory)

        if not self.store.exists(self.config.cert_path):
            raise FileAccessError(self.config.cert_path)

        # La clave privada siempre se lee del disco local
        if not os.path.exists(self.config.key_path):
            raise FileAccessError(self.config.key_path)

    def create_tra(self, service):
        tra = create_tra_xml(service, self.clock()).encode("utf-8")
        path = self.config.tra_path(service)
        self._ensure_directory(os.path.dirname(path))
        self.store.put(path, tra)
        return tra

    def sign_tra(self, service):
        tra = self.store.get(self.config.tra_path(service))
        certificate = self.store.get(self.config.cert_path)
        return self.signer.sign(tra, certificate, self.config.key_path, self.config.passphrase)

    def authenticate(self, service="wsfe"):
        logger.info(f"Iniciando autenticación para servicio {service}")

        self.check_prerequisites()
        self.create_tra(service)
        cms = self.sign_tra(service)
        response = self.wsaa.login_cms(cms, store=self.store, audit_dir=self.config.ticket_dir)

        if not response:
            raise TransportFault("wsaa.invalidTicket", "WSAA no devolvió un TA")

        try:
            ticket = parse_wsaa_response(response)
        except (ET.ParseError, ValueError) as e:
            raise TransportFault("wsaa.invalidTicket", f"Respuesta de WSAA inválida: {e}") from e

        self.store.put(self.config.ticket_path(service), ticket.raw.encode("utf-8"))
        logger.info(f"Autenticación exitosa para {service}, TA vigente hasta {ticket.expiration_time.isoformat()}")
        return ticket
