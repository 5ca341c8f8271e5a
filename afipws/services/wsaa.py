"""
Cliente del Web Service de Autenticación y Autorización (WSAA)
"""
import os

import requests
from lxml import etree
from zeep.exceptions import Fault, TransportError
from zeep.plugins import HistoryPlugin

from afipws.core.exceptions import FileAccessError, TransportFault
from afipws.utils.logger import setup_logger
from afipws.utils.soap import build_soap_client

logger = setup_logger(__name__)

REQUEST_AUDIT_FILE = "request-loginCms.xml"
RESPONSE_AUDIT_FILE = "response-loginCms.xml"


def _envelope_bytes(history, direction):
    try:
        entry = getattr(history, direction)
    except IndexError:
        # HistoryPlugin sin transacciones registradas
        return b""
    if not entry or entry.get("envelope") is None:
        return b""
    return etree.tostring(entry["envelope"], xml_declaration=True, encoding="UTF-8")


class WSAAService:
    """Ejecuta loginCms contra WSAA y devuelve el TA sin interpretar"""

    def __init__(self, url, wsdl=None, proxies=None, timeout=30, verify_ssl=True):
        self.url = url
        self.wsdl = wsdl or f"{url}?WSDL"
        self.proxies = proxies
        self.timeout = timeout
        self.verify_ssl = verify_ssl
        self.history = HistoryPlugin()
        self._client = None
        self._service = None

    def _get_service(self):
        if self._service is None:
            self._client, self._service = build_soap_client(
                self.wsdl,
                location=self.url,
                proxies=self.proxies,
                timeout=self.timeout,
                verify_ssl=self.verify_ssl,
                plugins=[self.history],
            )
        return self._service

    @property
    def last_request(self):
        return _envelope_bytes(self.history, "last_sent")

    @property
    def last_response(self):
        return _envelope_bytes(self.history, "last_received")

    def _save_audit(self, store, audit_dir):
        if store is None:
            return
        try:
            store.put(os.path.join(audit_dir or "", REQUEST_AUDIT_FILE), self.last_request)
            store.put(os.path.join(audit_dir or "", RESPONSE_AUDIT_FILE), self.last_response)
        except FileAccessError as e:
            logger.error(f"No se pudo guardar la auditoría de loginCms: {e}")

    def login_cms(self, cms, store=None, audit_dir=None):
        """
        Envía el CMS firmado y devuelve el TA (XML) tal como lo emite WSAA.

        El request y la respuesta se guardan antes de interpretar el resultado,
        también cuando WSAA responde con un SOAP Fault. Cada llamada usa un
        historial nuevo, así una respuesta anterior no se confunde con la actual.
        """
        logger.debug(f"Enviando solicitud de autenticación a WSAA ({self.url})")
        try:
            self.history = HistoryPlugin()
            service = self._get_service()
            self._client.plugins = [self.history]
            try:
                return service.loginCms(in0=cms)
            finally:
                self._save_audit(store, audit_dir)
        except Fault as e:
            code = e.code or "soap:Server"
            logger.error(f"WSAA respondió con SOAP Fault [{code}]: {e.message}")
            raise TransportFault(str(code), e.message) from e
        except (TransportError, requests.exceptions.RequestException) as e:
            logger.error(f"Error de red al conectar con WSAA: {e}")
            raise TransportFault("network", str(e)) from e
