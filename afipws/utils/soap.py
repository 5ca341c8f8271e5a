import urllib3
from requests import Session
from zeep import Client
from zeep.transports import Transport


def _default_binding(client):
    """Nombre calificado del binding del primer puerto del primer servicio del WSDL"""
    for service in client.wsdl.services.values():
        for port in service.ports.values():
            return port.binding.name.text
    return None


def build_soap_client(wsdl, location=None, proxies=None, timeout=30, verify_ssl=True, plugins=None):
    """
    Crea un cliente zeep propio para un servicio.

    Devuelve el cliente y el proxy del servicio apuntando a `location`
    (si se indica) en lugar de la dirección declarada en el WSDL.
    """
    session = Session()
    session.verify = verify_ssl
    if not verify_ssl:
        urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)
    if proxies:
        session.proxies.update(proxies)

    transport = Transport(session=session, timeout=timeout, operation_timeout=timeout)
    client = Client(wsdl=wsdl, transport=transport, plugins=plugins or [])

    binding = _default_binding(client) if location else None
    if binding is None:
        return client, client.service
    return client, client.create_service(binding, location)
