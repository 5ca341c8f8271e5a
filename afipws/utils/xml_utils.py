from datetime import datetime
from typing import Optional

from afipws.core.models import AccessTicket, TicketRequest
from afipws.utils.logger import setup_logger

logger = setup_logger(__name__)

# Nombre interno del servicio -> nombre que espera WSAA en el TRA
SERVICE_ALIASES = {
    "wspn3": "padron-puc-ws-consulta-nivel3",
}


def canonical_service_name(service):
    return SERVICE_ALIASES.get(service, service)


def create_tra_xml(service, now: Optional[datetime] = None):
    tra = TicketRequest.issue(canonical_service_name(service), now)
    logger.debug(f"TRA generado para {service} (uniqueId {tra.unique_id})")
    return tra.to_xml()


def parse_wsaa_response(response):
    try:
        return AccessTicket.from_xml(response)
    except Exception as e:
        logger.error(f"Error al parsear respuesta WSAA: {str(e)}")
        raise
