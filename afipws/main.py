import argparse
import logging
import sys

from afipws.core.client import AfipClient
from afipws.core.exceptions import AfipWsError
from afipws.core.models import CREDENTIAL_SHAPES, RenewalOutcome, WebServiceConfig
from afipws.utils.cert_utils import key_matches_certificate
from afipws.utils.logger import setup_logger


def parse_arguments(argv=None):
    parser = argparse.ArgumentParser(description='Autenticación WSAA y conexión a web services de AFIP')

    subparsers = parser.add_subparsers(dest='comando', help='Comandos disponibles')

    # Ticket de acceso
    ticket_parser = subparsers.add_parser('ticket', help='Verificar y renovar el Ticket de Acceso (TA)')
    ticket_parser.add_argument('--forzar', action='store_true', help='Solicitar un TA nuevo aunque el actual esté vigente')

    # Credenciales del servicio
    subparsers.add_parser('credenciales', help='Mostrar las credenciales de autenticación del servicio')

    # Consulta de estado de servidores
    subparsers.add_parser('estado', help='Verificar el estado de los servidores del servicio')

    # Certificado y clave
    subparsers.add_parser('verificar-certificado', help='Verificar que la clave privada corresponda al certificado')

    parser.add_argument('--servicio', type=str, default='wsfe', choices=sorted(CREDENTIAL_SHAPES),
                        help='Web service de destino (por defecto: wsfe)')
    parser.add_argument('--produccion', action='store_true', help='Ejecutar en modo producción (por defecto: homologación)')
    parser.add_argument('--debug', action='store_true', help='Activar modo depuración')

    return parser.parse_args(argv)


def main(argv=None):
    args = parse_arguments(argv)

    log_level = logging.DEBUG if args.debug else logging.INFO
    logger = setup_logger('afipws.main', log_level)

    try:
        config = WebServiceConfig.from_config(sandbox=False if args.produccion else None)
        entorno = 'homologacion' if config.sandbox else 'produccion'
        logger.info(f"Ejecutando en entorno: {entorno}")
    except (AfipWsError, ValueError) as e:
        logger.error(f"Error al cargar la configuración: {e}")
        return 1

    try:
        if args.comando == 'verificar-certificado':
            if key_matches_certificate(config.cert_path, config.key_path, config.passphrase):
                print("La clave privada coincide con el certificado")
            else:
                print("La clave privada NO coincide con el certificado")
                return 1
            return 0

        client = AfipClient(config)

        if args.comando == 'ticket':
            if args.forzar:
                ticket = client.authenticator.get_ticket(args.servicio, force_new=True)
                logger.info("Ticket regenerado con éxito")
            else:
                outcome, ticket = client.authenticator.renew_if_needed(args.servicio)
                logger.info(f"Ticket {'renovado' if outcome is RenewalOutcome.RENEWED else 'vigente'}")
            print(f"TA de {args.servicio} vigente hasta {ticket.expiration_time.isoformat()}")
        elif args.comando == 'credenciales':
            for key, value in client.authenticate(args.servicio).items():
                print(f"{key}: {value}")
        elif args.comando == 'estado':
            estado = client.check_server_status(args.servicio)
            print(f"Estado del servidor de aplicaciones: {estado['app_server']}")
            print(f"Estado del servidor de base de datos: {estado['db_server']}")
            print(f"Estado del servidor de autenticación: {estado['auth_server']}")
        else:
            logger.error("Comando no reconocido")
            return 1
    except AfipWsError as e:
        logger.error(f"Error al ejecutar el comando: {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
