import os
from dotenv import load_dotenv
from pathlib import Path

# Cargar variables de entorno
load_dotenv()

# Rutas de archivos
BASE_DIR = Path(__file__).resolve().parent.parent
CERTS_DIR = BASE_DIR / "certs"


def _env_bool(name, default):
    return os.getenv(name, default).lower() in ("true", "1", "t")


class Config:
    # Rutas de archivos
    BASE_DIR = BASE_DIR
    CERTS_DIR = CERTS_DIR

    # Configuración AFIP
    AFIP_CONFIG = {
        "cuit": os.getenv("AFIP_CUIT"),
        "cert_path": os.getenv("AFIP_CERT_PATH", str(CERTS_DIR / "certificado.crt")),
        "key_path": os.getenv("AFIP_KEY_PATH", str(CERTS_DIR / "clave_privada.key")),
        "passphrase": os.getenv("AFIP_PASSPHRASE") or None,
        "testing": _env_bool("AFIP_TESTING", "True"),
        "ticket_dir": os.getenv("AFIP_TICKET_DIR", str(BASE_DIR / "xml_generados")),
        "wsaa_wsdl": os.getenv("AFIP_WSAA_WSDL") or None,
        "proxy_host": os.getenv("AFIP_PROXY_HOST") or None,
        "proxy_port": os.getenv("AFIP_PROXY_PORT") or None,
        "timeout": int(os.getenv("AFIP_TIMEOUT", "30")),
        "verify_ssl": _env_bool("AFIP_VERIFY_SSL", "True"),
        "check_status": _env_bool("AFIP_CHECK_STATUS", "True"),
    }

    # URLs de los servicios
    AFIP_URLS = {
        "wsaa": {
            "testing": "https://wsaahomo.afip.gov.ar/ws/services/LoginCms",
            "production": "https://wsaa.afip.gov.ar/ws/services/LoginCms",
        },
        "wsfe": {
            "testing": "https://wswhomo.afip.gov.ar/wsfev1/service.asmx",
            "production": "https://servicios1.afip.gov.ar/wsfev1/service.asmx",
        },
        "wsmtxca": {
            "testing": "https://fwshomo.afip.gov.ar/wsmtxca/services/MTXCAService",
            "production": "https://serviciosjava.afip.gob.ar/wsmtxca/services/MTXCAService",
        },
        "wspn3": {
            "testing": "https://awshomo.afip.gov.ar/padron-puc-ws/services/select.ContribuyenteNivel3SelectServiceImpl",
            "production": "https://aws.afip.gov.ar/padron-puc-ws/services/select.ContribuyenteNivel3SelectServiceImpl",
        },
    }

    # Configuración de logging
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    LOG_FILE = os.getenv("LOG_FILE", str(BASE_DIR / "logs" / "afipws.log"))
