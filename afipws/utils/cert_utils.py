import os
import tempfile
from base64 import b64encode

from cryptography import x509
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization, hashes
from cryptography.hazmat.primitives.serialization import pkcs7

from afipws.core.exceptions import SigningError
from afipws.utils.logger import setup_logger

logger = setup_logger(__name__)


def _read(path):
    with open(path, "rb") as f:
        return f.read()


def _write(path, content):
    with open(path, "wb") as f:
        f.write(content)


def load_private_key(key_path, passphrase=None):
    password = passphrase.encode("utf-8") if isinstance(passphrase, str) else passphrase
    return serialization.load_pem_private_key(_read(key_path), password=password)


class TicketSigner:
    """Firma el TRA con el certificado y la clave privada (CMS, SHA-256)"""

    def __init__(self, tmp_dir=None):
        self.tmp_dir = tmp_dir

    def sign(self, tra, certificate, key_path, passphrase=None):
        if isinstance(tra, str):
            tra = tra.encode("utf-8")
        if isinstance(certificate, str):
            certificate = certificate.encode("utf-8")

        # Los temporales se eliminan al salir del bloque, aun si la firma falla
        with tempfile.TemporaryDirectory(prefix="afipws-", dir=self.tmp_dir) as workdir:
            input_path = os.path.join(workdir, "tra.xml")
            cert_path = os.path.join(workdir, "certificado.crt")
            output_path = os.path.join(workdir, "tra.p7m")

            _write(input_path, tra)
            _write(cert_path, certificate)

            try:
                cert = x509.load_pem_x509_certificate(_read(cert_path))
                key = load_private_key(key_path, passphrase)
                signed = (
                    pkcs7.PKCS7SignatureBuilder()
                    .set_data(_read(input_path))
                    .add_signer(cert, key, hashes.SHA256())
                    .sign(serialization.Encoding.DER, [])
                )
            except (ValueError, TypeError, UnsupportedAlgorithm, OSError) as e:
                logger.error(f"Error en la generacion de la firma PKCS#7: {e}")
                raise SigningError(f"Error en la generacion de la firma PKCS#7: {e}") from e

            # Salida DER: el CMS completo, sin cabeceras MIME que recortar
            _write(output_path, signed)
            return b64encode(_read(output_path)).decode("ascii")


def key_matches_certificate(cert_path, key_path, passphrase=None):
    """Indica si la clave privada corresponde al certificado"""
    try:
        cert = x509.load_pem_x509_certificate(_read(cert_path))
        key = load_private_key(key_path, passphrase)
    except (ValueError, TypeError, UnsupportedAlgorithm, OSError) as e:
        raise SigningError(f"No se pudo leer el certificado o la clave: {e}") from e

    public_format = serialization.PublicFormat.SubjectPublicKeyInfo
    return (
        cert.public_key().public_bytes(serialization.Encoding.DER, public_format)
        == key.public_key().public_bytes(serialization.Encoding.DER, public_format)
    )
