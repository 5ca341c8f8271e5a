"""
Configuración del sistema de logging
"""
import os
import logging
from pathlib import Path
from logging.handlers import RotatingFileHandler

from afipws.config import Config

# Los handlers se configuran una sola vez en el logger del paquete;
# los loggers de cada módulo propagan hacia él.
PACKAGE_LOGGER = 'afipws'


def setup_logger(name, level=None):
    """
    Configura y devuelve un logger con nombre personalizado

    Args:
        name (str): Nombre del logger (normalmente __name__)
        level (int, optional): Nivel de logging; por defecto Config.LOG_LEVEL

    Returns:
        logging.Logger: Logger configurado
    """
    explicit = level is not None
    if not explicit:
        level = getattr(logging, Config.LOG_LEVEL.upper(), logging.INFO)

    package_logger = logging.getLogger(PACKAGE_LOGGER)

    # Evitar duplicación de handlers
    if not package_logger.handlers:
        package_logger.setLevel(level)
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )

        # Handler para consola
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        package_logger.addHandler(console_handler)

        # Handler para archivo (LOG_FILE vacío lo deshabilita)
        if Config.LOG_FILE:
            log_dir = Path(Config.LOG_FILE).parent
            if not log_dir.exists():
                os.makedirs(log_dir)

            file_handler = RotatingFileHandler(
                Config.LOG_FILE,
                maxBytes=10485760,  # 10MB
                backupCount=10
            )
            file_handler.setLevel(level)
            file_handler.setFormatter(formatter)
            package_logger.addHandler(file_handler)
    elif explicit:
        package_logger.setLevel(level)
        for handler in package_logger.handlers:
            handler.setLevel(level)

    return logging.getLogger(name)
