import logging
from config.config import LOG_LEVEL

def setup_logging():
    # Configurar o logger principal
    logging.basicConfig(
        level=getattr(logging, LOG_LEVEL.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    
    # Reduzir verbosidade de bibliotecas externas
    logging.getLogger('hpack').setLevel(logging.WARNING)
    logging.getLogger('httpcore').setLevel(logging.WARNING)
    logging.getLogger('httpx').setLevel(logging.WARNING)
    logging.getLogger('postgrest').setLevel(logging.WARNING)
    
    return logging.getLogger(__name__)
