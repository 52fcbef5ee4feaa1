# metastrip/logs.py
import logging

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

def configure_logging(level: str = "INFO") -> None:
    """Root logging setup shared by the server and the CLI."""
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)
    # Pillow logs every chunk it parses at DEBUG
    logging.getLogger("PIL").setLevel(logging.INFO)
