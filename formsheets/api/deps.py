"""FastAPI dependencies for Formsheets core services."""
from formsheets.di.container import container


def get_ingestion_service():
    return container.ingestion()


def get_sync_logger():
    return container.sync_logger()
