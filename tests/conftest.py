import os

import pytest

# Keep external integrations quiet during tests; set before importing app modules.
os.environ.setdefault("SHAREPOINT_SITE_URL", "")
os.environ.setdefault("SHAREPOINT_CLIENT_ID", "")
os.environ.setdefault("ADLS_ACCOUNT_NAME", "")
os.environ.setdefault("ADLS_FILE_SYSTEM_NAME", "")
os.environ.setdefault("SHAREPOINT_RETRY_DELAY_SECONDS", "0")

from docsync.connectors.adls import reset_default_connector  # noqa: E402
from docsync.services.connector_health_service import connector_health_service  # noqa: E402


@pytest.fixture(autouse=True)
def reset_singletons():
    """Start every test with an empty health service and no default ADLS connector."""
    connector_health_service.reset()
    reset_default_connector()
    yield
    connector_health_service.reset()
    reset_default_connector()
