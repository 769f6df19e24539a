import logging

import uvicorn
from config import ApplicationConfig
from magic_link.api.app import create_app
from magic_link.app.services.token_settings import (
    ensure_signing_key,
    ensure_verification_key,
)
from magic_link.depends import get_token_settings

logging.basicConfig(
    level=ApplicationConfig.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

# A missing or malformed key pair must stop the service before it serves traffic
settings = get_token_settings()
ensure_signing_key(settings)
ensure_verification_key(settings)

app = create_app(ApplicationConfig)

if __name__ == "__main__":
    uvicorn.run(
        "api:app",
        host=ApplicationConfig.API_HOST,
        port=ApplicationConfig.API_PORT,
        reload=True,
        log_level=ApplicationConfig.LOG_LEVEL.lower(),
    )
