"""Main entry point for the TrustReport application.

This module provides the main entry point for running the FastAPI application
directly or through various deployment methods.
"""

import uvicorn

from trustreport.core.config import get_settings

settings = get_settings()

if __name__ == "__main__":
    uvicorn.run(
        "trustreport.api.main:app",
        host=settings.APP_HOST,
        port=settings.APP_PORT,
        reload=settings.is_development(),
        log_config=None,  # Use our custom logging
        access_log=False,  # Handled by middleware
        workers=1 if settings.is_development() else 4,
    )
