"""
BadgePress Main Application Entry Point
- Launches the badge admin API.
"""

import uvicorn

from badgepress.config import settings

if __name__ == "__main__":
    print("Starting BadgePress")
    print(f"Server will run at http://{settings.HOST}:{settings.PORT}")
    print(f"Application log level: {settings.LOG_LEVEL.upper()}")

    # Note: Application logging is configured in badgepress.main when the module loads
    # The log_level parameter here only controls uvicorn's own logging
    uvicorn.run(
        "badgepress.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.RELOAD and settings.DEBUG,
        log_level="info" if settings.DEBUG else "warning",
    )
