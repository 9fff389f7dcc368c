import uvicorn

from markpress.shared.config import get_settings
# Import FastAPI app
from markpress.web.api.app import api

app = api

if __name__ == "__main__":
    settings = get_settings()
    uvicorn.run(
        "main:app",
        host=settings.web_host,
        port=settings.web_port,
        reload=settings.is_development,
    )
