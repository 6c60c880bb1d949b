import logging

from app.core.config import settings
from app.main import create_app

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

app = create_app(settings)

if __name__ == "__main__":
    import uvicorn

    print(f"🚀 Starting Feature Studio on {settings.host}:{settings.port}")
    print(f"🎨 Studio: http://localhost:{settings.port}/studio")
    print(f"📚 API docs: http://localhost:{settings.port}/docs")

    uvicorn.run(
        "main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
