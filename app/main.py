from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from app.api.v1.auth.router import router as auth_router
from app.api.v1.forms.router import router as forms_router
from app.api.v1.progress.router import router as progress_router
from app.api.v1.syllabus.router import router as syllabus_router
from app.core.config import settings
from app.core.logging import setup_logging
from app.core.syllabus import Syllabus, load_syllabus


def create_app(syllabus: Syllabus = None) -> FastAPI:
    setup_logging(settings.log_level.upper(), json_format=settings.log_json)

    app = FastAPI(title="Dojo Forms Tracker")

    # Reference data is read-only and shared by every request
    app.state.syllabus = syllabus or load_syllabus(settings.syllabus_file)
    logger.info("Loaded syllabus with {} ranks", len(app.state.syllabus.ranks()))

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routers
    app.include_router(auth_router)
    app.include_router(forms_router)
    app.include_router(syllabus_router)
    app.include_router(progress_router)

    @app.get("/health", tags=["health"])
    async def health() -> dict:
        return {"status": "ok"}

    return app


app = create_app()
