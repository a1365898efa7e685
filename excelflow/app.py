from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from excelflow.application import get_workflow_session
from excelflow.core.config import load_settings
from excelflow.core.logging import configure_logging
from excelflow.routes import session


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    # no timer may outlive the event loop that owns it
    await get_workflow_session().aclose()


def create_app() -> FastAPI:
    settings = load_settings()
    configure_logging(settings)

    app = FastAPI(title="ExcelFlow API", version="0.1.0", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(session.router, prefix="/api")

    @app.get("/", include_in_schema=False)
    async def root() -> JSONResponse:
        """Provide a lightweight landing page for container checks."""
        return JSONResponse(
            {
                "message": "ExcelFlow API",
                "docs": "/docs",
                "session": "/api/session",
            }
        )

    return app


app = create_app()
