# app/main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, RedirectResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import get_settings
from app.core.errors import ArchiveError, StorageFailure
from app.core.logging import configure_logging
from app.routers import system
from app.routers import auth
from app.routers import departments
from app.routers import employees
from app.routers import documents
from app.routers import file_cabinets
from app.routers import loans
from app.routers import dead_archive
from app.routers import reports
from app.routers import ingestion
from app.routers import storage_units

logger = logging.getLogger(__name__)

tags_metadata = [
    {"name": "System", "description": "Saúde do serviço e metadados."},
    {"name": "Auth", "description": "Login, sessão e logout (token Bearer)."},
    {"name": "File cabinets", "description": "Gaveteiros, gavetas, ocupação e remanejamento."},
    {"name": "Employees", "description": "Funcionários e desligamento."},
    {"name": "Loans", "description": "Empréstimos de prontuários."},
    {"name": "Dead archive", "description": "Caixas, transferência e descarte."},
    {"name": "Storage units", "description": "Pastas, envelopes, caixas e gaveteiros avulsos."},
    {"name": "Ingestion", "description": "Carga de CSV de funcionários (1–10000 linhas)."},
]


def _failure(status_code: int, message: str, code: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "data": None, "error": message, "code": code},
    )


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(ArchiveError)
    async def archive_error(_: Request, exc: ArchiveError):
        return _failure(exc.status_code, exc.message, exc.code)

    @app.exception_handler(RequestValidationError)
    async def validation_error(_: Request, exc: RequestValidationError):
        details = "; ".join(
            f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg')}" for err in exc.errors()
        )
        return _failure(422, f"Dados inválidos: {details}", "invalid_input")

    @app.exception_handler(SQLAlchemyError)
    async def storage_error(_: Request, exc: SQLAlchemyError):
        logger.exception("storage_failure", exc_info=exc)
        return _failure(500, f"Falha no banco de dados: {exc.__class__.__name__}", "storage_failure")

    @app.exception_handler(StarletteHTTPException)
    async def http_error(_: Request, exc: StarletteHTTPException):
        return _failure(exc.status_code, str(exc.detail), "http_error")

    @app.exception_handler(Exception)
    async def unexpected_error(request: Request, exc: Exception):
        logger.exception("unhandled_error", exc_info=exc, extra={"path": request.url.path})
        return _failure(500, f"Erro interno: {exc.__class__.__name__}", StorageFailure.code)


@asynccontextmanager
async def lifespan(app: FastAPI):
    from app.db import SessionLocal, engine
    from app.seed import init_db

    db = SessionLocal()
    try:
        init_db(engine, db)
    finally:
        db.close()
    yield


def create_app(init_database: bool = True) -> FastAPI:
    settings = get_settings()
    configure_logging(settings.LOG_LEVEL)
    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description=settings.APP_DESCRIPTION,
        openapi_tags=tags_metadata,
        lifespan=lifespan if init_database else None,
    )

    # Redireciona "/" -> "/docs"
    @app.get("/", include_in_schema=False)
    def root():
        return RedirectResponse(url="/docs")
    app.include_router(system.router, prefix=settings.API_PREFIX)
    app.include_router(auth.router, prefix=settings.API_PREFIX)
    app.include_router(departments.router, prefix=settings.API_PREFIX)
    app.include_router(employees.router, prefix=settings.API_PREFIX)
    app.include_router(documents.router, prefix=settings.API_PREFIX)
    app.include_router(file_cabinets.router, prefix=settings.API_PREFIX)
    app.include_router(loans.router, prefix=settings.API_PREFIX)
    app.include_router(dead_archive.router, prefix=settings.API_PREFIX)
    app.include_router(reports.router, prefix=settings.API_PREFIX)
    app.include_router(ingestion.router, prefix=settings.API_PREFIX)
    app.include_router(storage_units.router, prefix=settings.API_PREFIX)
    register_error_handlers(app)
    for r in app.routes:
        logger.debug("route %s %s", r.path, sorted(getattr(r, "methods", None) or []))
    return app

app = create_app()
