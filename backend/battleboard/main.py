# main.py
"""
Point d'entrée de l'API Battle of Platoons.
Enregistre tous les modules via leurs routers.

Architecture : modules verticaux quasi-autonomes + engine pur transversal.
"""
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from battleboard.core.config import settings

from battleboard.modules.records.router      import router as records_router
from battleboard.modules.compare.router      import router as compare_router
from battleboard.modules.rankings.router     import router as rankings_router
from battleboard.modules.formulas.router     import router as formulas_router
from battleboard.modules.finalization.router import router as finalization_router
from battleboard.modules.audit.router        import router as audit_router
from battleboard.modules.directory.router    import router as directory_router

VERSION = "1.0.0"

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("battleboard")

app = FastAPI(
    title=settings.PROJECT_NAME,
    version=VERSION,
    docs_url="/docs" if settings.DEBUG else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(records_router)
app.include_router(compare_router)
app.include_router(rankings_router)
app.include_router(formulas_router)
app.include_router(finalization_router)
app.include_router(audit_router)
app.include_router(directory_router)


@app.exception_handler(SQLAlchemyError)
async def upstream_error_handler(request: Request, exc: SQLAlchemyError):
    """Échec du store : propagé tel quel jusqu'ici, aucune nouvelle tentative."""
    logger.error("store failure on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=502,
        content={"error": "UpstreamError", "detail": "Le store d'enregistrements a échoué."},
    )


@app.get("/health")
async def health():
    return {"status": "ok", "version": VERSION}
