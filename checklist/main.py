# checklist/main.py

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import os
import logging

# Роутеры
from checklist.api.auth import router as auth_router
from checklist.api.user import router as user_router
from checklist.api.notifications import router as notifications_router
from checklist.api.team import router as team_router
from checklist.api.invitation import router as invitation_router
from checklist.api.task import router as task_router
from checklist.api.completion import router as completion_router
from checklist.api.check_in import router as check_in_router

from checklist.core.settings import settings
from checklist.core.exceptions import (
    AuthError,
    BannedFromTeamError,
    CheckInRequiredError,
    ConcurrencyConflictError,
    NotFoundError,
    ValidationError,
)
from checklist.database import init_db

# Логирование
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("uvicorn.error")

app = FastAPI(
    title="Maravian CheckList API",
    version="1.0.0",
    description="Team checklists: task trees, daily completions, check-ins and email notifications",
)

# Middlewares
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth_router)
app.include_router(user_router)
app.include_router(notifications_router)
app.include_router(team_router)
app.include_router(invitation_router)
app.include_router(task_router)
app.include_router(completion_router)
app.include_router(check_in_router)

# Health check & root
@app.get("/", tags=["Health"])
def root():
    return {"status": "Maravian CheckList API is running!"}

@app.get("/health", tags=["Health"])
def health():
    return {"ok": True}

@app.on_event("startup")
async def startup_event():
    init_db()
    logger.info(f"Starting Maravian CheckList API (env: {settings.ENV})")

@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Stopping Maravian CheckList API")

# Доменные ошибки -> HTTP

@app.exception_handler(NotFoundError)
async def not_found_exception_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": exc.message})

@app.exception_handler(BannedFromTeamError)
async def banned_exception_handler(request: Request, exc: BannedFromTeamError):
    return JSONResponse(status_code=status.HTTP_403_FORBIDDEN, content={"detail": exc.message, "code": "banned"})

@app.exception_handler(AuthError)
async def auth_exception_handler(request: Request, exc: AuthError):
    return JSONResponse(status_code=status.HTTP_403_FORBIDDEN, content={"detail": exc.message})

@app.exception_handler(ValidationError)
async def validation_exception_handler(request: Request, exc: ValidationError):
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": exc.message})

@app.exception_handler(CheckInRequiredError)
async def check_in_required_exception_handler(request: Request, exc: CheckInRequiredError):
    return JSONResponse(status_code=status.HTTP_409_CONFLICT, content={"detail": exc.message, "code": exc.code})

@app.exception_handler(ConcurrencyConflictError)
async def concurrency_exception_handler(request: Request, exc: ConcurrencyConflictError):
    logger.warning(f"Concurrency conflict on {request.method} {request.url.path}")
    return JSONResponse(status_code=status.HTTP_409_CONFLICT, content={"detail": exc.message})

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "checklist.main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", 8000)),
        reload=settings.DEBUG,
    )
