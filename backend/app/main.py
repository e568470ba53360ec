# ProTeam workforce backend entrypoint: FastAPI app with timesheet, invoice and dashboard routes.

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backend.app.api import (
    clients,
    dashboard,
    documents,
    employees,
    invoices,
    login,
    organization,
    register,
    timesheets,
)
from backend.app.core.logging_config import configure_logging
from backend.app.core.settings import get_settings
from backend.app.db.base import Base
from backend.app.db.session import engine

settings = get_settings()
configure_logging(settings.log_level)

Base.metadata.create_all(bind=engine)

app = FastAPI(title=settings.app_name)

origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(register.router)
app.include_router(login.router)
app.include_router(clients.router)
app.include_router(employees.router)
app.include_router(timesheets.router)
app.include_router(invoices.router)
app.include_router(dashboard.router)
app.include_router(documents.router)
app.include_router(organization.router)


@app.get("/")
def read_root():
    return {"app": settings.app_name, "status": "ok"}


@app.get("/health")
def health_check():
    return {"status": "ok"}
