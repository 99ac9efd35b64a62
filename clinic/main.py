import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.sessions import SessionMiddleware

from clinic.config import settings
from clinic.database import Base, engine
from clinic.routers import (
    admin,
    doctors,
    google_auth,
    patients,
    symptom_checker,
)
from clinic.utils.errors import ClinicError
from clinic.utils.response import create_response, handle_exception
from seed import run_seed

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

settings.require_secrets()

app = FastAPI(title=settings.PROJECT_NAME)
# Holds the OAuth state during the Google handshake only
app.add_middleware(SessionMiddleware, secret_key=settings.SESSION_SECRET)

# Auto create tables
Base.metadata.create_all(bind=engine)

# CORS for SPA / API access
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ClinicError)
async def clinic_error_handler(request: Request, exc: ClinicError):
    logger.info("Domain error %s on %s", exc.code, request.url.path)
    return handle_exception(exc)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    fields = ", ".join(
        ".".join(str(part) for part in error["loc"] if part != "body") for error in exc.errors()
    )
    return create_response(
        message=f"Missing or invalid fields: {fields}",
        data={"error": "VALIDATION_FAILED"},
        status_code=status.HTTP_400_BAD_REQUEST,
    )


@app.on_event("startup")
async def startup_event():
    run_seed()


# Add routes
app.include_router(admin.router)
app.include_router(doctors.router)
app.include_router(patients.router)
app.include_router(google_auth.router)
app.include_router(symptom_checker.router)


@app.get("/")
def home():
    try:
        return create_response(
            message="Clinic API running",
            data={"service": "clinic-portal"},
            status_code=status.HTTP_200_OK
        )
    except Exception as exc:
        return handle_exception(exc)


@app.get("/api-info")
def api_info():
    try:
        return create_response(
            message="API information",
            data={
                "service": settings.PROJECT_NAME,
                "docs_url": app.docs_url,
                "roles": ["admin", "doctor", "patient"],
            },
            status_code=status.HTTP_200_OK
        )
    except Exception as exc:
        return handle_exception(exc)
