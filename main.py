import asyncio
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import (
    FastAPI,
    Depends,
    HTTPException,
    Request,
    Response,
    Cookie,
    Query,
    status,
)
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException
import structlog

import auth
import crud
import filters
import logic
import mailer
import schemas
from auth import AuthService, InvalidTokenError, TokenKind, get_auth_service, get_current_user_id
from database import create_db_and_tables, get_db
from mailer import EmailSender, get_email_sender
from settings import get_settings, Settings
from request_id_middleware import RequestIdMiddleware
from observability import init_observability


# Initialise observability before creating app
init_observability()
logger = structlog.get_logger(__name__)

REFRESH_COOKIE = "refreshToken"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create DB tables on startup."""
    create_db_and_tables()
    yield


app = FastAPI(
    title="Job Board",
    description="Job listing search API with accounts and saved jobs",
    version="0.1.0",
    lifespan=lifespan,
)

# --- CORS Middleware ---
origins = [get_settings().client_url]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)

app.add_middleware(RequestIdMiddleware)


# --- Error handlers --- #
@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "Invalid request", "details": jsonable_encoder(exc.errors())},
    )


@app.exception_handler(filters.InvalidFilterError)
async def invalid_filter_handler(request: Request, exc: filters.InvalidFilterError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "Invalid search parameter", "details": str(exc)},
    )


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    content = exc.detail if isinstance(exc.detail, dict) else {"error": exc.detail}
    return JSONResponse(status_code=exc.status_code, content=content, headers=exc.headers)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error("Unhandled error", path=request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error"},
    )


# --- Health --- #
@app.get("/", include_in_schema=False)
async def read_root():
    return {"message": "Job Board Backend is running"}


@app.get("/health", tags=["Health"])
async def health_check():
    """Liveness probe."""
    return {"status": "healthy"}


# --- Job Endpoints --- #
@app.get("/api/jobs", response_model=schemas.JobListResponse, tags=["Jobs"])
async def list_jobs(
    query: Optional[str] = None,
    location: Optional[str] = None,
    sort_by: str = filters.DEFAULT_SORT,
    employment_type: Optional[str] = None,
    type_: Optional[str] = Query(None, alias="type"),
    remote: Optional[str] = None,
    min_salary: Optional[str] = None,
    max_salary: Optional[str] = None,
    date_posted: Optional[str] = None,
    deadline: Optional[str] = None,
    experience: Optional[str] = None,
    field: Optional[str] = None,
    limit: int = Query(logic.DEFAULT_LIMIT, ge=1),
    page: int = Query(logic.DEFAULT_PAGE, ge=1),
    db: Session = Depends(get_db),
):
    params = {
        "query": query,
        "location": location,
        "sort_by": sort_by,
        "employment_type": employment_type,
        "type": type_,
        "remote": remote,
        "min_salary": min_salary,
        "max_salary": max_salary,
        "date_posted": date_posted,
        "deadline": deadline,
        "experience": experience,
        "field": field,
    }
    result = await logic.search_jobs(db, params, page=page, limit=limit)
    return schemas.JobListResponse(
        jobs=[schemas.Job.model_validate(job) for job in result.jobs],
        pagination=schemas.Pagination(**result.pagination()),
        filters_applied=result.filters_applied,
    )


@app.get("/api/jobs/count", response_model=schemas.JobCount, tags=["Jobs"])
def count_jobs_endpoint(db: Session = Depends(get_db)):
    return {"count": crud.count_jobs(db)}


@app.get("/api/jobs/stats", response_model=schemas.JobStats, tags=["Jobs"])
def job_stats_endpoint(db: Session = Depends(get_db)):
    return logic.compute_job_stats(db)


# --- Auth Endpoints --- #
def _cookie_options(settings: Settings) -> dict:
    return {
        "httponly": True,
        "secure": settings.is_production,
        "samesite": "none" if settings.is_production else "lax",
    }


def _set_refresh_cookie(response: Response, token: str, settings: Settings) -> None:
    response.set_cookie(
        REFRESH_COOKIE,
        token,
        max_age=settings.refresh_token_expire_days * 24 * 60 * 60,
        **_cookie_options(settings),
    )


def _clear_refresh_cookie(response: Response, settings: Settings) -> None:
    response.delete_cookie(REFRESH_COOKIE, **_cookie_options(settings))


def _user_out(db: Session, user) -> schemas.User:
    return schemas.User(
        id=user.id,
        email=user.email,
        verified=user.verified,
        saved_jobs=crud.get_saved_job_ids(db, user.id),
    )


@app.post(
    "/api/auth/signup",
    status_code=status.HTTP_201_CREATED,
    response_model=schemas.SignupResponse,
    tags=["Auth"],
)
async def signup(
    credentials: schemas.Credentials,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    auth_service: AuthService = Depends(get_auth_service),
    email_sender: EmailSender = Depends(get_email_sender),
):
    email, password = credentials.email, credentials.password
    if not email or not password:
        raise HTTPException(status_code=400, detail="Please provide email and password")
    if not auth.is_valid_email(email):
        raise HTTPException(status_code=400, detail="Please provide a valid email address")
    if not auth.is_valid_password(password):
        raise HTTPException(status_code=400, detail=auth.PASSWORD_POLICY_MESSAGE)
    if crud.get_user_by_email(db, email):
        raise HTTPException(status_code=400, detail="Email already registered")

    loop = asyncio.get_running_loop()
    hashed_password = await loop.run_in_executor(
        None, auth.hash_password, password, settings.bcrypt_rounds
    )
    user = crud.create_user(db, email=email, hashed_password=hashed_password)
    db.commit()
    logger.info("User signed up", user_id=user.id)

    subject, html = mailer.verification_email(
        settings.client_url, auth_service.issue_email_verify(user.id)
    )
    await email_sender.send(user.email, subject, html)

    return schemas.SignupResponse(
        message="Signup successful. Please check your email to verify your account before logging in",
        email=user.email,
    )


@app.post("/api/auth/login", response_model=schemas.LoginResponse, tags=["Auth"])
def login(
    credentials: schemas.Credentials,
    response: Response,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    auth_service: AuthService = Depends(get_auth_service),
):
    if not credentials.email or not credentials.password:
        raise HTTPException(status_code=400, detail="Please provide email and password")

    user = crud.get_user_by_email(db, credentials.email)
    if not user or not auth.verify_password(credentials.password, user.hashed_password):
        raise HTTPException(status_code=401, detail="Invalid email or password")
    if not user.verified:
        raise HTTPException(
            status_code=403,
            detail={"error": "Please verify your email before logging in", "needsVerification": True},
        )

    _set_refresh_cookie(response, auth_service.issue_refresh(user.id), settings)
    logger.info("User logged in", user_id=user.id)
    return schemas.LoginResponse(
        message="Successfully logged in",
        user=_user_out(db, user),
        access_token=auth_service.issue_access(user.id),
    )


@app.post(
    "/api/auth/refresh-token",
    response_model=schemas.RefreshResponse,
    responses={204: {"description": "No refresh cookie present"}},
    tags=["Auth"],
)
def refresh_token_endpoint(
    response: Response,
    refresh_token: Optional[str] = Cookie(None, alias=REFRESH_COOKIE),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    auth_service: AuthService = Depends(get_auth_service),
):
    if not refresh_token:
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    try:
        payload = auth_service.verify(refresh_token, TokenKind.REFRESH)
    except InvalidTokenError:
        raise HTTPException(status_code=403, detail="Invalid refresh token")

    user = crud.get_user_by_id(db, payload.user_id)
    if not user:
        raise HTTPException(status_code=401, detail="User no longer exist")
    if not user.verified:
        denied = JSONResponse(
            status_code=403,
            content={"error": "Email verification required", "needsVerification": True},
        )
        _clear_refresh_cookie(denied, settings)
        return denied

    # Rotate both tokens on every use
    _set_refresh_cookie(response, auth_service.issue_refresh(user.id), settings)
    return schemas.RefreshResponse(
        access_token=auth_service.issue_access(user.id),
        user=_user_out(db, user),
    )


@app.post("/api/auth/logout", response_model=schemas.Message, tags=["Auth"])
def logout(response: Response, settings: Settings = Depends(get_settings)):
    _clear_refresh_cookie(response, settings)
    return {"message": "Successfully logged out"}


@app.get("/api/auth/verify-email", response_model=schemas.Message, tags=["Auth"])
def verify_email(
    token: Optional[str] = None,
    db: Session = Depends(get_db),
    auth_service: AuthService = Depends(get_auth_service),
):
    if not token:
        raise HTTPException(status_code=401, detail="Token is missing")
    try:
        payload = auth_service.verify(token, TokenKind.EMAIL)
    except InvalidTokenError:
        raise HTTPException(status_code=401, detail="Invalid or expired token")

    user = crud.mark_user_verified(db, payload.user_id)
    if not user:
        raise HTTPException(status_code=401, detail="User doesn't exist")
    logger.info("Email verified", user_id=user.id)
    return {"message": "Email is verified"}


# --- Saved Job Endpoints (bearer token required) --- #
@app.get("/api/users/saved-jobs", response_model=schemas.SavedJobList, tags=["Users"])
def get_saved_jobs(
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    user = crud.get_user_by_id(db, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User doesn't exist")
    return schemas.SavedJobList(
        saved_jobs=[schemas.Job.model_validate(job) for job in user.saved_jobs]
    )


@app.post("/api/users/save-job", response_model=schemas.SavedJobIds, tags=["Users"])
def save_job(
    body: schemas.SaveJobRequest,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    if not body.job_id:
        raise HTTPException(status_code=400, detail="Please provide jobID")
    if not crud.get_user_by_id(db, user_id):
        raise HTTPException(status_code=401, detail="User doesn't exist")
    if not crud.get_job_by_job_id(db, body.job_id):
        raise HTTPException(status_code=404, detail="Job not found")

    saved = crud.add_saved_job(db, user_id, body.job_id)
    logger.info("Job saved", user_id=user_id, job_id=body.job_id)
    return schemas.SavedJobIds(message="Job saved successfully", saved_jobs=saved)


@app.delete("/api/users/saved-jobs/{job_id}", response_model=schemas.SavedJobIds, tags=["Users"])
def remove_saved_job(
    job_id: str,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    if not crud.get_user_by_id(db, user_id):
        raise HTTPException(status_code=401, detail="User doesn't exist")

    saved = crud.remove_saved_job(db, user_id, job_id)
    logger.info("Job removed from saved", user_id=user_id, job_id=job_id)
    return schemas.SavedJobIds(message="Job removed successfully", saved_jobs=saved)


# --- Main execution --- (for running with uvicorn)
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
