from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import DisconnectionError, OperationalError, TimeoutError as PoolTimeoutError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.config import CORS_ORIGINS, ENV, IS_DEV
from app.database import engine, Base
from app.errors import BlogError
from app.api.responses import error_body

# Register every table on Base.metadata
from app.models.article import Article  # noqa: F401
from app.models.comment import Comment  # noqa: F401
from app.models.like import Like  # noqa: F401
from app.models.user import User  # noqa: F401

from app.api.articles import router as articles_router
from app.api.comments import router as comments_router
from app.api.auth import router as auth_router
from app.api.users import router as users_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    Base.metadata.create_all(bind=engine)
    print(f"✅ Database ready ({engine.url.get_backend_name()})")
    yield
    engine.dispose()


app = FastAPI(
    title="Interactive Blog API",
    description="Articles, nested comments and likes",
    version="1.0.0",
    lifespan=lifespan,
    docs_url=None if ENV == "prod" else "/docs",
    redoc_url=None if ENV == "prod" else "/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials="*" not in CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(articles_router)
app.include_router(comments_router)
app.include_router(auth_router)
app.include_router(users_router)


@app.get("/")
def root():
    return {"success": True, "data": {"name": "Interactive Blog API", "status": "ok"}}


@app.get("/health")
def health_check():
    return {"status": "ok"}


# --- Error handlers ---

@app.exception_handler(BlogError)
async def blog_error_handler(request: Request, exc: BlogError):
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.message, exc.errors))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = []
    for err in exc.errors():
        # loc looks like ("body", "content") or ("query", "limit")
        field = ".".join(str(part) for part in err["loc"][1:]) or str(err["loc"][0])
        errors.append({"field": field, "message": err["msg"]})
    return JSONResponse(status_code=400, content=error_body("Invalid input data", errors))


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    if exc.status_code == 404 and message == "Not Found":
        message = "Route not found"
    return JSONResponse(status_code=exc.status_code, content=error_body(message), headers=exc.headers)


@app.exception_handler(OperationalError)
@app.exception_handler(PoolTimeoutError)
@app.exception_handler(DisconnectionError)
async def store_unavailable_handler(request: Request, exc: Exception):
    print(f"❌ Store unavailable on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=500,
        content=error_body(
            "Service temporarily unavailable, please retry",
            detail=str(exc) if IS_DEV else None,
        ),
        headers={"Retry-After": "5"},
    )


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    print(f"❌ Unexpected error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=500,
        content=error_body("Internal server error", detail=str(exc) if IS_DEV else None),
    )
