"""
Blog API

CRUD endpoints for blog posts with pagination, author filtering and
optimistic concurrency on updates.
"""
import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, APIRouter, Body, Depends, Header, Query, Request, Response, status
from sqlalchemy.engine import Engine

from apps.shared.cors import setup_cors
from apps.shared.database import Base, check_db_connection, create_session_factory, engine as default_engine
from apps.shared.errors import error_response, log_and_sanitize_error, setup_error_handlers
from apps.shared.proxy import FORWARDED_ALLOW_IPS, setup_proxy_support
from apps.shared.rate_limit import RATE_LIMIT, setup_rate_limiting
from apps.shared.security_headers import setup_security_headers
from apps.shared.static_files import STATIC_DIR, setup_static_frontend
from apps.blog.conflicts import format_etag, parse_etag
from apps.blog.exceptions import PostConflictError, PostNotFoundError, PostValidationError, StorageFailure
from apps.blog.query import normalize_query
from apps.blog.schemas import PostResponse, PostWrite
from apps.blog.seed import seed_sample_posts
from apps.blog.store import PostStore
from apps.blog.validation import validate_post

logger = logging.getLogger(__name__)
logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"))

ENVIRONMENT = os.getenv("ENVIRONMENT", "development")
API_PREFIX = os.getenv("API_PREFIX", "/blog").rstrip("/")
SEED_SAMPLE_POSTS = os.getenv("SEED_SAMPLE_POSTS", "false").lower() in ("1", "true", "yes")

PAGINATION_HEADERS = [
    "X-Pagination-TotalCount",
    "X-Pagination-PageSize",
    "X-Pagination-CurrentPage",
    "X-Pagination-TotalPages",
]


def get_store(request: Request) -> PostStore:
    """The store injected into this app by create_app."""
    return request.app.state.post_store


# ──────────────────────────────────────────────────────────────────────────────
# Routes
# ──────────────────────────────────────────────────────────────────────────────

router = APIRouter(tags=["posts"])


@router.get("/health")
def health(request: Request):
    """Health check endpoint."""
    db_connected = check_db_connection(request.app.state.engine)
    return {
        "status": "ok" if db_connected else "degraded",
        "service": "blog",
        "database": "connected" if db_connected else "disconnected",
    }


@router.get("/posts", response_model=list[PostResponse])
def list_posts(
    response: Response,
    page: Optional[str] = Query(None),
    page_size: Optional[str] = Query(None, alias="pageSize"),
    author: Optional[str] = Query(None),
    store: PostStore = Depends(get_store),
):
    """
    List posts, newest first.

    page/pageSize are clamped rather than rejected; author is a
    case-insensitive partial match. Pagination metadata is returned in
    X-Pagination-* headers.
    """
    query = normalize_query(page, page_size, author)
    result = store.list(query)

    response.headers["X-Pagination-TotalCount"] = str(result.total_count)
    response.headers["X-Pagination-PageSize"] = str(result.page_size)
    response.headers["X-Pagination-CurrentPage"] = str(result.page)
    response.headers["X-Pagination-TotalPages"] = str(result.total_pages)
    return result.items


@router.get("/posts/{post_id}", response_model=PostResponse)
def get_post(post_id: int, response: Response, store: PostStore = Depends(get_store)):
    """Get a single post by id."""
    post = store.get_by_id(post_id)
    response.headers["ETag"] = format_etag(post.version)
    return post


@router.post("/posts", response_model=PostResponse, status_code=status.HTTP_201_CREATED)
def create_post(
    request: Request,
    response: Response,
    post_data: Optional[PostWrite] = Body(None),
    store: PostStore = Depends(get_store),
):
    """Create a new post."""
    validate_post(post_data)
    post = store.create(post_data)

    response.headers["Location"] = str(request.url_for("get_post", post_id=post.id))
    response.headers["ETag"] = format_etag(post.version)
    return post


@router.put("/posts/{post_id}", status_code=status.HTTP_204_NO_CONTENT)
def update_post(
    post_id: int,
    post_data: Optional[PostWrite] = Body(None),
    if_match: Optional[str] = Header(None),
    store: PostStore = Depends(get_store),
):
    """
    Replace a post's title, author and content.

    The body id must match the URL. Send the version from a previous read
    as If-Match (or "version" in the body) to get 409 instead of silently
    overwriting someone else's change. If-Match: * accepts any version.
    """
    validate_post(post_data, target_id=post_id)

    if if_match is not None and if_match.strip() == "*":
        # Any current version matches
        expected_version = None
    else:
        expected_version = parse_etag(if_match)
        if expected_version is None:
            expected_version = post_data.version

    post = store.update(post_id, post_data, expected_version)
    return Response(
        status_code=status.HTTP_204_NO_CONTENT,
        headers={"ETag": format_etag(post.version)},
    )


@router.delete("/posts/{post_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_post(post_id: int, store: PostStore = Depends(get_store)):
    """Delete a post."""
    store.delete(post_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ──────────────────────────────────────────────────────────────────────────────
# App factory
# ──────────────────────────────────────────────────────────────────────────────

def setup_blog_error_handlers(app: FastAPI) -> None:
    """Map blog domain errors to HTTP responses."""

    @app.exception_handler(PostValidationError)
    async def validation_error_handler(request: Request, exc: PostValidationError):
        return error_response(
            message=exc.message,
            category="validation",
            status_code=status.HTTP_400_BAD_REQUEST,
            fields=exc.fields,
        )

    @app.exception_handler(PostNotFoundError)
    async def not_found_handler(request: Request, exc: PostNotFoundError):
        return error_response(
            message=str(exc),
            category="not_found",
            status_code=status.HTTP_404_NOT_FOUND,
        )

    @app.exception_handler(PostConflictError)
    async def conflict_handler(request: Request, exc: PostConflictError):
        logger.warning(f"Update conflict on blog post {exc.post_id}")
        headers = None
        if exc.current_version is not None:
            headers = {"ETag": format_etag(exc.current_version)}
        return error_response(
            message=str(exc),
            category="conflict",
            status_code=status.HTTP_409_CONFLICT,
            headers=headers,
        )

    @app.exception_handler(StorageFailure)
    async def storage_failure_handler(request: Request, exc: StorageFailure):
        sanitized, error_id = log_and_sanitize_error(
            exc.__cause__ or exc,
            f"Blog post {exc.operation}",
            "A database error occurred while processing the request.",
        )
        return error_response(
            message=sanitized,
            category="database",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            error_id=error_id,
        )


def create_app(
    store: Optional[PostStore] = None,
    *,
    engine: Optional[Engine] = None,
    api_prefix: str = API_PREFIX,
    rate_limit: Optional[str] = RATE_LIMIT,
    static_dir: Optional[str] = STATIC_DIR,
    seed: bool = SEED_SAMPLE_POSTS,
    forwarded_allow_ips: str = FORWARDED_ALLOW_IPS,
    https_redirect: bool = ENVIRONMENT == "production",
) -> FastAPI:
    """
    Build the Blog Service app around a post store.

    Without a store, one is created on engine (default: DATABASE_URL).
    Tables are created on startup. In production plain HTTP requests are
    redirected to HTTPS, using X-Forwarded-Proto from trusted proxies.
    """
    bind = engine or default_engine
    if store is None:
        store = PostStore(create_session_factory(bind))

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        Base.metadata.create_all(bind=bind)
        if seed:
            seed_sample_posts(store)
        yield

    docs_enabled = ENVIRONMENT != "production"
    app = FastAPI(
        title="Blog Service",
        version="1.0.0",
        description="Blog post CRUD with pagination and author filtering",
        docs_url=f"{api_prefix}/docs" if docs_enabled else None,
        redoc_url=None,
        openapi_url=f"{api_prefix}/openapi.json" if docs_enabled else None,
        lifespan=lifespan,
    )
    app.state.post_store = store
    app.state.engine = bind

    setup_error_handlers(app)
    setup_blog_error_handlers(app)

    # Last added runs first: forwarded headers are applied before anything
    # else, and CORS wraps everything below it, including 429s
    setup_rate_limiting(app, rate_limit)
    setup_security_headers(app, api_prefix)
    setup_cors(app, expose_headers=PAGINATION_HEADERS + ["ETag", "Location"])
    setup_proxy_support(app, forwarded_allow_ips, https_redirect)

    app.include_router(router, prefix=api_prefix)
    setup_static_frontend(app, static_dir, api_prefix)
    return app


app = create_app()
