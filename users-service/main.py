import os
import time
import uuid
from fastapi import Depends, FastAPI, Request, Response
from fastapi.responses import JSONResponse
from loguru import logger
from dotenv import load_dotenv
from typing import List, Optional
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from schemas import UserCreate, UserUpdate, UserResponse
from store import UserNotFoundError, UserStore

# Chargement des variables d'environnement
load_dotenv()

SERVICE_NAME = "users-service"
LOG_FILE = os.getenv("LOG_FILE", "logs.json")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Config logging JSON (niveaux INFO, WARNING, ERROR)
logger.remove()  # Supprime le handler par défaut
logger.add(
    sink=LOG_FILE,
    format="{time:YYYY-MM-DDTHH:mm:ss.SSSZ} | {level} | {message} | {extra}",
    level=LOG_LEVEL,
    serialize=True,  # Format JSON
    rotation="1 day",  # Rotation quotidienne
)

# Prometheus metrics
REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["service", "method", "endpoint", "status"]
)
REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency in seconds",
    ["service", "method", "endpoint"]
)
ERROR_COUNT = Counter(
    "http_errors_total",
    "Total HTTP errors",
    ["service", "endpoint", "error_type"]
)


# Middleware pour logger les requests avec correlation ID (observabilité)
async def log_requests(request: Request, call_next):
    # Generate or propagate correlation ID (trace-id)
    trace_id = request.headers.get("X-Trace-ID", str(uuid.uuid4()))
    start_time = time.time()

    with logger.contextualize(trace_id=trace_id, service=SERVICE_NAME):
        logger.info(
            f"Request: {request.method} {request.url.path}",
            extra={"method": request.method, "url": str(request.url), "trace_id": trace_id}
        )

        response = await call_next(request)

        latency = time.time() - start_time
        # Template de route pour limiter la cardinalité des labels
        route = request.scope.get("route")
        endpoint = route.path if route is not None else request.url.path

        REQUEST_COUNT.labels(
            service=SERVICE_NAME,
            method=request.method,
            endpoint=endpoint,
            status=response.status_code
        ).inc()
        REQUEST_LATENCY.labels(
            service=SERVICE_NAME,
            method=request.method,
            endpoint=endpoint
        ).observe(latency)

        logger.info(
            f"Response status: {response.status_code}",
            extra={"status": response.status_code, "latency": latency, "trace_id": trace_id}
        )

        response.headers["X-Trace-ID"] = trace_id
        return response


async def user_not_found_handler(request: Request, exc: UserNotFoundError):
    logger.warning(f"User {exc.user_id} not found")
    ERROR_COUNT.labels(service=SERVICE_NAME, endpoint="/users/{user_id}", error_type="not_found").inc()
    return JSONResponse(status_code=404, content={"detail": "User not found"})


def get_store(request: Request) -> UserStore:
    return request.app.state.store


async def metrics():
    """Endpoint /metrics compatible Prometheus"""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


async def health(store: UserStore = Depends(get_store)):
    """Health check endpoint"""
    return {"status": "healthy", "service": SERVICE_NAME, "users": len(store)}


async def get_users(store: UserStore = Depends(get_store)):
    logger.info("Fetching all users")
    return store.list()


async def get_user(user_id: int, store: UserStore = Depends(get_store)):
    logger.info(f"Fetching user {user_id}")
    return store.get(user_id)


async def create_user(user: UserCreate, store: UserStore = Depends(get_store)):
    logger.info(f"Creating user: {user.name}")
    return store.create(user.name, user.email)


async def update_user(user_id: int, user: UserUpdate, store: UserStore = Depends(get_store)):
    logger.info(f"Updating user {user_id}")
    changes = user.model_dump(exclude_unset=True)
    return store.update(user_id, **changes)


async def delete_user(user_id: int, store: UserStore = Depends(get_store)):
    logger.info(f"Deleting user {user_id}")
    store.delete(user_id)
    return Response(status_code=204)


def create_app(store: Optional[UserStore] = None) -> FastAPI:
    """
    Construit l'application avec son propre store.
    Chaque instance (process ou test) possède sa collection d'utilisateurs.
    """
    app = FastAPI(title="Users Service")
    app.state.store = store if store is not None else UserStore()

    app.middleware("http")(log_requests)
    app.add_exception_handler(UserNotFoundError, user_not_found_handler)

    app.get("/metrics")(metrics)
    app.get("/health")(health)
    app.get("/users", response_model=List[UserResponse])(get_users)
    app.post("/users", response_model=UserResponse, status_code=201)(create_user)
    app.get("/users/{user_id}", response_model=UserResponse)(get_user)
    app.put("/users/{user_id}", response_model=UserResponse)(update_user)
    app.delete("/users/{user_id}", status_code=204, response_class=Response)(delete_user)
    return app


app = create_app()


if __name__ == "__main__":
    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", 8000))
    logger.info(f"Starting Users Service on {host}:{port}")
    import uvicorn
    uvicorn.run(app, host=host, port=port)
