from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.responses import Response
from .api.api import api_router
from .core.errors import register_exception_handlers
from .db.database import create_tables
import logging
import json
import traceback

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    # make sure tables are created
    create_tables()
    yield

logger = logging.getLogger("fastapi")

app = FastAPI(title="mythboard", lifespan=lifespan)
register_exception_handlers(app)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    body = await request.body()
    request_info = {
        "url": str(request.url),
        "method": request.method,
        "path_params": request.path_params,
        "query_params": dict(request.query_params),
        "body": body.decode(errors="replace") if body else None
    }

    try:
        response = await call_next(request)
    except Exception as e:
        logger.error(
            f"Request failed with exception\n"
            f"Request: {json.dumps(request_info, indent=2, ensure_ascii=False)}\n"
            f"Error: {str(e)}\n"
            f"Traceback: {traceback.format_exc()}"
        )
        raise

    if response.status_code < 400:
        return response

    # the body iterator can only be consumed once, rebuild the response after logging it
    response_body = b""
    async for chunk in response.body_iterator:
        response_body += chunk

    logger.error(
        f"Request failed with status {response.status_code}\n"
        f"Request: {json.dumps(request_info, indent=2, ensure_ascii=False)}\n"
        f"Response: {response_body.decode(errors='replace')}\n"
    )
    rebuilt = Response(
        content=response_body,
        status_code=response.status_code,
        media_type=response.media_type
    )
    # raw headers keep repeated entries such as several set-cookie lines
    rebuilt.raw_headers = list(response.raw_headers)
    return rebuilt

# register the API router
app.include_router(api_router, prefix="/api")
