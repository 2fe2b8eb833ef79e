from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from dishka.integrations.fastapi import setup_dishka

from core.container import container
from core.exception_handler import (
    validation_exception_handler,
    http_exception_handler,
    custom_exception_handler
)
from core.exceptions import BaseCustomException
from holdings.router import router as holdings_router

APP_NAME = "Token Holdings Snapshot Service"
APP_VERSION = "0.1.0"

app = FastAPI(
    title=APP_NAME,
    version=APP_VERSION,
    description="ERC-20 and ERC-721 holdings of an account, derived from Transfer logs",
)

setup_dishka(container, app)

app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(BaseCustomException, custom_exception_handler)
app.add_exception_handler(Exception, custom_exception_handler)

app.include_router(holdings_router)


@app.get("/")
async def root():
    """
    Root endpoint.

    Returns
    -------
    dict
        Application information
    """
    return {
        "name": APP_NAME,
        "version": APP_VERSION,
        "description": "ERC-20 and ERC-721 holdings snapshot",
        "endpoints": {
            "snapshot": "/api/holdings/snapshot",
            "docs": "/docs"
        }
    }


@app.get("/health")
async def health():
    """
    Basic health check endpoint.

    Returns
    -------
    dict
        Health status
    """
    return {"status": "healthy", "version": APP_VERSION}
