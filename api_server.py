from __future__ import annotations  # FastAPI server exposing interview sessions and intake chat

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.conversations import router as conversations_router
from api.routes import router as sessions_router
from observability.logger import HUMAN_DATEFMT, HUMAN_FORMAT
from storage.migrate import migrate


logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:  # Ensure the sessions table exists before serving
    migrate()
    yield


app = FastAPI(title="Candidate Intake API", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"]
)
app.include_router(sessions_router)
app.include_router(conversations_router)


@app.exception_handler(RequestValidationError)
async def _validation_as_bad_request(request: Request, exc: RequestValidationError) -> JSONResponse:  # Report request-shape errors as 400
    logger.info("Rejected %s %s: %s", request.method, request.url.path, exc.errors())
    return JSONResponse(status_code=400, content={"detail": "Validation error", "errors": jsonable_errors(exc)})


def jsonable_errors(exc: RequestValidationError) -> list:  # Strip non-serializable context from validation errors
    return [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg"), "type": error.get("type")}
        for error in exc.errors()
    ]


def main() -> None:  # Run the API with uvicorn
    logging.basicConfig(level=logging.INFO, format=HUMAN_FORMAT, datefmt=HUMAN_DATEFMT)
    uvicorn.run(app, host="0.0.0.0", port=8000)


if __name__ == "__main__":
    main()
