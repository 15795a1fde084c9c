"""FastAPI app: POST /submit-wish appends to Google Sheets and optionally emails."""

import json
from contextlib import asynccontextmanager

import uvicorn
from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from wishsheet.config import Settings, get_settings, missing_required_settings
from wishsheet.credentials.bootstrap import credential_artifacts, provision_credential_files
from wishsheet.errors import ConfigurationError, UpstreamError, ValidationError
from wishsheet.logging_config import configure_logging, get_logger
from wishsheet.notify.mailer import Notifier, build_notifier
from wishsheet.sheets.client import SheetsClient, SpreadsheetTarget, build_sheets_client
from wishsheet.wishes.service import submit_wish

configure_logging(debug=False)
logger = get_logger(__name__)


def validate_startup_config(settings: Settings) -> None:
    """
    Fail fast outside development when critical settings are missing.
    In development, only warn; requests then fail with a clear configuration error.
    """
    missing = missing_required_settings(settings)
    if not missing:
        logger.info("startup_validation_passed")
        return
    if settings.is_development:
        logger.warning("startup_settings_missing", env=settings.env, missing=missing)
        return
    logger.error("startup_validation_failed", env=settings.env, missing=missing)
    raise ConfigurationError(f"Missing required settings: {', '.join(missing)}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Startup: validate config, provision credential files from env, build the
    Sheets client and the notifier once. They are shared read-only by all requests.
    """
    settings = get_settings()
    configure_logging(debug=settings.debug)
    validate_startup_config(settings)
    provision_credential_files(credential_artifacts(settings))

    app.state.target = SpreadsheetTarget(
        spreadsheet_id=settings.sheet_id, sheet_name=settings.sheet_name
    )
    app.state.sheets = build_sheets_client(settings)
    app.state.notifier = build_notifier(settings)

    logger.info("startup_complete", url=f"http://{settings.host}:{settings.port}/submit-wish")
    yield


def get_sheets_client(request: Request) -> SheetsClient:
    return request.app.state.sheets


def get_notifier(request: Request) -> Notifier:
    return request.app.state.notifier


def get_target(request: Request) -> SpreadsheetTarget:
    return request.app.state.target


app = FastAPI(title="Wishsheet", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins_list(),
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.post("/submit-wish")
async def submit_wish_endpoint(
    request: Request,
    sheets: SheetsClient = Depends(get_sheets_client),
    notifier: Notifier = Depends(get_notifier),
    target: SpreadsheetTarget = Depends(get_target),
) -> JSONResponse:
    """
    Save one wish as a new sheet row. 400 when the wish is missing; 500 when the
    row could not be saved. Notification failures do not change a 200.
    """
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        body = None
    try:
        result = await submit_wish(body, sheets=sheets, notifier=notifier, target=target)
    except ValidationError as e:
        return JSONResponse(status_code=400, content={"success": False, "message": str(e)})
    except ConfigurationError as e:
        logger.error("submit_wish_not_configured", error=str(e))
        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "message": "Service configuration error.",
                "error": str(e),
            },
        )
    except UpstreamError as e:
        logger.error("submit_wish_upstream_error", error=str(e))
        return JSONResponse(
            status_code=500,
            content={"success": False, "message": "Internal server error.", "error": str(e)},
        )
    except Exception as e:
        logger.exception("submit_wish_error")
        return JSONResponse(
            status_code=500,
            content={"success": False, "message": "Internal server error.", "error": str(e)},
        )
    return JSONResponse(status_code=200, content={"success": True, "message": result.message})


def run() -> None:
    """Start the HTTP listener on HOST:PORT."""
    settings = get_settings()
    logger.info("server_starting", host=settings.host, port=settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port, log_level="debug" if settings.debug else "info")


if __name__ == "__main__":
    run()
