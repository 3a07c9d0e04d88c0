from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from app.api import commitments, history, expenses, dashboard, users, audit
from app.logging_config import setup_logging, get_logger
from app.services.errors import LedgerError

setup_logging()
logger = get_logger("api")

app = FastAPI(title="Personal Commitment Ledger")


@app.exception_handler(LedgerError)
async def ledger_error_handler(request: Request, exc: LedgerError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message, exc_info=exc)
    else:
        logger.warning("%s %s -> %s: %s", request.method, request.url.path, exc.code, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"status": "error", "code": exc.code, "message": exc.message},
    )


@app.get("/health")
def health():
    return {"ok": True}


# history must be mounted before /commitments so "/commitments/{id}" does not swallow it
app.include_router(history.router, prefix="/commitments/history", tags=["Payment History"])
app.include_router(commitments.router, prefix="/commitments", tags=["Commitments"])
app.include_router(expenses.router, prefix="/expenses", tags=["Expenses"])
app.include_router(dashboard.router, prefix="/dashboard", tags=["Dashboard"])
app.include_router(users.router, prefix="/users", tags=["Users"])
app.include_router(audit.router, prefix="/audit", tags=["Audit"])


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={"status": "error", "code": "INTERNAL_ERROR", "message": "Internal server error"},
    )
