"""AutoTime API: construction workforce timesheets, payroll reports and exports."""
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
import platform
from datetime import datetime, timezone
import time
import threading
from collections import defaultdict, deque
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

from config import settings
from utils.audit import record_metric
from endpoints_auth import router as auth_router
from endpoints_organizations import router as organizations_router
from endpoints_managers import router as managers_router
from endpoints_workers import router as workers_router
from endpoints_jobs import router as jobs_router
from endpoints_clock import router as clock_router
from endpoints_clock_entries import router as clock_entries_router
from endpoints_amendments import router as amendments_router
from endpoints_overtime import router as overtime_router
from endpoints_expenses import router as expenses_router
from endpoints_reports import router as reports_router
from endpoints_notifications import router as notifications_router
from endpoints_dashboard import router as dashboard_router
from endpoints_postcodes import router as postcodes_router
from endpoints_internal import router as internal_router

# Rate limit: requests per second per client IP, plus burst allowance
RATE_RPS = settings.RATE_LIMIT_RPS
RATE_BURST = settings.RATE_LIMIT_BURST
_rl_store: dict = defaultdict(deque)
_rl_lock = threading.Lock()
_started_at = time.time()


app = FastAPI(title="AutoTime API", version="1.0.0")

# CORS: mobile and web clients call from their own origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


class RateLimitMW(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        ip = request.client.host if request.client else "local"
        now = time.time()
        with _rl_lock:
            q = _rl_store[ip]
            # Clean windows older than 1 second
            while q and now - q[0] > 1.0:
                q.popleft()
            if len(q) >= max(1, int(RATE_RPS) + RATE_BURST):
                return JSONResponse({"detail": "rate_limited"}, status_code=429)
            q.append(now)
        return await call_next(request)


app.add_middleware(RateLimitMW)

# Latency middleware: one JSONL metric per request
ROUTE_KIND_OVERRIDES = {
    "/api/clock/in": "http.clock.in",
    "/api/clock/out": "http.clock.out",
    "/api/reports/line-items": "http.reports.line_items",
    "/api/internal/auto-clock-out": "http.internal.auto_clock_out",
    "/api/internal/reminders": "http.internal.reminders",
    "/health": "health",
}


@app.middleware("http")
async def latency_metrics(request: Request, call_next):
    t0 = time.perf_counter()
    response = None
    try:
        response = await call_next(request)
        return response
    finally:
        dt_ms = round((time.perf_counter() - t0) * 1000.0, 2)
        path = request.url.path
        kind = ROUTE_KIND_OVERRIDES.get(path, "http.other")
        status_code = getattr(response, "status_code", 0) if response else 500
        record_metric(kind, {"path": path, "method": request.method, "status": status_code}, latency_ms=dt_ms)


app.include_router(auth_router)
app.include_router(organizations_router)
app.include_router(managers_router)
app.include_router(workers_router)
app.include_router(jobs_router)
app.include_router(clock_router)
app.include_router(clock_entries_router)
app.include_router(amendments_router)
app.include_router(overtime_router)
app.include_router(expenses_router)
app.include_router(reports_router)
app.include_router(notifications_router)
app.include_router(dashboard_router)
app.include_router(postcodes_router)
app.include_router(internal_router)


@app.get("/health")
def health():
    """Health check endpoint with uptime tracking."""
    return {
        "service": "api",
        "status": "ok",
        "ok": True,
        "uptime_s": round(time.time() - _started_at, 3),
        "version": app.version,
        "ts": datetime.now(timezone.utc).isoformat(),
        "python": platform.python_version(),
        "env": {
            "DB_PATH": settings.DB_PATH,
            "UK_TIMEZONE": settings.UK_TIMEZONE,
        },
    }
