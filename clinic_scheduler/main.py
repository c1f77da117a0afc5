import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from clinic_scheduler.core.config import settings
from clinic_scheduler.routers.availability import router as availability_router
from clinic_scheduler.routers.schedules import router as schedules_router
from clinic_scheduler.routers.shifts import router as shifts_router
from clinic_scheduler.routers.staff import router as staff_router
from clinic_scheduler.routers.time_off import router as time_off_router
from clinic_scheduler.scheduling.errors import ConflictError, ValidationError

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title="Clinic Staff Scheduler API")

allow_origins = settings.allow_origins

# Safe fallback for local dev if env var not set
if not allow_origins:
  allow_origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
  ]

app.add_middleware(
  CORSMiddleware,
  allow_origins=allow_origins,
  allow_credentials=True,
  allow_methods=["*"],
  allow_headers=["*"],
)


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(status_code=400, content={"detail": exc.message})


@app.exception_handler(ConflictError)
async def conflict_error_handler(request: Request, exc: ConflictError):
    return JSONResponse(status_code=409, content=exc.to_dict())


app.include_router(staff_router, prefix="/staff", tags=["staff"])
app.include_router(schedules_router, prefix="/schedules", tags=["schedules"])
app.include_router(shifts_router, prefix="/shifts", tags=["shifts"])
app.include_router(time_off_router, prefix="/time-off", tags=["time-off"])
app.include_router(availability_router, prefix="/availability", tags=["availability"])

@app.get("/health")
def health():
  return {"status": "ok"}
