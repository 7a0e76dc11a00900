"""FastAPI application entrypoint and HTTP controllers.

Controllers are intentionally thin: they resolve the database dependency,
delegate to services, and shape the JSON response. Every error body is
``{"message": ...}``.

Endpoints implemented:
- GET/POST /api/courses, GET/PUT/DELETE /api/courses/{id}
- GET/POST /api/students, GET /api/students/search,
  GET/PUT/DELETE /api/students/{id}
- GET /api/dashboard/stats
- GET /health, GET /health/detailed
- GET /{path} (static files with single-page-app fallback)
"""

import json
import logging
import time
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse, Response
from pymongo.database import Database
from pymongo.errors import PyMongoError
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import services
from .config import settings
from .database import MongoConnection, connection, get_connection, get_database
from .errors import CourseInUseError, InvalidIdentifierError, NotFoundError
from .logging_config import configure_logging
from .models import format_datetime, serialize_document
from .schemas import CourseCreate, CourseUpdate, StudentCreate, StudentUpdate
from .utils.system import process_uptime, runtime_info

configure_logging(settings)
logger = logging.getLogger("student_records.api")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # a store that is unreachable at boot is fatal; later failures are per-request 503s
    connection.connect()
    yield
    connection.close()


app = FastAPI(title="Student Records API", lifespan=lifespan)

if settings.ALLOW_CORS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


def _log_ctx(**fields) -> str:
    return json.dumps(fields, ensure_ascii=True, default=str)


def _store_message(exc: PyMongoError) -> str:
    details = getattr(exc, "details", None) or {}
    return details.get("errmsg") or str(exc)


def _now_iso() -> str:
    return format_datetime(datetime.now(timezone.utc))


@app.middleware("http")
async def request_context_middleware(request: Request, call_next):
    req_id = request.headers.get("X-Request-ID", uuid.uuid4().hex)
    request.state.request_id = req_id
    started = time.perf_counter()
    response: Response
    try:
        response = await call_next(request)
    except Exception:
        elapsed_ms = round((time.perf_counter() - started) * 1000.0, 2)
        logger.error(
            "request_failed %s",
            _log_ctx(
                request_id=req_id,
                path=request.url.path,
                method=request.method,
                duration_ms=elapsed_ms,
                query=dict(request.query_params),
            ),
        )
        raise
    response.headers["X-Request-ID"] = req_id
    elapsed_ms = round((time.perf_counter() - started) * 1000.0, 2)
    logger.info(
        "request_done %s",
        _log_ctx(
            request_id=req_id,
            path=request.url.path,
            method=request.method,
            status_code=response.status_code,
            duration_ms=elapsed_ms,
            query=dict(request.query_params),
            client=request.client.host if request.client else "unknown",
        ),
    )
    return response


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"message": exc.detail}, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    problems = []
    for err in exc.errors():
        loc = [str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path")]
        field = ".".join(loc) or "body"
        problems.append(f"{field}: {err.get('msg')}")
    message = "Validation failed: " + "; ".join(problems)
    logger.warning("validation_failed %s", _log_ctx(path=request.url.path, errors=problems))
    return JSONResponse(status_code=400, content={"message": message})


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    req_id = getattr(request.state, "request_id", None) or uuid.uuid4().hex
    logger.error(
        "unhandled_error %s",
        _log_ctx(
            request_id=req_id,
            message=str(exc),
            method=request.method,
            path=request.url.path,
            query=dict(request.query_params),
        ),
        exc_info=exc,
    )
    return JSONResponse(
        status_code=500,
        content={"message": "Internal server error"},
        headers={"X-Request-ID": req_id},
    )


# ---------- Courses ----------

@app.get("/api/courses")
def list_courses(db: Database = Depends(get_database)):
    """List all courses sorted by name."""
    try:
        courses = services.CourseService(db).list()
    except PyMongoError as e:
        logger.error("courses_list_failed %s", _log_ctx(error=str(e)))
        raise HTTPException(status_code=500, detail=_store_message(e))
    return [serialize_document(c) for c in courses]


@app.post("/api/courses", status_code=201)
def create_course(payload: CourseCreate, db: Database = Depends(get_database)):
    """Create a course; a duplicate name is rejected with 400."""
    try:
        course = services.CourseService(db).create(payload)
    except PyMongoError as e:
        logger.error("course_create_failed %s", _log_ctx(name=payload.name, error=str(e)))
        raise HTTPException(status_code=400, detail=_store_message(e))
    return serialize_document(course)


@app.get("/api/courses/{course_id}")
def get_course(course_id: str, db: Database = Depends(get_database)):
    try:
        course = services.CourseService(db).get(course_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except (InvalidIdentifierError, PyMongoError) as e:
        logger.error("course_fetch_failed %s", _log_ctx(courseId=course_id, error=str(e)))
        raise HTTPException(status_code=500, detail=str(e))
    return serialize_document(course)


@app.put("/api/courses/{course_id}")
def update_course(course_id: str, payload: CourseUpdate, db: Database = Depends(get_database)):
    """Apply a partial update to a course."""
    try:
        course = services.CourseService(db).update(course_id, payload)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InvalidIdentifierError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except PyMongoError as e:
        logger.error("course_update_failed %s", _log_ctx(courseId=course_id, error=str(e)))
        raise HTTPException(status_code=400, detail=_store_message(e))
    return serialize_document(course)


@app.delete("/api/courses/{course_id}")
def delete_course(course_id: str, db: Database = Depends(get_database)):
    """Delete a course unless any student's `course` field references it."""
    try:
        services.CourseService(db).delete(course_id)
    except CourseInUseError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except (InvalidIdentifierError, PyMongoError) as e:
        logger.error("course_delete_failed %s", _log_ctx(courseId=course_id, error=str(e)))
        raise HTTPException(status_code=500, detail=str(e))
    return {"message": "Course deleted successfully"}


# ---------- Students ----------

@app.get("/api/students")
def list_students(db: Database = Depends(get_database)):
    """List all students, newest first."""
    try:
        students = services.StudentService(db).list()
    except PyMongoError as e:
        logger.error("students_list_failed %s", _log_ctx(error=str(e)))
        raise HTTPException(status_code=500, detail=_store_message(e))
    return [serialize_document(s) for s in students]


@app.post("/api/students", status_code=201)
def create_student(payload: StudentCreate, db: Database = Depends(get_database)):
    """Create a student; a duplicate email is rejected with 400."""
    try:
        student = services.StudentService(db).create(payload)
    except PyMongoError as e:
        logger.error("student_create_failed %s", _log_ctx(email=payload.email, error=str(e)))
        raise HTTPException(status_code=400, detail=_store_message(e))
    return serialize_document(student)


@app.get("/api/students/search")
def search_students(q: Optional[str] = None, db: Database = Depends(get_database)):
    """Case-insensitive substring search over name, course and email."""
    try:
        students = services.StudentService(db).search(q or "")
    except PyMongoError as e:
        logger.error("student_search_failed %s", _log_ctx(searchTerm=q, error=str(e)))
        raise HTTPException(status_code=500, detail=_store_message(e))
    return [serialize_document(s) for s in students]


@app.get("/api/students/{student_id}")
def get_student(student_id: str, db: Database = Depends(get_database)):
    """Fetch one student; a malformed id is a 400, an unknown id a 404."""
    try:
        student = services.StudentService(db).get(student_id)
    except InvalidIdentifierError:
        raise HTTPException(status_code=400, detail="Invalid student ID format")
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PyMongoError as e:
        raise HTTPException(status_code=500, detail=_store_message(e))
    return serialize_document(student)


@app.put("/api/students/{student_id}")
def update_student(student_id: str, payload: StudentUpdate, db: Database = Depends(get_database)):
    try:
        student = services.StudentService(db).update(student_id, payload)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InvalidIdentifierError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except PyMongoError as e:
        logger.error("student_update_failed %s", _log_ctx(studentId=student_id, error=str(e)))
        raise HTTPException(status_code=400, detail=_store_message(e))
    return serialize_document(student)


@app.delete("/api/students/{student_id}")
def delete_student(student_id: str, db: Database = Depends(get_database)):
    try:
        services.StudentService(db).delete(student_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except (InvalidIdentifierError, PyMongoError) as e:
        logger.error("student_delete_failed %s", _log_ctx(studentId=student_id, error=str(e)))
        raise HTTPException(status_code=500, detail=str(e))
    return {"message": "Student deleted successfully"}


# ---------- Dashboard ----------

@app.get("/api/dashboard/stats")
def dashboard_stats(db: Database = Depends(get_database)):
    """Aggregate counters and success rate for the dashboard."""
    try:
        return services.DashboardService(db).stats()
    except PyMongoError as e:
        logger.error("dashboard_stats_failed %s", _log_ctx(error=str(e)))
        raise HTTPException(status_code=500, detail=_store_message(e))


# ---------- Health ----------

@app.get("/health")
def health():
    """Liveness probe; never touches the document store."""
    return {
        "status": "UP",
        "timestamp": _now_iso(),
        "uptime": process_uptime(),
        "environment": settings.ENV,
    }


@app.get("/health/detailed")
def health_detailed(conn: MongoConnection = Depends(get_connection)):
    """Report store readiness and process stats.

    The database status reflects the cached connection state; no ping is
    sent.
    """
    try:
        return {
            "status": "UP",
            "timestamp": _now_iso(),
            "database": {
                "status": "Connected" if conn.is_connected else "Disconnected",
                "name": "MongoDB",
                "host": conn.host,
            },
            "system": runtime_info(),
            "environment": settings.ENV,
        }
    except Exception as e:
        logger.error("health_detailed_failed %s", _log_ctx(error=str(e)))
        return JSONResponse(
            status_code=500,
            content={"status": "DOWN", "timestamp": _now_iso(), "error": str(e)},
        )


# ---------- Front end ----------

@app.get("/{full_path:path}", include_in_schema=False)
def frontend(full_path: str):
    """Serve a static file if one matches, otherwise the SPA entry document."""
    static_root = settings.STATIC_DIR.resolve()
    if full_path:
        target = (static_root / full_path).resolve()
        if static_root in target.parents and target.is_file():
            return FileResponse(target)
    index = static_root / "index.html"
    if not index.is_file():
        raise HTTPException(status_code=404, detail="Not found")
    return FileResponse(index)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=settings.PORT)
