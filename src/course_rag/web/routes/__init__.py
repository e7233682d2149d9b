"""Route handlers for Web API."""

from course_rag.web.routes.ask import router as ask_router
from course_rag.web.routes.courses import router as courses_router
from course_rag.web.routes.debug import router as debug_router
from course_rag.web.routes.documents import router as documents_router
from course_rag.web.routes.health import router as health_router
from course_rag.web.routes.semesters import router as semesters_router
from course_rag.web.routes.units import router as units_router
from course_rag.web.routes.upload import router as upload_router
from course_rag.web.routes.years import router as years_router

__all__ = [
    "ask_router",
    "courses_router",
    "debug_router",
    "documents_router",
    "health_router",
    "semesters_router",
    "units_router",
    "upload_router",
    "years_router",
]
