from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from app.core.config import get_settings
from app.core.db import init_db
from app.core.errors import configure_logging, register_exception_handlers, register_request_id_middleware
from app.routes.health import router as health_router
from app.routes.auth import router as auth_router
from app.routes.submissions import router as submissions_router
from app.routes.admin import router as admin_router
from app.routes.files import router as files_router

settings = get_settings()
configure_logging(settings.log_level)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield


app = FastAPI(title="Learner's License Intake API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        settings.frontend_base_url,
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ],
    allow_origin_regex=r"^http://(localhost|127\.0\.0\.1)(:\d+)?$",
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_request_id_middleware(app)
register_exception_handlers(app)

app.include_router(health_router)
app.include_router(auth_router)
app.include_router(submissions_router)
app.include_router(admin_router)
app.include_router(files_router)
