import logging

from fastapi import FastAPI
from projecthub.core.config import settings
from projecthub.core.database import engine, Base
from projecthub.core.errors import register_error_handlers
from projecthub.models import user, project, invitation, tag, task  # noqa: F401  (table registration)
from projecthub.routers import health, auth, users, projects, tasks, tags, members, invitations, stats

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)

# Init DB
Base.metadata.create_all(bind=engine)

app = FastAPI(
    title="ProjectHub API",
    version="1.0.0"
)

register_error_handlers(app)

# Routes
app.include_router(health.router, prefix="/health")
app.include_router(auth.router)
app.include_router(users.router)
app.include_router(projects.router)
app.include_router(tasks.router)
app.include_router(tags.router)
app.include_router(members.router)
app.include_router(invitations.router)
app.include_router(stats.router)
