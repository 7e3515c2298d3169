"""FastAPI application for Memo App."""

from contextlib import asynccontextmanager
from pathlib import Path

import structlog
from fastapi import Depends, FastAPI, Response
from fastapi.middleware.cors import CORSMiddleware

from memo_app import __version__
from memo_app.api.errors import register_exception_handlers
from memo_app.api.schemas import (
    BulkPriorityUpdateBody,
    HealthResponse,
    MemoRequest,
    MemoResponse,
    PriorityStatisticsResponse,
    PriorityUpdateRequest,
)
from memo_app.config import get_settings
from memo_app.core.models import BulkPriorityUpdateRequest, Priority
from memo_app.core.service import MemoService
from memo_app.db.repository import MemoRepository, get_repository
from memo_app.logging_config import configure_logging

logger = structlog.get_logger()


def get_memo_service(repository: MemoRepository = Depends(get_repository)) -> MemoService:
    return MemoService(repository)


def _find_project_root() -> Path:
    from_main = Path(__file__).parent.parent.parent.parent
    if (from_main / "alembic.ini").exists():
        return from_main
    return Path.cwd()


def _check_migrations() -> None:
    """Warn on startup if the database has pending migrations."""
    try:
        from alembic.config import Config
        from alembic.script import ScriptDirectory

        from memo_app.db.postgres import PostgresMemoRepository

        repository = get_repository()
        if not isinstance(repository, PostgresMemoRepository):
            return

        project_root = _find_project_root()
        alembic_cfg = Config(str(project_root / "alembic.ini"))
        alembic_cfg.set_main_option("script_location", str(project_root / "alembic"))
        head = ScriptDirectory.from_config(alembic_cfg).get_current_head()

        with repository.session() as conn, conn.cursor() as cur:
            cur.execute("SELECT version_num FROM alembic_version")
            row = cur.fetchone()
            current = row[0] if row else None

        if current is None:
            logger.warning(
                "migrations_not_initialized",
                hint="Run 'alembic upgrade head' to initialize the database",
            )
        elif current != head:
            logger.warning(
                "migrations_pending",
                current=current,
                head=head,
                hint="Run 'alembic upgrade head' to apply pending migrations",
            )
        else:
            logger.info("migrations_up_to_date", revision=current)
    except Exception as e:
        logger.warning("migration_check_failed", error=str(e))


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    configure_logging(settings.log_level, json=settings.log_json)
    if settings.storage_backend == "postgres":
        _check_migrations()
    yield


app = FastAPI(
    title="Memo App API",
    description="REST API for managing memos with priorities",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)


@app.get("/api/health", response_model=HealthResponse)
async def health(repository: MemoRepository = Depends(get_repository)) -> HealthResponse:
    db_status = "connected" if repository.health_check() else "disconnected"
    return HealthResponse(status="ok", version=__version__, database=db_status)


@app.get("/api/memos", response_model=list[MemoResponse])
async def list_memos(
    priority: str | None = None,
    sort: str | None = None,
    service: MemoService = Depends(get_memo_service),
) -> list[MemoResponse]:
    if priority:
        # Blank tokens count as missing; the service rejects an all-blank list.
        priorities = [
            Priority.parse(token.strip()) if token.strip() else None
            for token in priority.split(",")
        ]
        memos = service.filter_by_priority(priorities)
    elif sort:
        memos = service.sort_by_priority(sort)
    else:
        memos = service.list()
    return [MemoResponse.model_validate(m) for m in memos]


@app.get("/api/memos/stats/priority", response_model=PriorityStatisticsResponse)
async def get_priority_statistics(
    service: MemoService = Depends(get_memo_service),
) -> PriorityStatisticsResponse:
    return PriorityStatisticsResponse.model_validate(service.priority_statistics())


@app.get("/api/memos/{memo_id}", response_model=MemoResponse)
async def get_memo(
    memo_id: int, service: MemoService = Depends(get_memo_service)
) -> MemoResponse:
    return MemoResponse.model_validate(service.get_by_id(memo_id))


@app.post("/api/memos", response_model=MemoResponse)
async def create_memo(
    body: MemoRequest, service: MemoService = Depends(get_memo_service)
) -> MemoResponse:
    return MemoResponse.model_validate(service.create(body.to_memo()))


@app.put("/api/memos/{memo_id}", response_model=MemoResponse)
async def update_memo(
    memo_id: int, body: MemoRequest, service: MemoService = Depends(get_memo_service)
) -> MemoResponse:
    return MemoResponse.model_validate(service.update(memo_id, body.to_memo()))


@app.delete("/api/memos/{memo_id}", status_code=204)
async def delete_memo(memo_id: int, service: MemoService = Depends(get_memo_service)):
    service.delete(memo_id)
    return Response(status_code=204)


@app.put("/api/memos/{memo_id}/priority", response_model=MemoResponse)
async def update_memo_priority(
    memo_id: int,
    body: PriorityUpdateRequest,
    service: MemoService = Depends(get_memo_service),
) -> MemoResponse:
    priority = Priority.parse(body.priority) if body.priority is not None else None
    return MemoResponse.model_validate(service.update_priority(memo_id, priority))


@app.post("/api/memos/bulk/priority", response_model=list[MemoResponse])
async def bulk_update_priority(
    body: BulkPriorityUpdateBody, service: MemoService = Depends(get_memo_service)
) -> list[MemoResponse]:
    request = BulkPriorityUpdateRequest(
        memo_ids=body.memo_ids,
        priority=Priority.parse(body.priority) if body.priority is not None else None,
    )
    return [MemoResponse.model_validate(m) for m in service.bulk_update_priority(request)]
