import logging
from pathlib import Path
from typing import Annotated, Any

from fastapi import Depends, FastAPI, HTTPException
from fastapi.staticfiles import StaticFiles
from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from replayer.config import get_settings
from replayer.db import Base, get_engine
from replayer.services.replay import (
    JobRegistry,
    NotFoundError,
    QueueDefinition,
    ValidationError,
    get_registry,
    parse_definition,
)
from replayer.store import get_stream, save_stream, stream_definition, stream_detail

logger = logging.getLogger(__name__)

app = FastAPI(title="Stream Replayer API", version="0.1.0")


class StreamDefinitionRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str | None = None
    broker_address: str | None = Field(
        default=None,
        validation_alias=AliasChoices("brokerAddress", "kafkaHost"),
    )
    topic: str | None = None
    items: list[Any] | None = Field(
        default=None,
        validation_alias=AliasChoices("items", "messages"),
    )

    def to_definition(self) -> QueueDefinition:
        return parse_definition(
            broker_address=self.broker_address,
            topic=self.topic,
            items=self.items,
        )


@app.on_event("startup")
def startup() -> None:
    Base.metadata.create_all(bind=get_engine())


def get_job_registry() -> JobRegistry:
    return get_registry()


def load_saved_definition(name: str) -> QueueDefinition:
    # Sync so FastAPI runs the query in its threadpool, off the job loop.
    with Session(get_engine()) as session:
        record = get_stream(session, name)
        if record is None:
            raise HTTPException(status_code=404, detail="stream not found")
        try:
            return stream_definition(record)
        except ValidationError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc


def _submit(registry: JobRegistry, definition: QueueDefinition) -> dict[str, Any]:
    job_id, state = registry.submit(definition)
    return {"id": job_id, "state": state.to_dict()}


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.post("/api/streams/save")
def save_stream_definition(request: StreamDefinitionRequest) -> dict[str, str]:
    try:
        request.to_definition()
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    if not request.name:
        raise HTTPException(status_code=400, detail="name is required")

    with Session(get_engine()) as session:
        save_stream(
            session,
            name=request.name,
            broker_address=request.broker_address or "",
            topic=request.topic or "",
            items=request.items or [],
        )
    logger.info("stream saved name=%s", request.name)
    return {"status": "ok"}


@app.get("/api/streams/state/{job_id}")
def get_job_state(
    job_id: str,
    registry: Annotated[JobRegistry, Depends(get_job_registry)],
) -> dict[str, Any]:
    try:
        job = registry.get(job_id)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail="job not found") from exc
    return job.get_state().to_dict()


@app.post("/api/streams/produce")
async def produce_stream(
    request: StreamDefinitionRequest,
    registry: Annotated[JobRegistry, Depends(get_job_registry)],
) -> dict[str, Any]:
    try:
        definition = request.to_definition()
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return _submit(registry, definition)


@app.get("/api/streams/{name}")
def get_stream_definition(name: str) -> dict[str, Any]:
    with Session(get_engine()) as session:
        record = get_stream(session, name)
        if record is None:
            raise HTTPException(status_code=404, detail="stream not found")
        return stream_detail(record)


@app.post("/api/streams/{name}/produce")
async def produce_saved_stream(
    definition: Annotated[QueueDefinition, Depends(load_saved_definition)],
    registry: Annotated[JobRegistry, Depends(get_job_registry)],
) -> dict[str, Any]:
    return _submit(registry, definition)


if Path(get_settings().web_dir).is_dir():
    app.mount("/", StaticFiles(directory=get_settings().web_dir, html=True), name="web")


def run() -> None:
    import uvicorn

    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.info("Starting HTTP server on port: %s", settings.port)
    uvicorn.run("replayer.main:app", host=settings.host, port=settings.port, reload=False)


if __name__ == "__main__":
    run()
