"""
api.py - FastAPI HTTP layer for the project ledger.

Endpoints:
  GET  /health
  POST /projects                                  GET /projects
  GET  /projects/{project_id}
  POST /projects/{project_id}/tasks               GET /projects/{project_id}/tasks
  POST /projects/{project_id}/tasks/{task_id}/reconcile
  POST /projects/{project_id}/transactions        GET /projects/{project_id}/transactions
  POST /projects/{project_id}/transactions/preview
  GET  /projects/{project_id}/financials
  POST /projects/{project_id}/documents           GET /projects/{project_id}/documents

No reconciliation or ledger logic lives here; handlers call ProjectService.
"""

from __future__ import annotations

import logging
from typing import Optional

import uvicorn
from fastapi import FastAPI, File, Form, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import load_settings
from documents import DocumentStorage, upload_document
from errors import DuplicateRecordError, RecordNotFoundError, ValidationError
from logging_config import get_logger, setup_logging
from models import (
    NewProject,
    Project,
    ProjectDocument,
    ProjectFinancials,
    ReconciliationResult,
    Task,
    TaskForm,
    Transaction,
    TransactionForm,
)
from project_store import create_store
from projects import ProjectService, TransactionOutcome

logger = get_logger("sitebook-api")

settings = load_settings()

app = FastAPI(
    title="Construction Project Ledger API",
    version="1.0.0",
)

# Allows the dashboard UI to call the API from another local host/port.
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

service = ProjectService(create_store(settings.store_file))
document_storage = DocumentStorage(settings.documents_dir)


class ProjectCreateRequest(NewProject):
    owner_id: str


@app.exception_handler(RecordNotFoundError)
async def _not_found_handler(request: Request, exc: RecordNotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(DuplicateRecordError)
async def _duplicate_handler(request: Request, exc: DuplicateRecordError) -> JSONResponse:
    return JSONResponse(status_code=409, content={"detail": str(exc)})


@app.exception_handler(ValueError)
async def _validation_handler(request: Request, exc: ValueError) -> JSONResponse:
    logger.info("api_validation_error | path=%s | error=%s", request.url.path, exc)
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


# -- projects ----------------------------------------------------------


@app.post("/projects", response_model=Project)
def create_project(payload: ProjectCreateRequest) -> Project:
    new_project = NewProject.model_validate(payload.model_dump(exclude={"owner_id"}))
    return service.create_project(payload.owner_id, new_project)


@app.get("/projects", response_model=list[Project])
def list_projects(owner_id: Optional[str] = None) -> list[Project]:
    return service.store.list_projects(owner_id)


@app.get("/projects/{project_id}", response_model=Project)
def get_project(project_id: str) -> Project:
    return service.store.get_project(project_id)


# -- tasks -------------------------------------------------------------


@app.post("/projects/{project_id}/tasks", response_model=Task)
def add_task(project_id: str, form: TaskForm) -> Task:
    return service.add_task(project_id, form)


@app.get("/projects/{project_id}/tasks", response_model=list[Task])
def list_tasks(project_id: str) -> list[Task]:
    service.store.get_project(project_id)
    return service.store.list_tasks(project_id)


@app.post("/projects/{project_id}/tasks/{task_id}/reconcile", response_model=ReconciliationResult)
def reconcile_task(project_id: str, task_id: str) -> ReconciliationResult:
    return service.reconcile_task(project_id, task_id)


# -- transactions ------------------------------------------------------


@app.post("/projects/{project_id}/transactions", response_model=TransactionOutcome)
def record_transaction(project_id: str, form: TransactionForm) -> TransactionOutcome:
    return service.record_transaction(project_id, form)


@app.post("/projects/{project_id}/transactions/preview", response_model=TransactionOutcome)
def preview_transaction(project_id: str, form: TransactionForm) -> TransactionOutcome:
    return service.preview_transaction(project_id, form)


@app.get("/projects/{project_id}/transactions", response_model=list[Transaction])
def list_transactions(project_id: str) -> list[Transaction]:
    service.store.get_project(project_id)
    return service.store.list_transactions(project_id)


@app.get("/projects/{project_id}/financials", response_model=ProjectFinancials)
def get_financials(project_id: str) -> ProjectFinancials:
    return service.financials(project_id)


# -- documents ---------------------------------------------------------


@app.post("/projects/{project_id}/documents", response_model=ProjectDocument)
async def upload_project_document(
    project_id: str,
    file: UploadFile = File(...),
    main_category: str = Form(...),
    sub_category: str = Form(...),
    uploaded_by: str = Form(default="Unknown"),
    description: str = Form(default=""),
) -> ProjectDocument:
    if not file.filename:
        raise ValidationError("Document file is required.")
    try:
        content = await file.read()
    finally:
        await file.close()

    return upload_document(
        service.store,
        document_storage,
        project_id=project_id,
        file_name=file.filename,
        content=content,
        main_category=main_category,
        sub_category=sub_category,
        uploaded_by=uploaded_by,
        description=description,
    )


@app.get("/projects/{project_id}/documents", response_model=list[ProjectDocument])
def list_documents(project_id: str) -> list[ProjectDocument]:
    service.store.get_project(project_id)
    return service.store.list_documents(project_id)


if __name__ == "__main__":
    setup_logging(
        level=logging.DEBUG if settings.debug else logging.INFO,
        json_format=settings.log_json,
    )
    uvicorn.run("api:app", host="0.0.0.0", port=settings.port, reload=False)
