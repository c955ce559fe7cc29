#!/usr/bin/env python3
# File: api/app.py
# FastAPI wrapper around the snaplog parser (stateless endpoints)

from __future__ import annotations

from typing import Dict, List, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from config import API_HOST, API_PORT
from snaplog import __version__
from snaplog.expressions import PassThruExpression, classify_expression
from snaplog.extractors import extract_fields
from snaplog.logger import get_logger
from snaplog.regex_models import default_registry
from snaplog.splitter import expressions_to_log_text, split_log

log = get_logger("api")

# ---- FastAPI app --------------------------------------------------------------
app = FastAPI(title="snaplog PassThru Log API", version=__version__)

# Allow a local viewer / localhost to call this API
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"], # tighten later
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---- models ------------------------------------------------------------------
class LogRequest(BaseModel):
    log_text: str

class ExpressionsImportRequest(BaseModel):
    expressions_text: str

class LogTextResponse(BaseModel):
    log_text: str

class ExtractionOut(BaseModel):
    table: str
    values: List[List[str]]
    error: Optional[str] = None

class ExpressionOut(BaseModel):
    command_type: str
    time_issued: Optional[str] = None
    command_name: Optional[str] = None
    status_code: Optional[int] = None
    status_message: Optional[str] = None
    properties: List[List[str]]
    extraction: Optional[ExtractionOut] = None
    raw_lines: str

class ExpressionsResponse(BaseModel):
    count: int
    expressions: List[ExpressionOut]

# ---- helpers ------------------------------------------------------------------
def _expression_out(expression: PassThruExpression) -> ExpressionOut:
    extraction = None
    result = extract_fields(expression)
    if result is not None:
        extraction = ExtractionOut(
            table=result.table,
            values=result.values,
            error=str(result.failure) if result.failure else None,
        )
    return ExpressionOut(
        command_type=expression.command_type.name,
        time_issued=expression.time_issued,
        command_name=expression.command_name,
        status_code=expression.status_code,
        status_message=expression.status_message,
        properties=[list(pair) for pair in expression.properties()],
        extraction=extraction,
        raw_lines=expression.raw_lines,
    )

# ---- routes ------------------------------------------------------------------
@app.get("/")
def root() -> Dict[str, str]:
    return {"service": "snaplog-api", "hint": "see /health and /docs"}

@app.get("/health")
def health() -> Dict[str, str]:
    return {"status": "ok", "version": __version__}

@app.get("/patterns")
def patterns() -> Dict[str, str]:
    return default_registry().as_dict()

@app.post("/expressions", response_model=ExpressionsResponse)
def expressions(req: LogRequest):
    blocks = split_log(req.log_text, logger=log)
    parsed = [_expression_out(classify_expression(block, logger=log)) for block in blocks]
    return ExpressionsResponse(count=len(parsed), expressions=parsed)

@app.post("/expressions/import", response_model=LogTextResponse)
def import_expressions(req: ExpressionsImportRequest):
    return LogTextResponse(log_text=expressions_to_log_text(req.expressions_text))


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=API_HOST, port=API_PORT)
