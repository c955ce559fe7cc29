# File: snaplog/generator.py
"""
Expression generation for whole log files.

ExpressionsGenerator runs split -> classify for one log and writes the
expression file. generate_expression_batch fans independent log files out
over a thread pool; each file is parsed start to finish by one worker and a
failure in one file is reported on its own result only.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

import psutil

from config import EXPRESSION_FILE_SUFFIX, EXPRESSIONS_DIR, SEPARATOR_WIDTH, WORKER_COUNT

from .expressions import PassThruExpression, classify_expression
from .extractors import extract_fields
from .logger import get_logger
from .regex_models import PassThruRegexRegistry, default_registry
from .splitter import RAW_LINE_INDENT, split_log

PathLike = Union[str, Path]


def render_expression(expression: PassThruExpression, width: int = SEPARATOR_WIDTH) -> str:
    """One expression-file entry: separator, summary table, extraction table, raw lines, separator."""
    separator = "=" * width
    parts = [separator, expression.to_table()]

    result = extract_fields(expression)
    if result is not None and result.table:
        parts.append(result.table.rstrip("\n"))

    indent = " " * RAW_LINE_INDENT
    parts.append("\n".join(indent + line.rstrip("\r") for line in expression.lines))
    parts.append(separator)
    return "\n".join(parts)


def render_expressions(expressions: Iterable[PassThruExpression], width: int = SEPARATOR_WIDTH) -> str:
    return "\n\n".join(render_expression(e, width) for e in expressions)


class ExpressionsGenerator:
    """Builds and saves the expressions for one log file's contents."""

    def __init__(self, log_name: str, log_contents: str,
                 logger: Optional[logging.Logger] = None,
                 registry: Optional[PassThruRegexRegistry] = None):
        self.log_name = log_name
        self.log_contents = log_contents
        self.logger = logger or get_logger(__name__)
        self.registry = registry or default_registry()
        self.expressions: List[PassThruExpression] = []
        self.progress = 0.0

    @classmethod
    def from_file(cls, log_path: PathLike, **kwargs) -> "ExpressionsGenerator":
        log_path = Path(log_path)
        contents = log_path.read_text(encoding="utf-8", errors="replace")
        return cls(str(log_path), contents, **kwargs)

    def generate_log_expressions(self) -> List[PassThruExpression]:
        """Split the log and classify every block, in log order."""
        self.logger.info("generating expressions for %s", Path(self.log_name).name)
        blocks = split_log(self.log_contents, registry=self.registry, logger=self.logger)

        expressions = []
        self.progress = 0.0
        for index, block in enumerate(blocks):
            expressions.append(classify_expression(block.split("\n"),
                                                   logger=self.logger,
                                                   registry=self.registry))
            self.progress = (index + 1) / len(blocks)

        self.expressions = expressions
        self.logger.info("generated %d expression(s) for %s", len(expressions), Path(self.log_name).name)
        return expressions

    def expressions_text(self) -> str:
        if not self.expressions:
            self.generate_log_expressions()
        return render_expressions(self.expressions)

    def save_expressions_file(self, output_dir: Optional[PathLike] = None) -> Path:
        """Write ``<log stem>.ptExp`` and return its path (overwrites an older one)."""
        output_dir = Path(output_dir) if output_dir is not None else EXPRESSIONS_DIR
        output_dir.mkdir(parents=True, exist_ok=True)

        output_path = output_dir / (Path(self.log_name).stem + EXPRESSION_FILE_SUFFIX)
        output_path.write_text(self.expressions_text(), encoding="utf-8")
        self.logger.info("saved expressions file %s", output_path)
        return output_path


# ------------------------------------------------------------------
#  Batch
# ------------------------------------------------------------------
@dataclass
class GenerationResult:
    log_path: Path
    expressions: List[PassThruExpression] = field(default_factory=list)
    expression_file: Optional[Path] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def resolve_worker_count(workers: Optional[int], jobs: int) -> int:
    """Explicit count, else config, else one per logical CPU; never more than jobs."""
    count = workers or WORKER_COUNT or psutil.cpu_count(logical=True) or 1
    return max(1, min(count, jobs))


def _generate_one(log_path: Path, output_dir: Optional[PathLike], save: bool,
                  logger: logging.Logger) -> GenerationResult:
    try:
        generator = ExpressionsGenerator.from_file(log_path, logger=logger)
    except OSError as e:
        logger.error("could not read log file %s: %s", log_path, e)
        return GenerationResult(log_path, error=str(e))

    result = GenerationResult(log_path, expressions=generator.generate_log_expressions())
    if save:
        try:
            result.expression_file = generator.save_expressions_file(output_dir)
        except OSError as e:
            logger.error("could not save expressions for %s: %s", log_path, e)
            result.error = str(e)
    return result


def generate_expression_batch(log_paths: Iterable[PathLike],
                              workers: Optional[int] = None,
                              output_dir: Optional[PathLike] = None,
                              save: bool = True,
                              logger: Optional[logging.Logger] = None) -> Dict[Path, GenerationResult]:
    """
    Generate expressions for many log files in parallel.

    Returns results keyed by path, in the order the paths were given.
    """
    log = logger or get_logger(__name__)
    paths = [Path(p) for p in log_paths]
    if not paths:
        return {}

    worker_count = resolve_worker_count(workers, len(paths))
    log.info("generating expressions for %d file(s) with %d worker(s)", len(paths), worker_count)

    results: Dict[Path, GenerationResult] = {}
    with ThreadPoolExecutor(max_workers=worker_count, thread_name_prefix="snaplog") as pool:
        futures = {pool.submit(_generate_one, p, output_dir, save, log): p for p in paths}
        for future in as_completed(futures):
            path = futures[future]
            try:
                results[path] = future.result()
            except Exception as e:
                log.exception("expression generation failed for %s", path)
                results[path] = GenerationResult(path, error=f"{type(e).__name__}: {e}")

    return {p: results[p] for p in paths}
