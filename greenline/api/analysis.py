"""Diff analysis endpoints.

POST /api/diff/added-lines          added lines of a diff with new-file line numbers
POST /api/coverage/uncovered        added lines no test executed
POST /api/suggestions/prompts       test-suggestion prompts, one per chunk
POST /api/suggestions/comments      review-comment payloads from a model answer

Every handler is pure computation over the request body (and, for coverage,
the configured report file).  Nothing here calls a model or the GitHub API.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from greenline.config import Settings, get_settings
from greenline.core.chunking import chunk_lines
from greenline.core.coverage import (
    build_coverage_map,
    filter_added_uncovered,
    load_coverage_report,
)
from greenline.core.diff_walker import AddedLine, parse_diff
from greenline.core.exceptions import (
    CoverageReportError,
    InvalidArgumentError,
    SuggestionParseError,
)
from greenline.core.prompts import (
    build_suggestion_body,
    build_suggestion_prompt,
    parse_suggestions,
)
from greenline.core.review_comments import (
    build_comment_payload,
    extract_pr_number,
    format_line_range,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["analysis"])


# ---------------------------------------------------------------------------
#  Request / response models
# ---------------------------------------------------------------------------


class AddedLineModel(BaseModel):
    file: str
    line: int
    code: str

    @classmethod
    def from_added(cls, added: AddedLine) -> AddedLineModel:
        return cls(file=added.file, line=added.line, code=added.code)

    def to_added(self) -> AddedLine:
        return AddedLine(file=self.file, line=self.line, code=self.code)


class DiffRequest(BaseModel):
    diff: str


class CoverageRequest(BaseModel):
    diff: str
    # Coveralls "source_files" entries; the configured report is read when omitted.
    source_files: list[dict[str, Any]] | None = None


class AddedLinesResponse(BaseModel):
    added_lines: list[AddedLineModel]
    count: int


class PromptRequest(BaseModel):
    added_lines: list[AddedLineModel]
    max_chars: int | None = None


class PromptsResponse(BaseModel):
    prompts: list[str]
    chunk_sizes: list[int]


class CommentsRequest(BaseModel):
    response_text: str


class CommentsResponse(BaseModel):
    pr_number: int | None
    comments: list[dict[str, Any]] = Field(default_factory=list)


def _to_response(added_lines: list[AddedLine]) -> AddedLinesResponse:
    return AddedLinesResponse(
        added_lines=[AddedLineModel.from_added(added) for added in added_lines],
        count=len(added_lines),
    )


# ---------------------------------------------------------------------------
#  Endpoints
# ---------------------------------------------------------------------------


@router.post("/diff/added-lines")
async def added_lines(request: DiffRequest) -> AddedLinesResponse:
    """Map every added line of ``request.diff`` to its file and new-file line."""
    return _to_response(parse_diff(request.diff))


@router.post("/coverage/uncovered")
async def uncovered_lines(
    request: CoverageRequest,
    config: Settings = Depends(get_settings),
) -> AddedLinesResponse:
    """Return the added lines whose coverage hit count is zero.

    Raises:
        HTTPException(500): If no ``source_files`` were sent and the configured
            coverage report cannot be read.
    """
    source_files = request.source_files
    if source_files is None:
        try:
            source_files = load_coverage_report(config.coverage_path)
        except CoverageReportError as exc:
            logger.error("Coverage report unavailable", extra={"path": exc.path})
            raise HTTPException(status_code=500, detail=str(exc)) from exc

    added = parse_diff(request.diff)
    coverage_map = build_coverage_map(source_files)
    uncovered = filter_added_uncovered(added, coverage_map)

    logger.info(
        "Coverage gap check",
        extra={
            "added": len(added),
            "uncovered": len(uncovered),
            "files_with_coverage": len(coverage_map),
        },
    )
    return _to_response(uncovered)


@router.post("/suggestions/prompts")
async def suggestion_prompts(
    request: PromptRequest,
    config: Settings = Depends(get_settings),
) -> PromptsResponse:
    """Chunk the given lines and build one test-suggestion prompt per chunk.

    Raises:
        HTTPException(422): If ``max_chars`` is not a positive integer.
    """
    lines = [item.to_added() for item in request.added_lines]
    max_chars = request.max_chars if request.max_chars is not None else config.chunk_max_chars

    try:
        chunks = chunk_lines(lines, max_chars)
    except InvalidArgumentError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    prompts = [
        build_suggestion_prompt(
            chunk,
            language=config.suggestion_language,
            framework=config.suggestion_framework,
        )
        for chunk in chunks
    ]
    return PromptsResponse(prompts=prompts, chunk_sizes=[len(chunk) for chunk in chunks])


@router.post("/suggestions/comments")
async def suggestion_comments(
    request: CommentsRequest,
    config: Settings = Depends(get_settings),
) -> CommentsResponse:
    """Turn a model's JSON answer into review-comment payloads.

    Raises:
        HTTPException(422): If the answer is not a JSON list.
    """
    try:
        suggestions = parse_suggestions(request.response_text)
    except SuggestionParseError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    comments: list[dict[str, Any]] = []
    for suggestion in suggestions:
        comments.append(
            build_comment_payload(
                body=build_suggestion_body(
                    suggestion.original_code,
                    suggestion.suggested_test,
                    language=config.suggestion_language,
                ),
                commit_id=config.pr_head_sha,
                path=suggestion.file,
                start_line=suggestion.line,
            )
        )
        logger.debug(
            "Built suggestion comment for %s:%s",
            suggestion.file,
            format_line_range(suggestion.line),
        )

    return CommentsResponse(pr_number=extract_pr_number(config.github_ref), comments=comments)
