"""
Coding prompt template catalog.

The templates are seeded into `text_prompts` whenever the table holds fewer
rows than the catalog; afterwards usage counts drive the listing order.
"""

from __future__ import annotations

import json
import math
from typing import Any, Optional

from sqlalchemy import func

from horizon.app.core.db.relational import DBTextPrompt, get_relational_session
from horizon.app.observability.logging import log_event


CODING_PROMPT_TEMPLATES: list[dict[str, Any]] = [
    {
        "prompt_id": "impl-1",
        "title": "Implement a Feature End-to-End",
        "prompt": "Implement the following feature end-to-end. List the files you will touch, then write the code "
        "with error handling and a short usage example:\n\n[describe the feature]",
        "category": "implementation",
        "tags": ["feature", "end-to-end", "planning"],
    },
    {
        "prompt_id": "impl-2",
        "title": "REST Endpoint with Validation",
        "prompt": "Write a REST endpoint for [resource] that validates its input, returns clear 4xx errors and "
        "documents the request and response shapes.",
        "category": "implementation",
        "tags": ["api", "validation", "http"],
    },
    {
        "prompt_id": "impl-3",
        "title": "Data Model and Migration",
        "prompt": "Design the data model for [domain]. Provide the schema, indexes and a migration script, and "
        "explain how existing rows are backfilled.",
        "category": "implementation",
        "tags": ["database", "schema", "migration"],
    },
    {
        "prompt_id": "debug-1",
        "title": "Explain and Fix an Error",
        "prompt": "Here is an error and the code that produced it. Explain the root cause, then give the minimal fix:"
        "\n\nError:\n[paste error]\n\nCode:\n[paste code]",
        "category": "debugging",
        "tags": ["error", "stack-trace", "fix"],
    },
    {
        "prompt_id": "debug-2",
        "title": "Find a Race Condition",
        "prompt": "This code intermittently produces wrong results under load. Identify shared state, possible race "
        "conditions and propose a fix:\n\n[paste code]",
        "category": "debugging",
        "tags": ["concurrency", "race-condition"],
    },
    {
        "prompt_id": "debug-3",
        "title": "Performance Bottleneck Hunt",
        "prompt": "Profile this function mentally. Point out the hot paths, the algorithmic complexity and suggest "
        "faster alternatives:\n\n[paste code]",
        "category": "debugging",
        "tags": ["performance", "profiling", "complexity"],
    },
    {
        "prompt_id": "refactor-1",
        "title": "Refactor for Readability",
        "prompt": "Refactor this code for readability without changing behavior. Keep public names stable and "
        "explain each change briefly:\n\n[paste code]",
        "category": "refactoring",
        "tags": ["clean-code", "readability"],
    },
    {
        "prompt_id": "refactor-2",
        "title": "Extract Reusable Module",
        "prompt": "Identify duplicated logic in the following files and extract it into a reusable module with a "
        "small, well-named API:\n\n[paste code]",
        "category": "refactoring",
        "tags": ["duplication", "modules"],
    },
    {
        "prompt_id": "test-1",
        "title": "Write Unit Tests",
        "prompt": "Write unit tests for this code covering the happy path, edge cases and error handling. Use "
        "[framework]:\n\n[paste code]",
        "category": "testing",
        "tags": ["unit-tests", "edge-cases"],
    },
    {
        "prompt_id": "test-2",
        "title": "Integration Test Plan",
        "prompt": "Draft an integration test plan for [service]. Include fixtures, external dependencies to mock and "
        "the assertions that matter most.",
        "category": "testing",
        "tags": ["integration", "mocking", "fixtures"],
    },
    {
        "prompt_id": "review-1",
        "title": "Code Review Checklist",
        "prompt": "Review this pull request as a senior engineer. Flag bugs, security issues and missing tests, "
        "ordered by severity:\n\n[paste diff]",
        "category": "review",
        "tags": ["code-review", "security"],
    },
    {
        "prompt_id": "docs-1",
        "title": "Document a Module",
        "prompt": "Write concise documentation for this module: purpose, public API, an example and known "
        "limitations:\n\n[paste code]",
        "category": "documentation",
        "tags": ["docs", "readme"],
    },
    {
        "prompt_id": "arch-1",
        "title": "System Design Sketch",
        "prompt": "Sketch an architecture for [system] handling [load]. Cover components, data flow, storage "
        "choices and failure modes.",
        "category": "architecture",
        "tags": ["system-design", "scalability"],
    },
    {
        "prompt_id": "sec-1",
        "title": "Security Audit",
        "prompt": "Audit this code for injection, authentication and secret-handling issues. Propose concrete "
        "patches:\n\n[paste code]",
        "category": "security",
        "tags": ["owasp", "audit"],
    },
]


def ensure_seeded() -> None:
    with get_relational_session() as db:
        current = db.query(func.count(DBTextPrompt.id)).scalar() or 0
        if current >= len(CODING_PROMPT_TEMPLATES):
            return
        if current:
            db.query(DBTextPrompt).delete(synchronize_session=False)
        for template in CODING_PROMPT_TEMPLATES:
            db.add(
                DBTextPrompt(
                    prompt_id=template["prompt_id"],
                    title=template["title"],
                    prompt=template["prompt"],
                    category=template["category"],
                    tags=json.dumps(template["tags"]),
                )
            )
    log_event("text_prompts_seeded", count=len(CODING_PROMPT_TEMPLATES))


def list_prompts(page: int = 1, limit: int = 10, category: Optional[str] = None) -> dict[str, Any]:
    page = max(page, 1)
    limit = max(limit, 1)
    offset = (page - 1) * limit
    ensure_seeded()
    with get_relational_session() as db:
        query = db.query(DBTextPrompt)
        if category:
            query = query.filter(DBTextPrompt.category == category)
        total = query.count()
        rows = query.order_by(DBTextPrompt.usage_count.desc(), DBTextPrompt.id.asc()).offset(offset).limit(limit).all()
        prompts = [
            {
                "id": row.prompt_id,
                "title": row.title,
                "prompt": row.prompt,
                "category": row.category,
                "tags": json.loads(row.tags or "[]"),
                "usageCount": row.usage_count,
            }
            for row in rows
        ]
    return {
        "prompts": prompts,
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "totalPages": math.ceil(total / limit),
            "hasMore": offset + len(prompts) < total,
        },
    }


def track_usage(prompt_id: str) -> bool:
    ensure_seeded()
    with get_relational_session() as db:
        updated = (
            db.query(DBTextPrompt)
            .filter(DBTextPrompt.prompt_id == prompt_id)
            .update({DBTextPrompt.usage_count: DBTextPrompt.usage_count + 1}, synchronize_session=False)
        )
    return bool(updated)
