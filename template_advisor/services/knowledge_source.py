"""
In-process knowledge base.

Backs tests, local development and deployments that preload curated best
practices, regulations and benchmarks from a seed file.
"""

from __future__ import annotations

import copy
import json
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

import structlog

from ..models.search import KnowledgeQuery

logger = structlog.get_logger(__name__)


def _norm(value: Any) -> str:
    if value is None:
        return ""
    return str(getattr(value, "value", value)).strip().lower()


class InMemoryKnowledgeSource:
    def __init__(self, records: Optional[Iterable[Dict[str, Any]]] = None):
        self._records: List[Dict[str, Any]] = [dict(r) for r in (records or [])]

    @classmethod
    def from_json_file(cls, path: Union[str, Path]) -> "InMemoryKnowledgeSource":
        with open(path, "r", encoding="utf-8") as fh:
            data = json.load(fh)
        records = data.get("records", []) if isinstance(data, dict) else data
        logger.info("Loaded knowledge seed", path=str(path), count=len(records))
        return cls(records)

    def add(self, record: Dict[str, Any]) -> None:
        self._records.append(dict(record))

    def __len__(self) -> int:
        return len(self._records)

    def query(self, filters: KnowledgeQuery) -> List[Dict[str, Any]]:
        """Records whose category / industry / process type / complexity
        equal the requested ones (case-insensitive); unset filters match all."""
        wanted = {
            "category": _norm(filters.category),
            "industry": _norm(filters.industry),
            "processType": _norm(filters.process_type),
            "complexity": _norm(filters.complexity),
        }
        out: List[Dict[str, Any]] = []
        for record in self._records:
            ok = True
            for key, want in wanted.items():
                if not want:
                    continue
                have = record.get(key)
                if have is None and key == "processType":
                    have = record.get("process_type")
                if _norm(have) != want:
                    ok = False
                    break
            if ok:
                out.append(copy.deepcopy(record))
        if filters.limit is not None:
            out = out[: filters.limit]
        return out
