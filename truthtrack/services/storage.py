"""
Data store port and adapters.

The pipeline persists four record kinds keyed by product identity: the
product, its ordered questions, its answers (one per question, upserted) and
its latest report (each save supersedes the previous one). A product and its
questions are created together in one call. Adapters raise PersistenceError
on failure; nothing here retries.
"""

import asyncio
import json
import os
import tempfile
from pathlib import Path
from typing import Any, Iterable, Optional
from uuid import UUID

from pydantic import ValidationError as PydanticValidationError

from truthtrack.models.schemas import Answer, Product, Question, TransparencyReport
from truthtrack.utils.errors import PersistenceError
from truthtrack.utils.logger import get_logger

logger = get_logger(__name__)


def _ordered(questions: Iterable[Question]) -> list[Question]:
    return sorted(questions, key=lambda q: q.order_index)


class DataStore:
    """Abstract interface for product, question, answer and report records."""

    async def create_product(self, product: Product, questions: list[Question]) -> list[Question]:
        """Store a new product together with its questions; returns them ordered."""
        raise NotImplementedError

    async def get_product(self, product_id: UUID) -> Optional[Product]:
        raise NotImplementedError

    async def list_questions(self, product_id: UUID) -> list[Question]:
        """Questions for a product, ordered by ``order_index``."""
        raise NotImplementedError

    async def upsert_answers(self, product_id: UUID, answers: Iterable[Answer]) -> list[Answer]:
        """Insert or replace answers keyed by question id; returns the full set."""
        raise NotImplementedError

    async def list_answers(self, product_id: UUID) -> list[Answer]:
        raise NotImplementedError

    async def save_report(self, report: TransparencyReport) -> TransparencyReport:
        raise NotImplementedError

    async def get_report(self, product_id: UUID) -> Optional[TransparencyReport]:
        raise NotImplementedError


# =============================================================================
# In-memory adapter
# =============================================================================

class InMemoryDataStore(DataStore):
    """In-process store for tests and single-run usage."""

    def __init__(self):
        self._products: dict[UUID, Product] = {}
        self._questions: dict[UUID, list[Question]] = {}
        self._answers: dict[UUID, dict[UUID, Answer]] = {}
        self._reports: dict[UUID, TransparencyReport] = {}

    def _require_product(self, product_id: UUID) -> None:
        if product_id not in self._products:
            raise PersistenceError(
                f"Unknown product: {product_id}",
                details={"product_id": str(product_id)},
            )

    async def create_product(self, product: Product, questions: list[Question]) -> list[Question]:
        if product.id in self._products:
            raise PersistenceError(f"Product already exists: {product.id}")
        self._products[product.id] = product
        self._questions[product.id] = _ordered(questions)
        return list(self._questions[product.id])

    async def get_product(self, product_id: UUID) -> Optional[Product]:
        return self._products.get(product_id)

    async def list_questions(self, product_id: UUID) -> list[Question]:
        return list(self._questions.get(product_id, []))

    async def upsert_answers(self, product_id: UUID, answers: Iterable[Answer]) -> list[Answer]:
        self._require_product(product_id)
        stored = self._answers.setdefault(product_id, {})
        for answer in answers:
            stored[answer.question_id] = answer
        return list(stored.values())

    async def list_answers(self, product_id: UUID) -> list[Answer]:
        return list(self._answers.get(product_id, {}).values())

    async def save_report(self, report: TransparencyReport) -> TransparencyReport:
        self._require_product(report.product_id)
        self._reports[report.product_id] = report
        return report

    async def get_report(self, product_id: UUID) -> Optional[TransparencyReport]:
        return self._reports.get(product_id)


# =============================================================================
# JSON file adapter
# =============================================================================

class JsonFileDataStore(DataStore):
    """
    One JSON document per product under ``data_dir``.

    Documents are written to a temporary file and renamed into place, so a
    failed write leaves the previous document (and report) intact. File I/O
    runs in worker threads; read-modify-write cycles hold an instance lock.
    """

    def __init__(self, data_dir: Path):
        self.data_dir = Path(data_dir)
        self._lock = asyncio.Lock()
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise PersistenceError(f"Cannot create data directory {self.data_dir}: {e}") from e
        logger.debug("JsonFileDataStore initialized", data_dir=str(self.data_dir))

    def _path(self, product_id: UUID) -> Path:
        return self.data_dir / f"{product_id}.json"

    def _load(self, product_id: UUID) -> Optional[dict[str, Any]]:
        path = self._path(product_id)
        if not path.exists():
            return None
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.error("Failed to read product document", path=str(path), error=str(e))
            raise PersistenceError(f"Failed to read {path}: {e}") from e

    def _load_required(self, product_id: UUID) -> dict[str, Any]:
        document = self._load(product_id)
        if document is None:
            raise PersistenceError(
                f"Unknown product: {product_id}",
                details={"product_id": str(product_id)},
            )
        return document

    def _write(self, product_id: UUID, document: dict[str, Any]) -> None:
        path = self._path(product_id)
        tmp_name = None
        try:
            fd, tmp_name = tempfile.mkstemp(dir=self.data_dir, prefix=".tmp-", suffix=".json")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(document, f, indent=2)
            os.replace(tmp_name, path)
        except OSError as e:
            logger.error("Failed to write product document", path=str(path), error=str(e))
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise PersistenceError(f"Failed to write {path}: {e}") from e

    def _parse(self, model, data):
        try:
            return model.model_validate(data)
        except PydanticValidationError as e:
            raise PersistenceError(f"Corrupt {model.__name__} record: {e}") from e

    async def _read(self, product_id: UUID) -> dict[str, Any]:
        return await asyncio.to_thread(self._load, product_id) or {}

    async def create_product(self, product: Product, questions: list[Question]) -> list[Question]:
        ordered = _ordered(questions)
        document = {
            "product": product.to_dict(),
            "questions": [q.to_dict() for q in ordered],
            "answers": {},
            "report": None,
        }
        async with self._lock:
            if await asyncio.to_thread(self._path(product.id).exists):
                raise PersistenceError(f"Product already exists: {product.id}")
            await asyncio.to_thread(self._write, product.id, document)
        return ordered

    async def get_product(self, product_id: UUID) -> Optional[Product]:
        document = await self._read(product_id)
        if not document:
            return None
        return self._parse(Product, document["product"])

    async def list_questions(self, product_id: UUID) -> list[Question]:
        document = await self._read(product_id)
        return _ordered(self._parse(Question, q) for q in document.get("questions", []))

    async def upsert_answers(self, product_id: UUID, answers: Iterable[Answer]) -> list[Answer]:
        async with self._lock:
            document = await asyncio.to_thread(self._load_required, product_id)
            stored = document.setdefault("answers", {})
            for answer in answers:
                stored[str(answer.question_id)] = answer.to_dict()
            await asyncio.to_thread(self._write, product_id, document)
        return [self._parse(Answer, a) for a in stored.values()]

    async def list_answers(self, product_id: UUID) -> list[Answer]:
        document = await self._read(product_id)
        return [self._parse(Answer, a) for a in document.get("answers", {}).values()]

    async def save_report(self, report: TransparencyReport) -> TransparencyReport:
        async with self._lock:
            document = await asyncio.to_thread(self._load_required, report.product_id)
            document["report"] = report.to_dict()
            await asyncio.to_thread(self._write, report.product_id, document)
        return report

    async def get_report(self, product_id: UUID) -> Optional[TransparencyReport]:
        document = await self._read(product_id)
        if not document.get("report"):
            return None
        return self._parse(TransparencyReport, document["report"])


__all__ = ["DataStore", "InMemoryDataStore", "JsonFileDataStore"]
