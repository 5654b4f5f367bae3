"""
Pipeline orchestrator using LangGraph.

Coordinates product submission, answer collection and report generation
against a DataStore. Report generation runs as a state graph:

    load_inputs -> score -> synthesize -> assemble -> persist -> (enhance) -> END

The authoritative report is persisted before the optional enhancement call,
and only the deterministic calculator's total is ever stored. A failure
anywhere before ``persist`` leaves the previously stored report untouched.
"""

import time
from datetime import datetime, timezone
from functools import wraps
from typing import Any, Callable, Literal, Mapping, Optional, Sequence, TypedDict, Union
from uuid import UUID

from langgraph.graph import END, StateGraph

from truthtrack.config.settings import Settings, get_settings
from truthtrack.models.schemas import (
    Answer,
    Product,
    ProvisionalScore,
    Question,
    ScoreBreakdown,
    TransparencyReport,
)
from truthtrack.questions.assembler import QuestionAssembler
from truthtrack.scoring.calculator import calculate_score, provisional_score
from truthtrack.scoring.insights import synthesize
from truthtrack.scoring.report import assemble_report
from truthtrack.services.enhancement_service import (
    NullScoreEnhancer,
    ScoreEnhancer,
    create_score_enhancer,
)
from truthtrack.services.question_service import QuestionGenerator, create_question_generator
from truthtrack.services.storage import DataStore, InMemoryDataStore
from truthtrack.services.validation_service import ValidationService
from truthtrack.utils.errors import ErrorHandler, PersistenceError, ValidationError
from truthtrack.utils.logger import LogContext, get_logger

logger = get_logger(__name__)


# =============================================================================
# Report State Definition (TypedDict for LangGraph)
# =============================================================================

class ReportStateDict(TypedDict, total=False):
    """
    State carried through the report graph.

    Models are stored serialized so each node rebuilds what it reads.
    """
    product_id: str
    product: dict
    answers: list[dict]
    breakdown: dict
    total: int
    insights: list[str]
    recommendations: list[str]
    report: dict
    enhanced_score: Optional[int]
    step_timings: dict
    started_at: str


# =============================================================================
# Error Classes
# =============================================================================

class PipelineError(Exception):
    """Base exception for pipeline errors."""

    def __init__(
        self,
        message: str,
        error_type: str = "UNKNOWN_ERROR",
        details: dict | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_type = error_type
        self.details = details or {}


class SubmissionError(PipelineError):
    """Product or answer submission could not be stored."""


class ReportGenerationError(PipelineError):
    """The report could not be generated; any previous report is unchanged."""


# =============================================================================
# Decorators for Node Execution
# =============================================================================

def track_timing(func: Callable):
    """Decorator to track node execution timing."""
    @wraps(func)
    async def wrapper(self, state: ReportStateDict) -> dict[str, Any]:
        start_time = time.time()
        node_name = func.__name__.strip("_").replace("_node", "")

        try:
            result = await func(self, state)
        except Exception as e:
            logger.error(
                f"Node failed: {node_name}",
                product_id=state.get("product_id"),
                duration_ms=int((time.time() - start_time) * 1000),
                error=str(e),
            )
            raise

        step_timings = dict(state.get("step_timings") or {})
        step_timings[node_name] = int((time.time() - start_time) * 1000)
        result["step_timings"] = step_timings
        logger.debug(f"Completed node: {node_name}", product_id=state.get("product_id"))
        return result

    return wrapper


# =============================================================================
# Main Pipeline Class
# =============================================================================

class TransparencyPipeline:
    """
    Product transparency pipeline.

    Example:
        >>> async with TransparencyPipeline() as pipeline:
        ...     product, questions = await pipeline.submit_product(
        ...         {"name": "Granola Bar", "category": "Food & Beverages"}
        ...     )
        ...     await pipeline.submit_answers(product.id, {str(questions[0].id): "Oats"})
        ...     report = await pipeline.generate_report(product.id)
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        store: Optional[DataStore] = None,
        question_generator: Optional[QuestionGenerator] = None,
        score_enhancer: Optional[ScoreEnhancer] = None,
    ):
        self.settings = settings or get_settings()
        self.store = store or InMemoryDataStore()
        self.question_generator = question_generator or create_question_generator(self.settings)
        self.score_enhancer = score_enhancer or create_score_enhancer(self.settings)

        self.assembler = QuestionAssembler(self.question_generator)
        self.validator = ValidationService()

        self._graph = self._build_graph()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    # =========================================================================
    # Graph
    # =========================================================================

    def _build_graph(self):
        graph = StateGraph(ReportStateDict)

        graph.add_node("load_inputs", self._load_inputs_node)
        graph.add_node("score", self._score_node)
        graph.add_node("synthesize", self._synthesize_node)
        graph.add_node("assemble", self._assemble_node)
        graph.add_node("persist", self._persist_node)
        graph.add_node("enhance", self._enhance_node)

        graph.set_entry_point("load_inputs")
        graph.add_edge("load_inputs", "score")
        graph.add_edge("score", "synthesize")
        graph.add_edge("synthesize", "assemble")
        graph.add_edge("assemble", "persist")
        graph.add_conditional_edges(
            "persist",
            self._route_after_persist,
            {
                "enhance": "enhance",
                "done": END,
            },
        )
        graph.add_edge("enhance", END)

        return graph.compile()

    def _route_after_persist(self, state: ReportStateDict) -> Literal["enhance", "done"]:
        if isinstance(self.score_enhancer, NullScoreEnhancer):
            return "done"
        return "enhance"

    # =========================================================================
    # Node Implementations
    # =========================================================================

    @track_timing
    async def _load_inputs_node(self, state: ReportStateDict) -> dict[str, Any]:
        """Load the product snapshot and the current answer set."""
        product_id = UUID(state["product_id"])

        product = await self.store.get_product(product_id)
        if product is None:
            raise ValidationError(
                code="UNKNOWN_PRODUCT",
                message=f"Unknown product: {product_id}",
                details={"product_id": str(product_id)},
            )
        answers = await self.store.list_answers(product_id)

        return {
            "product": product.model_dump(),
            "answers": [a.model_dump() for a in answers],
        }

    @track_timing
    async def _score_node(self, state: ReportStateDict) -> dict[str, Any]:
        product = Product(**state["product"])
        answers = [Answer(**a) for a in state.get("answers", [])]

        breakdown = calculate_score(answers, product)
        return {
            "breakdown": breakdown.model_dump(exclude={"total"}),
            "total": breakdown.total,
        }

    @track_timing
    async def _synthesize_node(self, state: ReportStateDict) -> dict[str, Any]:
        answers = [Answer(**a) for a in state.get("answers", [])]
        breakdown = ScoreBreakdown(**state["breakdown"])

        insights, recommendations = synthesize(answers, breakdown, state["total"])
        return {"insights": insights, "recommendations": recommendations}

    @track_timing
    async def _assemble_node(self, state: ReportStateDict) -> dict[str, Any]:
        report = assemble_report(
            product=Product(**state["product"]),
            answers=[Answer(**a) for a in state.get("answers", [])],
            breakdown=ScoreBreakdown(**state["breakdown"]),
            total=state["total"],
            insights=state.get("insights", []),
            recommendations=state.get("recommendations", []),
        )
        return {"report": report.model_dump()}

    @track_timing
    async def _persist_node(self, state: ReportStateDict) -> dict[str, Any]:
        report = TransparencyReport(**state["report"])
        await self.store.save_report(report)

        logger.info(
            "Report persisted",
            product_id=state["product_id"],
            report_id=str(report.report_id),
            total=report.total,
        )
        return {}

    @track_timing
    async def _enhance_node(self, state: ReportStateDict) -> dict[str, Any]:
        """Best-effort display refinement; never changes the stored report."""
        try:
            enhanced = await self.score_enhancer.enhance(UUID(state["product_id"]))
        except Exception as e:
            logger.warning("Score enhancement failed", product_id=state["product_id"], error=str(e))
            enhanced = None
        return {"enhanced_score": enhanced}

    # =========================================================================
    # Public API
    # =========================================================================

    async def submit_product(
        self,
        data: Union[Mapping[str, Any], Product],
    ) -> tuple[Product, list[Question]]:
        """
        Validate a product, assemble its questions and store both together.

        Questions are generated once per product. A store failure leaves
        neither the product nor its questions behind.

        Raises:
            ValidationError: If the submission is invalid
            SubmissionError: If the data store fails
        """
        if isinstance(data, Product):
            product = self.validator.validate_product_input(data.model_dump())
        else:
            product = self.validator.validate_product_input(data)

        with LogContext(product_id=str(product.id)):
            drafts = await self.assembler.assemble(product)
            try:
                questions = await self.store.create_product(
                    product,
                    [Question.from_draft(d, product.id) for d in drafts],
                )
            except PersistenceError as e:
                logger.error("Product submission failed", error=e.message)
                raise SubmissionError(
                    f"Failed to submit product: {e.message}",
                    error_type=ErrorHandler.categorize_error(e),
                    details={"product_id": str(product.id)},
                ) from e

            logger.info("Product submitted", questions=len(questions))
        return product, questions

    async def get_questions(self, product_id: UUID) -> list[Question]:
        return await self.store.list_questions(product_id)

    async def submit_answers(self, product_id: UUID, data: Any) -> list[Answer]:
        """
        Upsert answers for a product (keyed by question id).

        Returns:
            The full stored answer set after the update
        """
        answers = self.validator.parse_answers(data)

        with LogContext(product_id=str(product_id)):
            try:
                if await self.store.get_product(product_id) is None:
                    raise ValidationError(
                        code="UNKNOWN_PRODUCT",
                        message=f"Unknown product: {product_id}",
                    )
                questions = await self.store.list_questions(product_id)
                self.validator.check_answers(answers, questions)
                stored = await self.store.upsert_answers(product_id, answers)
            except PersistenceError as e:
                logger.error("Answer submission failed", error=e.message)
                raise SubmissionError(
                    f"Failed to submit answers: {e.message}",
                    error_type=ErrorHandler.categorize_error(e),
                    details={"product_id": str(product_id)},
                ) from e

            logger.info("Answers submitted", submitted=len(answers), stored=len(stored))
        return stored

    async def generate_report(self, product_id: UUID) -> TransparencyReport:
        """
        Compute and store the report for the product's current answers.

        The returned report may carry ``enhanced_score`` for display; the
        stored report never does.

        Raises:
            ValidationError: If the product does not exist
            ReportGenerationError: If scoring or persistence fails
        """
        initial_state: ReportStateDict = {
            "product_id": str(product_id),
            "step_timings": {},
            "started_at": datetime.now(timezone.utc).isoformat(),
        }

        with LogContext(product_id=str(product_id)):
            logger.info("Starting report generation")
            try:
                final_state = await self._graph.ainvoke(initial_state)
            except ValidationError:
                raise
            except Exception as e:
                error_type = ErrorHandler.categorize_error(e)
                logger.error("Report generation failed", error_type=error_type, error=str(e))
                raise ReportGenerationError(
                    f"Report generation failed: {e}",
                    error_type=error_type,
                    details={"product_id": str(product_id)},
                ) from e

            report = TransparencyReport(**final_state["report"])
            enhanced = final_state.get("enhanced_score")
            if enhanced is not None:
                report = report.model_copy(update={"enhanced_score": enhanced})

            logger.info(
                "Report generation completed",
                total=report.total,
                enhanced_score=enhanced,
                duration_ms=sum((final_state.get("step_timings") or {}).values()),
            )
        return report

    async def get_report(self, product_id: UUID) -> Optional[TransparencyReport]:
        return await self.store.get_report(product_id)

    async def provisional_score(self, product_id: UUID) -> ProvisionalScore:
        """Placeholder score for display while the real report is computed. Not stored."""
        answers = await self.store.list_answers(product_id)
        return provisional_score(len(answers))

    # =========================================================================
    # Cleanup
    # =========================================================================

    async def close(self) -> None:
        """Close external service connections."""
        for service in (self.question_generator, self.score_enhancer):
            try:
                await service.close()
            except Exception as e:
                logger.warning(f"Error closing {type(service).__name__}: {e}")


# =============================================================================
# Convenience Functions
# =============================================================================

async def analyze_product(
    product_data: Mapping[str, Any],
    answer_values: Sequence[str],
    settings: Optional[Settings] = None,
    question_generator: Optional[QuestionGenerator] = None,
) -> tuple[list[Question], TransparencyReport]:
    """
    One-shot run against an in-memory store.

    ``answer_values`` are matched to the assembled questions by position;
    extra values are ignored and missing ones are simply not submitted.

    Example:
        >>> questions, report = await analyze_product(
        ...     {"name": "Granola Bar", "category": "Food & Beverages"},
        ...     ["Oats, honey, almonds", "Vermont, USA"],
        ... )
    """
    async with TransparencyPipeline(
        settings=settings,
        question_generator=question_generator,
    ) as pipeline:
        product, questions = await pipeline.submit_product(product_data)
        answers = [
            {"question_id": str(q.id), "value": value}
            for q, value in zip(questions, answer_values)
        ]
        if answers:
            await pipeline.submit_answers(product.id, answers)
        report = await pipeline.generate_report(product.id)
    return questions, report
