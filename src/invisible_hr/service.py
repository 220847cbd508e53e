"""
Service facade.

`create_service` is the only place where concrete clients are constructed;
everything below it receives its collaborators explicitly.
"""

import logging
from datetime import date, datetime, timezone
from typing import Any, Callable, Dict, Optional

from invisible_hr.agent import AgentConfig, ChatOrchestrator, ToolRegistry
from invisible_hr.agent.llm import create_chat_model
from invisible_hr.agent.prompt import FALLBACK_MESSAGE
from invisible_hr.benchmark import BenchmarkResult, SalaryBand, analyze
from invisible_hr.compliance import ComplianceReport, EmployeeCompliance, check_expirations, employee_compliance
from invisible_hr.config import Settings
from invisible_hr.embeddings import create_embedding_client
from invisible_hr.employees import EmployeeContext, InMemoryEmployeeDirectory, seed_directory
from invisible_hr.ingestion import IngestionConfig, IngestionPipeline
from invisible_hr.knowledge_base import KnowledgeBase
from invisible_hr.resume import ResumeData, ResumeExtractor
from invisible_hr.retriever import PolicyRetriever, RetrievalConfig
from invisible_hr.vectorstore import create_vector_store

logger = logging.getLogger(__name__)


class HRService:
    """Entry points used by the MCP server (or any other transport)."""

    def __init__(
        self,
        directory: InMemoryEmployeeDirectory,
        orchestrator: ChatOrchestrator,
        pipeline: IngestionPipeline,
        knowledge_base: KnowledgeBase,
        resume_extractor: ResumeExtractor,
        today: Callable[[], date] = date.today,
        on_close: Optional[Callable[[], None]] = None,
    ):
        self.directory = directory
        self.orchestrator = orchestrator
        self.pipeline = pipeline
        self.knowledge_base = knowledge_base
        self.resume_extractor = resume_extractor
        self.today = today
        self._on_close = on_close

    async def chat(self, message: str, email: str) -> Dict[str, Any]:
        """
        Answer an employee's question.

        Never raises: any failure is logged and replaced by the fallback message.
        """
        try:
            employee = self.directory.get_by_email(email)
            answer = await self.orchestrator.answer(message, EmployeeContext.from_employee(employee))
            return answer.to_dict()
        except Exception as e:
            logger.error(f"Chat failed for {email}: {e}", exc_info=True)
            return {
                "success": False,
                "response": FALLBACK_MESSAGE,
                "timestamp": datetime.now(timezone.utc).isoformat(),
            }

    def leave_balance(self, email: str) -> Dict[str, Any]:
        employee = self.directory.get_by_email(email)
        return {"employeeName": employee.name, "leaveBalance": employee.leave_balance}

    def benchmark(
        self, email: str, band_min: Optional[float] = None, band_max: Optional[float] = None
    ) -> BenchmarkResult:
        candidate = self.directory.get_by_email(email)
        band = SalaryBand(min=band_min, max=band_max) if band_min is not None or band_max is not None else None
        return analyze(candidate, self.directory.list_employees(), band)

    def compliance_report(self, horizon_days: int = 90) -> ComplianceReport:
        return check_expirations(self.directory.list_employees(), self.today(), horizon_days)

    def employee_compliance(self, employee_id: int) -> EmployeeCompliance:
        return employee_compliance(self.directory.get_by_id(employee_id), self.today())

    async def extract_resume(self, resume_text: str) -> ResumeData:
        return await self.resume_extractor.extract(resume_text)

    def close(self) -> None:
        if self._on_close:
            self._on_close()


def create_service(settings: Optional[Settings] = None) -> HRService:
    """Wire the concrete clients selected by settings."""
    settings = settings or Settings.from_env()

    embedding_client = create_embedding_client(settings)
    vector_store = create_vector_store(settings)
    chat_model = create_chat_model(settings)
    directory = seed_directory()

    pipeline = IngestionPipeline(
        embedding_client,
        vector_store,
        IngestionConfig(chunk_size=settings.chunk_size, chunk_overlap=settings.chunk_overlap),
    )
    retriever = PolicyRetriever(embedding_client, vector_store, RetrievalConfig(default_top_k=settings.retrieval_top_k))
    orchestrator = ChatOrchestrator(
        retriever,
        chat_model,
        tools=ToolRegistry(directory, retriever),
        config=AgentConfig(
            model_name=settings.chat_model,
            temperature=settings.chat_temperature,
            request_timeout=settings.request_timeout,
            top_k=settings.retrieval_top_k,
        ),
    )

    def close() -> None:
        vector_store.close()
        embedding_client.close()

    return HRService(
        directory=directory,
        orchestrator=orchestrator,
        pipeline=pipeline,
        knowledge_base=KnowledgeBase(settings.knowledge_base_dir, pipeline),
        resume_extractor=ResumeExtractor(chat_model, timeout=settings.request_timeout),
        on_close=close,
    )
