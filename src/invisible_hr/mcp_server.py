"""
FastMCP server exposing the HR assistant.

Tools:
- chat: Grounded policy Q&A for an employee
- get_leave_balance: Remaining leave days
- benchmark_salary: Peer-based salary recommendation with equity check
- check_compliance / get_employee_compliance: Visa expiry alerts
- extract_resume: Structured data from resume text
- list_knowledge_files: Knowledge-base catalog
"""

import logging
import os
from dataclasses import asdict
from typing import Optional

from dotenv import load_dotenv
from fastmcp import FastMCP

from invisible_hr.service import HRService, create_service

logger = logging.getLogger(__name__)


def build_server(service: HRService) -> FastMCP:
    """Register the service operations as MCP tools."""
    mcp = FastMCP("Invisible HR Services")

    @mcp.tool()
    async def chat(message: str, email: str) -> dict:
        """Ask the HR assistant a question on behalf of an employee."""
        return await service.chat(message, email)

    @mcp.tool()
    def get_leave_balance(email: str) -> dict:
        """Get the number of leave days remaining for an employee."""
        return service.leave_balance(email)

    @mcp.tool()
    def benchmark_salary(email: str, band_min: Optional[float] = None, band_max: Optional[float] = None) -> dict:
        """Benchmark an employee's salary against internal peers."""
        return service.benchmark(email, band_min, band_max).to_dict()

    @mcp.tool()
    def check_compliance(horizon_days: int = 90) -> dict:
        """List visas expiring within the horizon, closest first."""
        return service.compliance_report(horizon_days).to_dict()

    @mcp.tool()
    def get_employee_compliance(employee_id: int) -> dict:
        """Compliance status and recommendations for one employee."""
        status = service.employee_compliance(employee_id)
        result = asdict(status)
        if status.visa_expiry_date:
            result["visa_expiry_date"] = status.visa_expiry_date.isoformat()
        return result

    @mcp.tool()
    async def extract_resume(resume_text: str) -> dict:
        """Extract name, contact details, skills, experience and education from resume text."""
        data = await service.extract_resume(resume_text)
        return data.model_dump()

    @mcp.tool()
    def list_knowledge_files(q: Optional[str] = None, category: Optional[str] = None) -> list:
        """List knowledge-base documents."""
        return [entry.model_dump(mode="json") for entry in service.knowledge_base.list_files(q=q, category=category)]

    return mcp


if __name__ == "__main__":
    load_dotenv()
    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    host = os.getenv("MCP_HOST", "localhost")
    port = int(os.getenv("MCP_PORT", "9000"))
    service = create_service()
    logger.info(f"Starting FastMCP Invisible HR server on {host}:{port}")
    try:
        build_server(service).run(transport="sse", host=host, port=port)
    finally:
        service.close()
