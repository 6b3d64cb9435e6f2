"""AI Agents package."""

from cabledger.agents.ai_agents import (
    FAILURE_MESSAGE,
    MISSING_KEY_MESSAGE,
    FinancialAnalystAgent,
    ReportDigest,
    build_analysis_prompt,
)

__all__ = [
    "FAILURE_MESSAGE",
    "MISSING_KEY_MESSAGE",
    "FinancialAnalystAgent",
    "ReportDigest",
    "build_analysis_prompt",
]
