"""
AI Agents for Cab Ledger

DESIGN DECISION: The admin dashboard offers a short written analysis of
the reports currently on screen, produced by Gemini.

CRITICAL BOUNDARIES:
- The agent only READS reports; it never creates or edits records
- It sees a compact summary per report, not notes or PINs
- Any failure returns a fixed message; the dashboard keeps working

The LLM is a COMMENTATOR on figures we computed, never a source of them.
"""

import json
from typing import Optional, Sequence

import google.generativeai as genai
import structlog
from pydantic import BaseModel, ValidationError

from cabledger.config import GeminiSettings, get_settings
from cabledger.models.ledger import DailyReport


MISSING_KEY_MESSAGE = "API Key missing. Cannot generate analysis."
FAILURE_MESSAGE = "Failed to generate analysis. Please try again later."
EMPTY_RESPONSE_MESSAGE = "No analysis generated."

logger = structlog.get_logger(__name__)


class ReportDigest(BaseModel):
    """The per-report fields shared with the model."""

    driver: str
    date: str
    income: float
    expenses: float
    profit: float
    fuel: float

    @classmethod
    def from_report(cls, report: DailyReport) -> "ReportDigest":
        return cls(
            driver=report.driver_name,
            date=report.report_date.isoformat(),
            income=report.total_income,
            expenses=report.total_expenses,
            profit=report.net_profit,
            fuel=report.expenses.fuel,
        )


def build_analysis_prompt(reports: Sequence[DailyReport]) -> str:
    """Analyst prompt with the reports embedded as JSON."""
    digest = [ReportDigest.from_report(r).model_dump() for r in reports]
    return f"""You are a financial analyst for a taxi business.
Analyze the following recent daily reports JSON data (Currency: INR/₹).
Provide a concise summary including:
1. Overall business health (total profit, margins).
2. Top performing driver.
3. Any concerning expense trends (e.g., high fuel costs relative to income).
4. Actionable advice for the admin.

Data:
{json.dumps(digest, indent=2)}"""


def _load_settings() -> Optional[GeminiSettings]:
    try:
        return get_settings().gemini
    except ValidationError:
        return None


class FinancialAnalystAgent:
    """
    Narrative analysis of daily reports.

    RESPONSIBILITIES:
    - Summarize business health, top driver and expense trends
    - Suggest actions for the admin

    BOUNDARIES:
    - NEVER persists anything
    - NEVER raises to the caller; errors become a fixed message
    """

    def __init__(self, settings: Optional[GeminiSettings] = None):
        self._settings = settings or _load_settings()
        self._model = None
        if self.is_configured:
            self._configure_genai()

    @property
    def is_configured(self) -> bool:
        return bool(self._settings and self._settings.api_key)

    def _configure_genai(self):
        """Configure Google Generative AI."""
        genai.configure(api_key=self._settings.api_key)
        self._model = genai.GenerativeModel(
            model_name=self._settings.model_name,
            generation_config={
                "temperature": self._settings.temperature,
                "max_output_tokens": self._settings.max_tokens,
            }
        )

    async def analyze(self, reports: Sequence[DailyReport]) -> str:
        """
        Ask the model for an analysis of `reports`.

        Returns:
            The model's text, or one of the fixed fallback messages
        """
        if not self.is_configured:
            return MISSING_KEY_MESSAGE

        prompt = build_analysis_prompt(reports)
        try:
            response = await self._model.generate_content_async(prompt)
            return (response.text or "").strip() or EMPTY_RESPONSE_MESSAGE
        except Exception as e:
            logger.error("gemini_analysis_failed", error=str(e))
            return FAILURE_MESSAGE
