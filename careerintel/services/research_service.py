"""Company research: seven-question structured reports and long-form completions.

The structured path fires every section question at the answer engine
concurrently.  A report is all-or-nothing: if any question fails the
whole report fails, so a unit never completes with missing sections.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import AsyncIterator
from dataclasses import dataclass
from datetime import datetime, timezone

from careerintel.interfaces.research_provider import AnswerResult, IResearchProvider
from careerintel.models.research import (
    COMPLETION_MODEL,
    COMPLETION_PROMPT_TEMPLATE,
    RESEARCH_QUESTIONS,
    STRUCTURED_MODEL,
    CompanyResearchReport,
    ResearchParams,
)
from careerintel.utils.clock import Clock, now_ms
from careerintel.utils.concurrency import throttled_gather
from careerintel.utils.errors import ProviderError
from careerintel.utils.logging import get_logger


@dataclass(frozen=True)
class ResearchOutcome:
    """Result of one research run, before it is stored on the unit."""

    report: CompanyResearchReport | str
    model: str
    cost_dollars: float
    response_time_ms: float


def current_date_string(clock: Clock = now_ms) -> str:
    """Render the clock's date the way the prompts expect, e.g. ``5 March 2025``."""
    moment = datetime.fromtimestamp(clock() / 1000.0, tz=timezone.utc)
    return f"{moment.day} {moment.strftime('%B %Y')}"


class ResearchService:
    """Runs company research against an :class:`IResearchProvider`.

    Parameters
    ----------
    provider:
        Answer engine and research model.
    concurrency:
        Maximum section questions in flight at once.
    clock:
        Source of the prompt date.
    """

    def __init__(self, provider: IResearchProvider, concurrency: int = 7, clock: Clock = now_ms) -> None:
        self._provider = provider
        self._concurrency = concurrency
        self._clock = clock
        self._logger = get_logger(__name__)

    @property
    def provider_name(self) -> str:
        return self._provider.get_provider_name()

    async def structured(self, params: ResearchParams) -> ResearchOutcome:
        """Answer every section question and assemble a report.

        Raises
        ------
        ProviderError
            If any section question fails.
        """
        current_date = current_date_string(self._clock)
        started = time.monotonic()
        results = await throttled_gather(
            [
                self._provider.answer(question.render(params, current_date), question.description)
                for question in RESEARCH_QUESTIONS
            ],
            semaphore=asyncio.Semaphore(self._concurrency),
        )

        sections: dict[str, str] = {}
        total_cost = 0.0
        for question, result in zip(RESEARCH_QUESTIONS, results, strict=True):
            if isinstance(result, BaseException):
                self._logger.warning("research_question_failed", section=question.key, error=str(result))
                raise ProviderError(
                    message=f"Research section {question.key} failed: {result}",
                    provider_name=self._provider.get_provider_name(),
                ) from result
            answer: AnswerResult = result
            sections[question.key] = answer.answer
            total_cost += answer.cost_dollars

        elapsed_ms = (time.monotonic() - started) * 1000.0
        self._logger.info(
            "research_structured_complete",
            company=params.company,
            sections=len(sections),
            cost_dollars=round(total_cost, 6),
        )
        return ResearchOutcome(
            report=CompanyResearchReport(**sections),
            model=STRUCTURED_MODEL,
            cost_dollars=total_cost,
            response_time_ms=elapsed_ms,
        )

    async def completion(self, params: ResearchParams) -> ResearchOutcome:
        """Ask the research model for one long-form report."""
        started = time.monotonic()
        text = await self._provider.complete(self.build_prompt(params))
        elapsed_ms = (time.monotonic() - started) * 1000.0
        self._logger.info("research_completion_complete", company=params.company, chars=len(text))
        # The completion endpoint does not report cost.
        return ResearchOutcome(report=text, model=COMPLETION_MODEL, cost_dollars=0.0, response_time_ms=elapsed_ms)

    def stream(self, params: ResearchParams) -> AsyncIterator[str]:
        """Stream the research model's report; nothing is stored."""
        return self._provider.stream(self.build_prompt(params))

    def build_prompt(self, params: ResearchParams) -> str:
        return COMPLETION_PROMPT_TEMPLATE.format(
            company=params.company,
            position=params.position,
            location=params.location,
            current_date=current_date_string(self._clock),
        )
