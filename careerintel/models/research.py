"""Company research models and the fixed question set for structured reports.

A *structured* report is assembled from seven independent answer-engine
calls, one per :class:`ResearchQuestion`.  A *completion* report is a single
long-form text from the research model.  Both are stored on the research
unit itself.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from pydantic import BaseModel, ConfigDict

ResearchType = Literal["structured", "completion", "streaming"]

# Types that go through find-or-create; streaming is served directly.
STORED_RESEARCH_TYPES: frozenset[str] = frozenset({"structured", "completion"})

STRUCTURED_MODEL = "exa-answer"
COMPLETION_MODEL = "exa-research"


class ResearchParams(BaseModel):
    """Validated research parameters.  All four fields form the dedup key."""

    model_config = ConfigDict(frozen=True)

    company: str
    position: str
    location: str
    type: ResearchType = "structured"


class CompanyResearchReport(BaseModel):
    """Seven-section report produced by the structured research path."""

    company_overview: str = ""
    news_and_performance: str = ""
    employee_insights: str = ""
    industry_analysis: str = ""
    hiring_process: str = ""
    salary_and_benefits: str = ""
    financials: str = ""


# Section labels used when building the embedding text of a report.
REPORT_SECTION_LABELS: dict[str, str] = {
    "company_overview": "Company Overview",
    "news_and_performance": "News & Performance",
    "employee_insights": "Employee Insights",
    "industry_analysis": "Industry Analysis",
    "hiring_process": "Hiring Process",
    "salary_and_benefits": "Salary & Benefits",
    "financials": "Financials",
}


@dataclass(frozen=True)
class ResearchQuestion:
    """One answer-engine question.  ``template`` is formatted with
    ``company``, ``position``, ``location`` and ``current_date``."""

    key: str
    template: str
    description: str

    def render(self, params: ResearchParams, current_date: str) -> str:
        return self.template.format(
            company=params.company,
            position=params.position,
            location=params.location,
            current_date=current_date,
        )


RESEARCH_QUESTIONS: tuple[ResearchQuestion, ...] = (
    ResearchQuestion(
        key="company_overview",
        template=(
            "Provide a comprehensive and detailed company overview of {company}. "
            "Be thorough and include: mission statement, core values, founding history "
            "and story, key milestones, current leadership team with names and roles, "
            "organisational culture and work environment, company size (number of "
            "employees), headquarters locations, core business model and revenue streams, "
            "key products/services, and company structure. Include specific details, "
            "numbers, dates, and names wherever possible. Today's date is {current_date} "
            "for context."
        ),
        description="Comprehensive mission, values, history, leadership, and organisational culture analysis",
    ),
    ResearchQuestion(
        key="news_and_performance",
        template=(
            "Provide comprehensive and detailed analysis of {company}'s recent news and "
            "performance from the past 12-18 months. Be thorough and include: latest news "
            "and press releases, major product launches and updates, strategic partnerships "
            "and collaborations, acquisitions and mergers, market performance metrics, stock "
            "performance (if public company), strategic initiatives and business pivots, "
            "workforce changes including layoffs or expansions, regulatory developments, and "
            "competitive moves. Include specific dates, numbers, financial figures, and "
            "concrete details. Today's date is {current_date} for reference."
        ),
        description="Comprehensive recent news, press releases, product launches, partnerships, and performance analysis",
    ),
    ResearchQuestion(
        key="employee_insights",
        template=(
            "Provide comprehensive and detailed analysis of employee insights and workplace "
            "culture at {company}. Be thorough and include: employee reviews from multiple "
            "platforms (Glassdoor, Indeed, Blind, etc.), overall workplace culture assessment, "
            "diversity and inclusion initiatives and statistics, growth opportunities and "
            "career development programs, work-life balance policies and employee "
            "satisfaction, management quality and leadership effectiveness, compensation "
            "satisfaction, common challenges and concerns raised by employees, employee "
            "retention rates, and workplace benefits satisfaction. Include specific ratings, "
            "percentages, and concrete examples wherever possible."
        ),
        description="Comprehensive employee reviews, workplace culture, growth opportunities, and challenges analysis",
    ),
    ResearchQuestion(
        key="industry_analysis",
        template=(
            "Provide comprehensive and detailed industry analysis for {company}. Be thorough "
            "and include: complete competitive landscape with key competitors and their "
            "market positions, {company}'s market positioning and competitive advantages, "
            "industry trends and emerging technologies, total addressable market size and "
            "growth projections, regulatory environment and compliance requirements, market "
            "share data and rankings, industry challenges and opportunities, technological "
            "disruptions affecting the sector, and future outlook for the industry. Include "
            "specific market data, percentages, financial figures, and concrete examples "
            "wherever possible."
        ),
        description="Comprehensive competitors, industry positioning, and market trends analysis",
    ),
    ResearchQuestion(
        key="hiring_process",
        template=(
            "Provide comprehensive and detailed analysis of the hiring process for a "
            "{position} position at {company} in {location}. Be thorough and include: "
            "complete interview process stages and timeline, specific assessment methods and "
            "evaluation criteria, key decision makers and interview panel composition, common "
            "interview questions for this role, technical assessments and coding challenges, "
            "behavioural interview components, background check and reference processes, "
            "offer negotiation process, onboarding procedures, and specific tips for success. "
            "Include typical timelines, success rates, and concrete examples of questions and "
            "assessments wherever possible."
        ),
        description="Comprehensive hiring process analysis including stages, assessments, criteria, questions, and success tips",
    ),
    ResearchQuestion(
        key="salary_and_benefits",
        template=(
            "Provide comprehensive and detailed analysis of compensation and benefits for a "
            "{position} position at {company} in {location}. Be thorough and include: salary "
            "ranges by experience level (entry, mid, senior), total compensation packages "
            "breakdown, equity/stock options and vesting schedules, annual bonuses and "
            "performance incentives, health benefits (medical, dental, vision), retirement "
            "plans and pension matching, vacation policies and PTO, parental leave policies, "
            "unique perks and benefits, remote work policies, professional development "
            "budgets, and cost of living adjustments. Include specific salary figures, "
            "percentages, and concrete benefit details wherever possible."
        ),
        description="Comprehensive salary ranges, compensation packages, and benefits analysis",
    ),
    ResearchQuestion(
        key="financials",
        template=(
            "Provide comprehensive and detailed financial analysis of {company}. Be thorough "
            "and include: current revenue and growth trajectory, profitability metrics and "
            "margins, funding history and investment rounds, current valuation and market cap "
            "(if public), cash flow and burn rate, debt levels and financial stability, key "
            "financial ratios and metrics, revenue diversification and business segments, "
            "financial performance compared to competitors, future financial outlook and "
            "projections, and any financial risks or challenges. Include specific financial "
            "figures, percentages, growth rates, and concrete data wherever possible."
        ),
        description="Comprehensive revenue, profitability, funding, and growth trajectory analysis",
    ),
)

# Prompt for the long-form completion and streaming paths.
COMPLETION_PROMPT_TEMPLATE = """You are an assistant helping a prospective employee research everything they need to know about a company and a position they are interested in.

IMPORTANT CONTEXT: Today's date is {current_date}. When referring to "recent" events, "latest news", or "past 12-18 months", please use this date as your reference point.

You will carry out research on a comprehensive company overview including mission, values, history, leadership, and organisational culture; the latest company news, press releases, product launches, partnerships, and financial performance; employee reviews and insights on workplace culture, growth opportunities, and challenges; analysis of industry positioning, competitors, and market trends relevant to the company; detailed information about the specific position such as responsibilities, required qualifications, skills, and career progression; salary ranges, compensation packages, and benefits for the position; and company financials including revenue, profitability, funding, and growth trajectory.

The company is: {company}
The position is: {position}
The location is: {location}"""
