"""AI mentor: free-text team coaching from roster, hackathon and recent chat."""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from ..core.errors import InvalidRequestError
from ..core.models import Hackathon, Team, UserProfile
from ..core.protocols import ReasoningClient

logger = logging.getLogger(__name__)

RECENT_MESSAGE_LIMIT = 15
MENTOR_SENDER_IDS = ("ai_bot", "ai_mentor")

MENTOR_PROMPT = """\
You are an expert hackathon mentor. Your role is to provide clear, actionable, and CONCISE guidance to hackathon teams.

CRITICAL RULES:
1. BE CONCISE: Maximum 3-4 short paragraphs OR a structured list. NO word salad.
2. BE SPECIFIC: Give concrete examples, not vague suggestions.
3. BE ACTIONABLE: Every piece of advice should be immediately implementable.
4. USE STRUCTURE: Bullet points, numbered lists, or clear sections. Avoid walls of text.
5. BE REALISTIC: Consider 24-hour hackathon constraints. Don't suggest overly complex solutions.

TEAM PROFILE:
{members}

HACKATHON:
{hackathon}

{context}QUESTION: {question}

RESPOND WITH:
- Direct answer to the question
- 2-3 specific, actionable steps or recommendations
- Brief reasoning (1 sentence per point)
- If asking for ideas: 2-3 project ideas with 1-sentence descriptions
- If asking for plan: Clear phases with time estimates
- If asking for organization: Specific role assignments based on team skills

Keep it SHORT, PRACTICAL, and IMMEDIATELY USABLE."""


def build_mentor_prompt(
    question: str,
    team: Team,
    members: Sequence[UserProfile],
    hackathon: Optional[Hackathon] = None,
) -> str:
    member_lines = "\n".join(
        f"- {m.name or 'Team Member'} ({m.role_preference or 'Developer'}): "
        f"Skills: {', '.join(m.skills) or 'General development'} | "
        f"Tech Stack: {', '.join(m.tech_stack) or 'Various technologies'} | "
        f"Experience: {', '.join(m.experience) or 'Hackathon experience'}"
        for m in members
    )

    hackathon_lines = [
        f"- Name: {hackathon.name if hackathon and hackathon.name else 'the hackathon'}",
        f"- Theme: {hackathon.description if hackathon and hackathon.description else 'General hackathon'}",
    ]
    if hackathon and hackathon.location:
        hackathon_lines.append(f"- Location: {hackathon.location}")
    if hackathon and hackathon.start_date:
        hackathon_lines.append(f"- Dates: {hackathon.start_date}")

    names = {m.id: m.name for m in members}
    recent = []
    for msg in team.messages[-RECENT_MESSAGE_LIMIT:]:
        if msg.sender_id in MENTOR_SENDER_IDS:
            sender = "AI Mentor"
        else:
            sender = names.get(msg.sender_id) or "Team Member"
        recent.append(f"{sender}: {msg.text}")
    context = f"RECENT CONTEXT:\n{chr(10).join(recent)}\n\n" if recent else ""

    return MENTOR_PROMPT.format(
        members=member_lines,
        hackathon="\n".join(hackathon_lines),
        context=context,
        question=question,
    )


# ============ Persona advice ============

ADVICE_CONTEXT_LIMIT = 10
DEFAULT_PERSONA = "DEFAULT"

_ADVICE_CONTEXT = """\
TEAM MEMBERS:
{members}

HACKATHON: {hackathon}

{context}"""

PERSONA_PROMPTS = {
    "ARCHITECT": """\
You are a Technical Architect specialist focused on tech stack decisions, GitHub repository structure, and file scaffolding.

Your core expertise:
- Tech stack selection (React, Node.js, Python, etc.) based on project requirements
- GitHub repository structure and organization (folders, files, naming conventions)
- File scaffolding and project setup (package.json, config files, .gitignore)
- Architecture patterns and best practices
- Development environment configuration

{team_context}Provide technical architecture guidance focused on tech stack, repo structure, and file scaffolding.""",
    "SCRUM_MASTER": """\
You are a Scrum Master specialist focused on Replit collaboration, timing, and task breaking.

Your core expertise:
- Breaking down projects into manageable tasks and sprints
- Time estimation for 24-hour hackathons
- Replit collaboration workflows and team coordination
- Task assignment and responsibility distribution
- Progress tracking and deadline management
- Stand-up facilitation and team communication

{team_context}Focus on project management, task breakdown, Replit collaboration strategies, and timing.""",
    "DESIGNER": """\
You are a UI/UX Designer specialist focused on Tailwind CSS, UI/UX design, and layout.

Your core expertise:
- Tailwind CSS utility classes and styling patterns
- UI/UX design principles and best practices
- Layout design (grid, flexbox, responsive design)
- Color schemes, typography, and design systems
- Component design and user flows
- Accessibility and responsive design patterns

{team_context}Focus on Tailwind CSS, UI/UX design, layout, and visual aesthetics.""",
    DEFAULT_PERSONA: """\
You are an expert hackathon mentor helping a team plan their project.

{team_context}Based on the team's combined skills and tech stack{and_conversation}, provide:
1. A unique project name
2. A brief project description (2-3 sentences)
3. Three specific project ideas that leverage the team's strengths
4. A step-by-step 24-hour execution plan broken into phases

Format your response as a clear, actionable plan that the team can follow immediately.""",
}


def build_advice_prompt(
    team: Team,
    members: Sequence[UserProfile],
    hackathon: Optional[Hackathon] = None,
    active_agent: Optional[str] = None,
) -> str:
    """Persona prompt for ``active_agent``; unknown or missing personas use the default mentor."""
    member_lines = "\n".join(
        f"{m.name or 'Member'}: {', '.join(m.skills) or 'General developer'} "
        f"({', '.join(m.tech_stack) or 'Various technologies'})"
        for m in members
    )
    names = {m.id: m.name for m in members}
    lines = []
    for msg in team.messages[-ADVICE_CONTEXT_LIMIT:]:
        sender = "AI Mentor" if msg.sender_id in MENTOR_SENDER_IDS else names.get(msg.sender_id) or "User"
        lines.append(f"{sender}: {msg.text}")
    recent = "\n".join(lines)
    team_context = _ADVICE_CONTEXT.format(
        members=member_lines,
        hackathon=hackathon.name if hackathon and hackathon.name else "the hackathon",
        context=f"RECENT CONVERSATION:\n{recent}\n\n" if recent else "",
    )
    template = PERSONA_PROMPTS.get((active_agent or "").upper(), PERSONA_PROMPTS[DEFAULT_PERSONA])
    return template.format(
        team_context=team_context,
        and_conversation=" and the recent conversation" if recent else "",
    )


class TeamMentor:
    def __init__(self, client: ReasoningClient):
        self._client = client

    async def advise(
        self,
        question: str,
        team: Team,
        members: Sequence[UserProfile],
        hackathon: Optional[Hackathon] = None,
    ) -> str:
        if not question or not question.strip():
            raise InvalidRequestError("Message is required")
        prompt = build_mentor_prompt(question, team, members, hackathon)
        logger.info("Mentor START | team=%s | members=%d", team.id, len(members))
        return await self._client.generate(prompt)

    async def team_advice(
        self,
        team: Team,
        members: Sequence[UserProfile],
        hackathon: Optional[Hackathon] = None,
        active_agent: Optional[str] = None,
        prompt: Optional[str] = None,
    ) -> str:
        """
        Unprompted advice in the voice of a persona.

        A non-empty ``prompt`` is sent as-is in place of the persona prompt.
        """
        custom = bool(prompt and prompt.strip())
        text = prompt if custom else build_advice_prompt(team, members, hackathon, active_agent)
        logger.info("Advice START | team=%s | agent=%s | custom=%s", team.id, active_agent, custom)
        reply = await self._client.generate(text)
        return reply.strip()
