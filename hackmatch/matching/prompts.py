"""
Evaluation prompt templates for match scoring.

Three shapes:
- team: a candidate against an existing roster
- evaluator: the calling user scoring a candidate for themselves
- pair: two users, neither of them the caller

Builders are pure functions of their inputs. List fields are
de-duplicated (first occurrence wins) and joined with ", ", so identical
profiles always produce byte-identical prompts.
"""

from __future__ import annotations

from typing import Iterable, Optional, Sequence

from ..core.models import UserProfile

_RULES_FOOTER = """\
4. REASONING FORMAT (REQUIRED):
   - List exactly ONE "Pros" (what makes this a good match)
   - List exactly ONE "Major Risk" (what could go wrong)

IMPORTANT: Only return "Strong Match" (score >= 85) or "Good Match" (score >= 60).
If the match score is below 60, still return the score but set category to "Good Match".
"""

TEAM_TEMPLATE = """\
You are a STRICT TECHNICAL RECRUITER evaluating a hackathon team candidate. Be harsh and precise.

EXISTING TEAM:
- Combined Skills: {team_skills}
- Tech Stack: {team_tech_stack}
- Experience: {team_experience}
- Team Size: {team_size} members
- Primary Roles: {team_roles}

CANDIDATE USER:
- Name: {name}
- Primary Role: {role}
- Skills: {skills}
- Tech Stack: {tech_stack}
- Experience: {experience}

STRICT EVALUATION RULES:

1. ROLE CHECK (CRITICAL):
   - If candidate's primary role matches ANY existing team member's role EXACTLY (e.g., both are ONLY "Frontend"), apply -30% penalty for "Skill Redundancy"
   - Only award points if candidate fills a MISSING role (e.g., team has Frontend/Backend, candidate is Designer = GOOD)

2. STACK SYNERGY (ONLY COMPLEMENTARY):
   - Award points ONLY for complementary tech stacks:
     * Node.js (Backend) + React (Frontend) = +40%
     * Python (Backend) + React (Frontend) = +40%
     * Unity (Game) + Backend API = +40%
   - DO NOT award points for overlapping stacks (e.g., both have React = -20%)
   - If candidate's tech stack perfectly complements team's gaps, award +40%

3. SCORE SCALE (BE STRICT):
   - 90-100%: "Dream Team" - Perfect full-stack coverage (Frontend + Backend + Design + DevOps/Mobile), NO role overlap, complementary tech stacks
   - 70-89%: "Strong Match" - 1-2 minor skill overlaps, but fills critical missing role
   - 40-69%: "Average Match" - Too much overlap OR missing a key role (e.g., no Backend, no Design)
   - Below 40%: "Weak Match" - Exact same skills/role OR no tech stack provided

{footer}
Respond with ONLY a JSON object (no markdown, no code blocks):
{{
  "score": <number 0-100>,
  "reason": "Pros: <exactly one pro>. Major Risk: <exactly one risk>",
  "category": "<Strong Match|Good Match>",
  "needed_roles": ["<role1>", "<role2>"]
}}"""

EVALUATOR_TEMPLATE = """\
You are a STRICT TECHNICAL RECRUITER evaluating a hackathon teammate match. Be harsh and precise.

CURRENT USER (Me):
{user_a}

TARGET USER:
{user_b}

STRICT EVALUATION RULES:

1. ROLE CHECK (CRITICAL):
   - If both users have the SAME primary role (e.g., both are ONLY "Frontend"), apply -30% penalty for "Skill Redundancy"
   - Only award high scores if roles are complementary (e.g., Frontend + Backend, Developer + Designer)

2. STACK SYNERGY (ONLY COMPLEMENTARY):
   - Award points ONLY for complementary tech stacks:
     * Unity/Swift (Mobile/VR) + Node.js/Go (Backend) = +40%
     * Python (Backend) + React (Frontend) = +40%
     * Unity (Game) + Backend API = +40%
   - DO NOT award points for overlapping stacks (e.g., both have Unity/Swift = -30% penalty)
   - If tech stacks perfectly complement each other, award +40%

3. SCORE SCALE (BE STRICT):
   - 90-100%: "Dream Team" - Perfect full-stack coverage, NO role overlap, complementary tech stacks (e.g., Unity/Swift + Node.js/Go + React + Design)
   - 70-89%: "Strong Match" - 1-2 minor skill overlaps, but fills critical missing role (e.g., Frontend + Backend)
   - 40-69%: "Average Match" - Too much overlap OR missing a key role (e.g., both Frontend, no Backend)
   - Below 40%: "Weak Match" - Exact same skills/role OR no tech stack provided

{footer}
Respond with ONLY a JSON object (no markdown, no code blocks):
{{
  "score": <number 0-100>,
  "reason": "Pros: <exactly one pro>. Major Risk: <exactly one risk>",
  "category": "<Strong Match|Good Match>"
}}"""

PAIR_TEMPLATE = """\
You are a STRICT TECHNICAL RECRUITER evaluating a hackathon teammate match. Be harsh and precise.

USER 1:
{user_a}

USER 2:
{user_b}

STRICT EVALUATION RULES:

1. ROLE CHECK (CRITICAL):
   - If both users have the SAME primary role (e.g., both are ONLY "Frontend"), apply -30% penalty for "Skill Redundancy"
   - Only award high scores if roles are complementary (e.g., Frontend + Backend, Developer + Designer)

2. STACK SYNERGY (ONLY COMPLEMENTARY):
   - Award points ONLY for complementary tech stacks:
     * Node.js/Go (Backend) + React/Vue (Frontend) = +40%
     * Python (Backend) + React (Frontend) = +40%
     * Unity (Game) + Backend API = +40%
   - DO NOT award points for overlapping stacks (e.g., both have React = -20%)
   - If tech stacks perfectly complement each other, award +40%

3. SCORE SCALE (BE STRICT):
   - 90-100%: "Dream Team" - Perfect full-stack coverage, NO role overlap, complementary tech stacks
   - 70-89%: "Strong Match" - 1-2 minor skill overlaps, but fills critical missing role
   - 40-69%: "Average Match" - Too much overlap OR missing a key role (e.g., both Frontend, no Backend)
   - Below 40%: "Weak Match" - Exact same skills/role OR no tech stack provided

{footer}
Respond with ONLY a JSON object (no markdown, no code blocks):
{{
  "score": <number 0-100>,
  "reason": "Pros: <exactly one pro>. Major Risk: <exactly one risk>",
  "category": "<Strong Match|Good Match>"
}}"""


def join_unique(values: Iterable[str], empty: str) -> str:
    """De-duplicate preserving first occurrence, join with ", "; ``empty`` if nothing left."""
    seen: dict[str, None] = {}
    for v in values:
        v = v.strip()
        if v and v not in seen:
            seen[v] = None
    return ", ".join(seen) if seen else empty


def _profile_block(user: UserProfile) -> str:
    return "\n".join([
        f"- Name: {user.name or 'Unknown'}",
        f"- Primary Role: {user.role_preference or 'Not specified'}",
        f"- Skills: {join_unique(user.skills, 'None listed')}",
        f"- Tech Stack: {join_unique(user.tech_stack, 'None listed')}",
        f"- Experience: {join_unique(user.experience, 'None listed')}",
        f"- Bio: {user.bio or 'No bio provided'}",
    ])


def build_team_prompt(candidate: UserProfile, roster: Sequence[UserProfile]) -> str:
    """Candidate against an existing roster. ``roster`` must be non-empty."""
    return TEAM_TEMPLATE.format(
        team_skills=join_unique((s for m in roster for s in m.skills), "None"),
        team_tech_stack=join_unique((t for m in roster for t in m.tech_stack), "None"),
        team_experience=join_unique((e for m in roster for e in m.experience), "None"),
        team_size=len(roster),
        team_roles=", ".join(m.role_preference or "Unspecified" for m in roster),
        name=candidate.name or "Unknown",
        role=candidate.role_preference or "Unspecified",
        skills=join_unique(candidate.skills, "None listed"),
        tech_stack=join_unique(candidate.tech_stack, "None listed"),
        experience=join_unique(candidate.experience, "None listed"),
        footer=_RULES_FOOTER,
    )


def build_evaluator_prompt(me: UserProfile, target: UserProfile) -> str:
    return EVALUATOR_TEMPLATE.format(
        user_a=_profile_block(me),
        user_b=_profile_block(target),
        footer=_RULES_FOOTER,
    )


def build_pair_prompt(user_a: UserProfile, user_b: UserProfile) -> str:
    return PAIR_TEMPLATE.format(
        user_a=_profile_block(user_a),
        user_b=_profile_block(user_b),
        footer=_RULES_FOOTER,
    )


def build_match_prompt(
    user_a: UserProfile,
    user_b: UserProfile,
    team_members: Optional[Sequence[UserProfile]] = None,
    actor_id: Optional[str] = None,
) -> tuple[str, str]:
    """
    Choose the template and build the prompt.

    Returns ``(template_name, prompt)``; template_name is one of
    ``team``, ``evaluator``, ``pair``.
    """
    if team_members:
        return "team", build_team_prompt(user_b, team_members)
    if actor_id and actor_id == user_a.id:
        return "evaluator", build_evaluator_prompt(user_a, user_b)
    return "pair", build_pair_prompt(user_a, user_b)
