"""Tests for evaluation prompt construction."""

from __future__ import annotations

import copy

from hackmatch.core.models import UserProfile
from hackmatch.matching.prompts import build_match_prompt, join_unique

from ..conftest import ADA, BEN, CY, DEE


class TestJoinUnique:
    def test_dedupes_preserving_order(self):
        assert join_unique(["React", "Node.js", "React", " Node.js "], "None") == "React, Node.js"

    def test_empty_placeholder(self):
        assert join_unique([], "None listed") == "None listed"
        assert join_unique(["  "], "None") == "None"


class TestTemplateChoice:
    def test_roster_selects_team_template(self):
        name, prompt = build_match_prompt(ADA, CY, team_members=[ADA, BEN])
        assert name == "team"
        assert "EXISTING TEAM:" in prompt
        assert "CANDIDATE USER:" in prompt
        assert '"needed_roles"' in prompt

    def test_actor_selects_evaluator_template(self):
        name, prompt = build_match_prompt(ADA, BEN, actor_id=ADA.id)
        assert name == "evaluator"
        assert "CURRENT USER (Me):" in prompt
        assert "TARGET USER:" in prompt

    def test_otherwise_pair_template(self):
        name, prompt = build_match_prompt(ADA, BEN, actor_id="someone_else")
        assert name == "pair"
        assert "USER 1:" in prompt and "USER 2:" in prompt

    def test_empty_roster_is_not_team(self):
        name, _ = build_match_prompt(ADA, BEN, team_members=[])
        assert name == "pair"


class TestDeterminism:
    def test_byte_identical(self):
        roster = [ADA, BEN]
        first = build_match_prompt(ADA, DEE, team_members=roster, actor_id=ADA.id)
        second = build_match_prompt(copy.deepcopy(ADA), copy.deepcopy(DEE),
                                    team_members=copy.deepcopy(roster), actor_id=ADA.id)
        assert first == second

    def test_duplicate_list_entries_do_not_change_prompt(self):
        noisy = UserProfile(id=BEN.id, name=BEN.name, role_preference=BEN.role_preference,
                            skills=BEN.skills + BEN.skills, tech_stack=BEN.tech_stack,
                            experience=BEN.experience, bio=BEN.bio)
        assert build_match_prompt(ADA, noisy) == build_match_prompt(ADA, BEN)


class TestContent:
    def test_rubric_preserved(self):
        for kwargs in ({"team_members": [BEN]}, {"actor_id": ADA.id}, {}):
            _, prompt = build_match_prompt(ADA, CY, **kwargs)
            assert 'apply -30% penalty for "Skill Redundancy"' in prompt
            assert '90-100%: "Dream Team"' in prompt
            assert '70-89%: "Strong Match"' in prompt
            assert '40-69%: "Average Match"' in prompt
            assert 'Below 40%: "Weak Match"' in prompt
            assert 'List exactly ONE "Pros"' in prompt
            assert 'List exactly ONE "Major Risk"' in prompt

    def test_team_fields_combined_and_deduped(self):
        teammate = UserProfile(id="u_x", name="X", skills=["React", "Go"], role_preference="")
        _, prompt = build_match_prompt(ADA, CY, team_members=[ADA, teammate])
        assert "- Combined Skills: React, Go" in prompt
        assert "- Team Size: 2 members" in prompt
        assert "- Primary Roles: Frontend, Unspecified" in prompt

    def test_missing_fields_use_placeholders(self):
        bare = UserProfile(id="u_bare")
        _, prompt = build_match_prompt(ADA, bare)
        assert "- Name: Unknown" in prompt
        assert "- Primary Role: Not specified" in prompt
        assert "- Skills: None listed" in prompt
        assert "- Bio: No bio provided" in prompt

    def test_empty_roster_fields_say_none(self):
        bare = UserProfile(id="u_bare", name="Bare")
        _, prompt = build_match_prompt(ADA, CY, team_members=[bare])
        assert "- Combined Skills: None" in prompt
        assert "- Tech Stack: None\n" in prompt

    def test_no_hardcoded_persona(self):
        bare = UserProfile(id="u_me")
        _, prompt = build_match_prompt(bare, BEN, actor_id="u_me")
        assert "Unity, Swift, Python" not in prompt
        assert "- Skills: None listed" in prompt
