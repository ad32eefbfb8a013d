"""
Unit tests for services.prompts module.
Tests system instructions, history assembly and chat titles.
"""
from types import SimpleNamespace

from marefa.models.enums import ChatCategory, Sender
from marefa.services.prompts import (
    AHKAM_PROMPT,
    MAX_CATALOGUE_ENTRIES,
    RESEARCH_PROMPT,
    SUKOON_PROMPT,
    build_chat_turns,
    build_system_prompt,
    derive_title,
    transition_message,
)


def _doc(i: int):
    return SimpleNamespace(title=f"Book {i}", author=f"Author {i}", category="Fiqh")


def _msg(sender, content):
    return SimpleNamespace(sender=sender, content=content)


class TestSystemPrompt:
    def test_each_category_has_its_instruction(self):
        assert build_system_prompt(ChatCategory.AHKAM) == AHKAM_PROMPT
        assert build_system_prompt(ChatCategory.SUKOON) == SUKOON_PROMPT
        assert build_system_prompt(ChatCategory.RESEARCH) == RESEARCH_PROMPT

    def test_plain_string_category(self):
        assert build_system_prompt("sukoon") == SUKOON_PROMPT

    def test_research_appends_catalogue(self):
        prompt = build_system_prompt(ChatCategory.RESEARCH, [_doc(1), _doc(2)])
        assert prompt.startswith(RESEARCH_PROMPT)
        assert "Documents available in the database:" in prompt
        assert '- "Book 1" by Author 1 (Fiqh)' in prompt
        assert '- "Book 2" by Author 2 (Fiqh)' in prompt

    def test_catalogue_is_capped(self):
        docs = [_doc(i) for i in range(MAX_CATALOGUE_ENTRIES + 10)]
        prompt = build_system_prompt(ChatCategory.RESEARCH, docs)
        assert prompt.count("\n- ") == MAX_CATALOGUE_ENTRIES

    def test_other_categories_ignore_documents(self):
        assert build_system_prompt(ChatCategory.AHKAM, [_doc(1)]) == AHKAM_PROMPT


class TestChatTurns:
    def test_history_maps_to_roles_in_order(self):
        history = [
            _msg(Sender.USER, "Salaam"),
            _msg(Sender.AI, "Wa alaykum as-salaam"),
            _msg(Sender.USER, "How do I pray Istikhara?"),
        ]
        turns = build_chat_turns(ChatCategory.AHKAM, history)
        assert [t.role for t in turns] == ["system", "user", "assistant", "user"]
        assert turns[-1].content == "How do I pray Istikhara?"
        assert turns[0].to_dict() == {"role": "system", "content": AHKAM_PROMPT}

    def test_empty_history(self):
        turns = build_chat_turns(ChatCategory.SUKOON, [])
        assert len(turns) == 1
        assert turns[0].content == SUKOON_PROMPT


class TestTitlesAndTransitions:
    def test_short_title_kept(self):
        assert derive_title("  What is zakat?  ") == "What is zakat?"

    def test_long_title_truncated(self):
        content = "x" * 31
        assert derive_title(content) == "x" * 30 + "..."

    def test_exactly_thirty_chars_not_truncated(self):
        assert derive_title("y" * 30) == "y" * 30

    def test_transition_message(self):
        assert transition_message(ChatCategory.SUKOON) == "You've switched to sukoon mode. How can I assist you?"
