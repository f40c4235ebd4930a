"""Tests for markdown healing."""

from lucid.services.markdown import heal_markdown


class TestHealMarkdown:
    """Tests for heal_markdown."""

    def test_empty_string(self):
        assert heal_markdown("") == ""

    def test_balanced_text_unchanged(self):
        """Test that balanced markdown is returned as is."""
        text = "Some **bold**, some *italic* and `code`.\n\n```python\nprint(1)\n```"
        assert heal_markdown(text) == text

    def test_unclosed_inline_code(self):
        assert heal_markdown("hello `world") == "hello `world`"

    def test_unclosed_bold_and_italic(self):
        """Test that bold is closed before italic."""
        assert heal_markdown("**bold and *ital") == "**bold and *ital***"

    def test_unclosed_bold(self):
        assert heal_markdown("This is **important") == "This is **important**"

    def test_unclosed_italic(self):
        assert heal_markdown("an *emphasized") == "an *emphasized*"

    def test_unclosed_code_fence(self):
        """Test that an open fence is closed on a new line."""
        assert heal_markdown("```python\nprint('hi')") == "```python\nprint('hi')\n```"

    def test_fence_does_not_count_as_inline_code(self):
        """Test that backticks in a fence are not treated as inline code."""
        text = "```\ncode\n```"
        assert heal_markdown(text) == text

    def test_healing_is_idempotent(self):
        """Test that healing healed output changes nothing."""
        for text in ("hello `world", "This is **important", "```js\nlet x", "plain"):
            healed = heal_markdown(text)
            assert heal_markdown(healed) == healed
