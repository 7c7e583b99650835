# Tests for pasted-text cleanup

import pytest

from vaultbot.vault.normalize import normalize


class TestNormalize:
    def test_unifies_line_endings(self):
        assert normalize("a\r\nb\rc") == "a\nb\nc"

    def test_strips_code_fences(self):
        text = "```bash\nssh-keygen -t ed25519\n```"
        assert normalize(text) == "ssh-keygen -t ed25519"

    def test_strips_inline_fence_markers(self):
        assert normalize("```echo hi```") == "hi"

    def test_strips_leading_emoji_per_line(self):
        assert normalize("🔑 password\n📧 mail@example.com") == "password\nmail@example.com"

    def test_keeps_emoji_inside_line(self):
        assert normalize("key 🔑 here") == "key 🔑 here"

    def test_maps_full_width_characters(self):
        assert normalize("端口：２２，用户＠host") == "端口:22,用户@host"

    def test_ideographic_space_becomes_ascii_space(self):
        assert normalize("a　b") == "a b"

    def test_removes_zero_width_and_soft_hyphen(self):
        assert normalize("pa\u200bss\u200d\ufeffwo\u00adrd\u2060") == "password"

    def test_collapses_blank_line_runs(self):
        assert normalize("a\n\n\n\n\nb") == "a\n\nb"

    def test_keeps_single_blank_line(self):
        assert normalize("a\n\nb") == "a\n\nb"

    def test_trims_whole_text(self):
        assert normalize("  \n  body  \n\n") == "body"

    def test_pem_block_unchanged(self):
        text = "-----BEGIN KEY-----\nabc\n-----END KEY-----"
        assert normalize(text) == text


class TestIdempotence:
    @pytest.mark.parametrize("text", [
        "plain",
        "```\ncode\n```",
        "\u200b🔑 hidden emoji",
        "🔑 ```python\nprint(1)\n```",
        "｀｀｀\nfull width fence\n｀｀｀",
        "  🔑 indented emoji",
        "a\n\n\n\u200b\n\n\nb",
        "\r\n\r\n\r\nx\r\n\r\n\r\n",
        "",
    ])
    def test_normalize_twice_equals_once(self, text):
        once = normalize(text)
        assert normalize(once) == once
