"""Cleanup of text pasted into Telegram before it is encrypted."""

import re

_FENCE_LINE = re.compile(r"^```\w*$")
_FENCE_OPEN = re.compile(r"^```\w*")
_FENCE_CLOSE = re.compile(r"```$")

_LEADING_PICTOGRAPHS = re.compile(
    "^["
    "\U0001F300-\U0001F9FF"
    "\u2600-\u26FF"
    "\u2700-\u27BF"
    "\U0001F600-\U0001F64F"
    "\U0001F680-\U0001F6FF"
    "\U0001F1E0-\U0001F1FF"
    "]+\\s*"
)

FULL_TO_HALF = str.maketrans({
    "０": "0", "１": "1", "２": "2", "３": "3", "４": "4",
    "５": "5", "６": "6", "７": "7", "８": "8", "９": "9",
    "＋": "+", "－": "-", "＝": "=", "／": "/", "＼": "\\",
    "（": "(", "）": ")", "［": "[", "］": "]",
    "｛": "{", "｝": "}", "＜": "<", "＞": ">",
    "｜": "|", "＆": "&", "＊": "*", "＠": "@",
    "＄": "$", "％": "%", "＾": "^", "＿": "_",
    "｀": "`", "～": "~", "：": ":", "；": ";",
    "＂": '"', "＇": "'", "，": ",", "．": ".",
    "？": "?", "！": "!", "　": " ",
})

# Zero-width space/joiners, BOM, word joiner, soft hyphen
_INVISIBLE = re.compile("[\u200B-\u200D\uFEFF\u2060\u00AD]")
_BLANK_RUN = re.compile(r"\n{3,}")


def _clean_lines(text: str) -> str:
    lines = []
    for line in text.split("\n"):
        if _FENCE_LINE.match(line):
            continue
        line = _FENCE_CLOSE.sub("", _FENCE_OPEN.sub("", line, count=1))
        lines.append(_LEADING_PICTOGRAPHS.sub("", line))
    return "\n".join(lines)


def _normalize_once(text: str) -> str:
    result = text.replace("\r\n", "\n").replace("\r", "\n")
    result = _clean_lines(result)
    result = result.translate(FULL_TO_HALF)
    result = _INVISIBLE.sub("", result)
    result = _BLANK_RUN.sub("\n\n", result)
    return result.strip()


def normalize(text: str) -> str:
    """
    Sanitize a multi-line paste.

    Unifies line endings, drops code fences and leading emoji, maps
    full-width punctuation/digits to ASCII, removes zero-width and
    soft-hyphen characters, collapses blank-line runs and trims.
    """
    # A pass can expose a new fence or emoji prefix (e.g. after removing a
    # zero-width char), so repeat until stable. Passes never grow the text.
    result = _normalize_once(text)
    while True:
        again = _normalize_once(result)
        if again == result:
            return result
        result = again
