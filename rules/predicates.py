"""
FILE DESCRIPTION: One predicate per catalogue rule, run against a parsed page.
KEY FUNCTIONS/CLASSES: ParsedPage, PREDICATES, predicate

Predicates are pure: they read the ParsedPage and return a RuleOutcome.
"""

import re
from functools import cached_property

from bs4 import BeautifulSoup

from rules.contrast import parse_color, contrast_ratio, AA_NORMAL_TEXT
from rules.models import RuleOutcome

_INT_PREFIX_RE = re.compile(r"^\s*([+-]?\d+)")
_INLINE_COLOR_RE = re.compile(r"color\s*:", re.IGNORECASE)
_FG_COLOR_RE = re.compile(r"(?:^|;)\s*color\s*:\s*([^;]+)", re.IGNORECASE)
_BG_COLOR_RE = re.compile(r"background(?:-color)?\s*:\s*([^;]+)", re.IGNORECASE)
_FOCUS_NONE_RE = re.compile(r"[^}]*:focus\s*\{[^}]*outline\s*:\s*(?:none|0)[^}]*", re.IGNORECASE)
_OUTLINE_NONE_RE = re.compile(r"outline\s*:\s*(?:none|0)", re.IGNORECASE)
_FOCUS_ALTERNATIVE_RE = re.compile(r"box-shadow|border", re.IGNORECASE)
_PREVENT_DEFAULT_RE = re.compile(r"preventDefault", re.IGNORECASE)
_ESCAPE_KEYS_RE = re.compile(r"Tab|Escape|27|9", re.IGNORECASE)

UNLABELED_INPUT_TYPES = {"hidden", "submit", "button", "reset", "image"}
NATIVE_INTERACTIVE_TAGS = {"a", "button", "input", "select", "textarea", "summary"}
GENERIC_LINK_PHRASES = {
    "click here", "here", "read more", "learn more", "more", "link", "this", "go", "details", "continue",
}
SKIP_LINK_WORDS = ("skip", "main content", "jump")
FOCUSABLE_STYLED_SELECTOR = "a[style], button[style], input[style], select[style], textarea[style], [tabindex][style]"
EMPTY_ALT_WARNING_THRESHOLD = 3
INLINE_COLOR_WARNING_THRESHOLD = 5
DATA_TABLE_MIN_CELLS = 4
SKIP_LINK_WINDOW = 5


def _attr(el, name) -> str:
    """Attribute as a string ('' when absent); multi-valued attributes are re-joined."""
    value = el.get(name)
    if value is None:
        return ""
    if isinstance(value, list):
        return " ".join(value)
    return value


def _text(el) -> str:
    return el.get_text().strip()


def _parse_int(value: str):
    match = _INT_PREFIX_RE.match(value or "")
    return int(match.group(1)) if match else None


# === PARSED PAGE ===

class ParsedPage:
    """
    The document parsed once, with the element subsets several predicates share.
    Subsets are computed lazily and cached; nothing here mutates the tree.
    """

    def __init__(self, markup: str):
        self.soup = BeautifulSoup(markup or "", "lxml")

    @cached_property
    def html(self):
        return self.soup.find("html")

    @cached_property
    def images(self):
        return self.soup.find_all("img")

    @cached_property
    def anchors(self):
        return self.soup.find_all("a")

    @cached_property
    def headings(self):
        """(level, text) in document order."""
        return [
            (int(el.name[1]), _text(el)[:60])
            for el in self.soup.find_all(["h1", "h2", "h3", "h4", "h5", "h6"])
        ]

    @cached_property
    def styled(self):
        return self.soup.find_all(attrs={"style": True})

    @cached_property
    def title(self) -> str:
        return "".join(t.get_text() for t in self.soup.find_all("title")).strip()

    @cached_property
    def lang(self) -> str:
        if self.html is None:
            return ""
        return (_attr(self.html, "lang") or _attr(self.html, "xml:lang")).strip()

    @cached_property
    def landmarks(self) -> int:
        groups = (
            ("main", "main"),
            ("nav", "navigation"),
            ("header", "banner"),
            ("footer", "contentinfo"),
        )
        return sum(
            1 for tag, role in groups
            if self.soup.find(tag) is not None or self.soup.find(attrs={"role": role}) is not None
        )

    @cached_property
    def form_count(self) -> int:
        return len(self.soup.find_all("form"))


# === REGISTRY ===

PREDICATES = {}


def predicate(rule_id):
    def register(fn):
        PREDICATES[rule_id] = fn
        return fn
    return register


# === STRUCTURAL ===

@predicate("missing-lang")
def check_missing_lang(page: ParsedPage) -> RuleOutcome:
    if not page.lang:
        return RuleOutcome.from_violations(["<html>"])
    return RuleOutcome.passed()


@predicate("missing-title")
def check_missing_title(page: ParsedPage) -> RuleOutcome:
    if not page.title:
        return RuleOutcome.from_violations(["<title> element missing"])
    return RuleOutcome.passed()


@predicate("missing-heading")
def check_missing_heading(page: ParsedPage) -> RuleOutcome:
    if not page.headings:
        return RuleOutcome.from_violations(["No heading elements found"])
    return RuleOutcome.passed()


@predicate("skipped-heading")
def check_skipped_heading(page: ParsedPage) -> RuleOutcome:
    if not page.headings:
        return RuleOutcome.inapplicable()
    skipped = [
        f'h{prev_level} → h{level} ("{text}")'
        for (prev_level, _), (level, text) in zip(page.headings, page.headings[1:])
        if level > prev_level + 1
    ]
    return RuleOutcome.from_violations(skipped)


# === SEMANTIC ===

@predicate("missing-landmark")
def check_missing_landmark(page: ParsedPage) -> RuleOutcome:
    if page.landmarks == 0:
        return RuleOutcome.from_violations(["No semantic landmarks found"])
    return RuleOutcome.passed()


@predicate("missing-table-header")
def check_missing_table_header(page: ParsedPage) -> RuleOutcome:
    data_tables = [t for t in page.soup.find_all("table") if len(t.find_all("td")) > DATA_TABLE_MIN_CELLS]
    if not data_tables:
        return RuleOutcome.inapplicable()
    return RuleOutcome.from_violations(
        "<table> without <th>" for t in data_tables if t.find("th") is None
    )


# === INTERACTIVE ===

@predicate("missing-alt")
def check_missing_alt(page: ParsedPage) -> RuleOutcome:
    return RuleOutcome.from_violations(
        f'<img src="{_attr(img, "src")[:80]}">' for img in page.images if img.get("alt") is None
    )


@predicate("empty-alt")
def check_empty_alt(page: ParsedPage) -> RuleOutcome:
    empty = [
        img for img in page.images
        if img.get("alt") is not None and not _attr(img, "alt").strip() and not img.get("role")
    ]
    if len(empty) > EMPTY_ALT_WARNING_THRESHOLD:
        return RuleOutcome.warning(f"{len(empty)} images with empty alt")
    return RuleOutcome.inapplicable()


def _has_label(page: ParsedPage, el) -> bool:
    el_id = _attr(el, "id")
    if el_id and page.soup.find("label", attrs={"for": el_id}) is not None:
        return True
    if el.find_parent("label") is not None:
        return True
    return bool(_attr(el, "aria-label") or _attr(el, "aria-labelledby") or _attr(el, "title"))


@predicate("missing-form-label")
def check_missing_form_label(page: ParsedPage) -> RuleOutcome:
    unlabeled = []
    for el in page.soup.find_all(["input", "select", "textarea"]):
        field_type = (_attr(el, "type") or "text").lower()
        if field_type in UNLABELED_INPUT_TYPES:
            continue
        if not _has_label(page, el):
            name = _attr(el, "name") or _attr(el, "id") or field_type
            unlabeled.append(f'<{el.name} name="{name}">')
    return RuleOutcome.from_violations(unlabeled)


@predicate("empty-link")
def check_empty_link(page: ParsedPage) -> RuleOutcome:
    empty = []
    for a in page.anchors:
        if (_text(a) or _attr(a, "aria-label") or _attr(a, "aria-labelledby")
                or a.find("img", alt=True) is not None or _attr(a, "title")):
            continue
        empty.append(f'<a href="{_attr(a, "href")[:60]}"> (no text)</a>')
    return RuleOutcome.from_violations(empty)


@predicate("empty-button")
def check_empty_button(page: ParsedPage) -> RuleOutcome:
    candidates = page.soup.select('button, [role="button"], input[type="button"], input[type="submit"]')
    return RuleOutcome.from_violations(
        f"<{el.name}> (no accessible name)" for el in candidates
        if not (_text(el) or _attr(el, "aria-label") or _attr(el, "value") or _attr(el, "title"))
    )


@predicate("missing-keyboard-access")
def check_missing_keyboard_access(page: ParsedPage) -> RuleOutcome:
    missing = []
    for el in page.soup.find_all(attrs={"onclick": True}):
        tag = el.name.lower()
        if tag in NATIVE_INTERACTIVE_TAGS or _attr(el, "role") in ("button", "link"):
            continue
        has_tabindex = el.get("tabindex") is not None
        has_key_handler = bool(_attr(el, "onkeydown") or _attr(el, "onkeypress") or _attr(el, "onkeyup"))
        if has_tabindex and has_key_handler:
            continue
        reason = "no tabindex" if not has_tabindex else "no key handler"
        missing.append(f'<{tag}> "{_text(el)[:40]}" - has onclick but {reason}')
    return RuleOutcome.from_violations(missing)


@predicate("keyboard-trap")
def check_keyboard_trap(page: ParsedPage) -> RuleOutcome:
    traps = []
    for el in page.soup.find_all(lambda tag: tag.has_attr("onkeydown") or tag.has_attr("onkeypress")):
        handler = _attr(el, "onkeydown") + _attr(el, "onkeypress")
        if _PREVENT_DEFAULT_RE.search(handler) and not _ESCAPE_KEYS_RE.search(handler):
            traps.append(f"<{el.name}> with aggressive key prevention")
    return RuleOutcome.from_violations(traps)


@predicate("missing-focus-style")
def check_missing_focus_style(page: ParsedPage) -> RuleOutcome:
    suppressed = []
    stylesheet = "".join(style.get_text() for style in page.soup.find_all("style"))
    for match in _FOCUS_NONE_RE.finditer(stylesheet):
        block = match.group(0)
        if not _FOCUS_ALTERNATIVE_RE.search(block):
            selector = block.split("{")[0].strip()[:60]
            suppressed.append(f"{selector} - outline removed without alternative")

    for el in page.soup.select(FOCUSABLE_STYLED_SELECTOR):
        style = _attr(el, "style")
        if _OUTLINE_NONE_RE.search(style) and not _FOCUS_ALTERNATIVE_RE.search(style):
            suppressed.append(f"<{el.name}> inline outline:none")
    return RuleOutcome.from_violations(suppressed)


@predicate("generic-link-text")
def check_generic_link_text(page: ParsedPage) -> RuleOutcome:
    generic = []
    for a in page.anchors:
        text = _text(a).lower()
        if text in GENERIC_LINK_PHRASES:
            generic.append(f'"{text}" → {_attr(a, "href")[:40] or "(no href)"}')
    return RuleOutcome.from_violations(generic)


@predicate("no-skip-link")
def check_no_skip_link(page: ParsedPage) -> RuleOutcome:
    for a in page.anchors[:SKIP_LINK_WINDOW]:
        text = a.get_text().lower()
        if _attr(a, "href").startswith("#") and any(word in text for word in SKIP_LINK_WORDS):
            return RuleOutcome.passed()
    if page.soup.find("nav") is not None or page.soup.find(attrs={"role": "navigation"}) is not None:
        return RuleOutcome.warning("Navigation found but no skip link")
    return RuleOutcome.inapplicable()


# === VISUAL / TIMING ===

@predicate("color-contrast-inline")
def check_color_contrast_inline(page: ParsedPage) -> RuleOutcome:
    failing = []
    for el in page.styled:
        style = _attr(el, "style")
        fg_match = _FG_COLOR_RE.search(style)
        bg_match = _BG_COLOR_RE.search(style)
        if not (fg_match and bg_match):
            continue
        fg, bg = parse_color(fg_match.group(1)), parse_color(bg_match.group(1))
        if fg is None or bg is None:
            continue
        ratio = contrast_ratio(fg, bg)
        if ratio < AA_NORMAL_TEXT:
            failing.append(
                f'"{_text(el)[:40] or "(element)"}" - ratio {ratio:.1f}:1 (needs 4.5:1) '
                f'[color:{fg_match.group(1).strip()}, bg:{bg_match.group(1).strip()}]'
            )
    return RuleOutcome.from_violations(failing)


@predicate("inline-styles-text")
def check_inline_styles_text(page: ParsedPage) -> RuleOutcome:
    count = sum(1 for el in page.styled if _INLINE_COLOR_RE.search(_attr(el, "style")))
    if count > INLINE_COLOR_WARNING_THRESHOLD:
        return RuleOutcome.warning(f"{count} elements with inline color styles")
    return RuleOutcome.inapplicable()


@predicate("missing-viewport")
def check_missing_viewport(page: ParsedPage) -> RuleOutcome:
    for meta in page.soup.find_all("meta", attrs={"name": True}):
        if _attr(meta, "name").strip().lower() == "viewport" and _attr(meta, "content"):
            return RuleOutcome.passed()
    return RuleOutcome.from_violations(["No viewport meta tag"])


@predicate("autoplay-media")
def check_autoplay_media(page: ParsedPage) -> RuleOutcome:
    return RuleOutcome.from_violations(
        f"<{el.name} autoplay>" for el in page.soup.find_all(["video", "audio"]) if el.has_attr("autoplay")
    )


@predicate("tabindex-positive")
def check_tabindex_positive(page: ParsedPage) -> RuleOutcome:
    positive = []
    for el in page.soup.find_all(attrs={"tabindex": True}):
        value = _parse_int(_attr(el, "tabindex"))
        if value is not None and value > 0:
            positive.append(f'<{el.name} tabindex="{value}">')
    return RuleOutcome.from_violations(positive)


@predicate("meta-refresh")
def check_meta_refresh(page: ParsedPage) -> RuleOutcome:
    for meta in page.soup.find_all("meta"):
        if _attr(meta, "http-equiv").strip().lower() == "refresh":
            return RuleOutcome.from_violations(['<meta http-equiv="refresh">'])
    return RuleOutcome.passed()
