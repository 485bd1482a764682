"""
Rule evaluator and per-rule predicate behaviour.
"""

import unittest
from unittest.mock import MagicMock

from rules.catalogue import RULES
from rules.evaluator import RuleEvaluator
from rules.models import ComplianceLevel, OutcomeStatus
from rules.predicates import ParsedPage, PREDICATES
from rules.scoring import classify
from factories import ACCESSIBLE_PAGE, MINIMAL_BROKEN_PAGE


def outcome(rule_id, body, head="<title>t</title>", lang=' lang="en"'):
    page = ParsedPage(f"<html{lang}><head>{head}</head><body>{body}</body></html>")
    return PREDICATES[rule_id](page)


class TestRuleEvaluator(unittest.TestCase):
    def setUp(self):
        self.evaluator = RuleEvaluator()

    def test_every_rule_has_a_predicate(self):
        self.assertEqual(set(RULES), set(PREDICATES))

    def test_minimal_broken_page(self):
        result = self.evaluator.evaluate(MINIMAL_BROKEN_PAGE)
        issue_ids = {i.id for i in result.issues}
        self.assertIn("missing-alt", issue_ids)
        self.assertIn("missing-lang", issue_ids)
        self.assertNotIn("missing-title", issue_ids)
        self.assertEqual(sum(1 for i in result.issues if i.severity.value == "critical"), 1)

        _, level = classify(result.issues, result.warnings, result.passes)
        self.assertEqual(level, ComplianceLevel.NON_COMPLIANT)
        self.assertEqual(result.page_info.title, "Test")
        self.assertEqual(result.page_info.lang, "(not set)")
        self.assertEqual(result.page_info.image_count, 1)

    def test_accessible_page_is_fully_compliant(self):
        result = self.evaluator.evaluate(ACCESSIBLE_PAGE)
        self.assertEqual(result.issues, ())
        self.assertEqual(result.warnings, ())
        score, level = classify(result.issues, result.warnings, result.passes)
        self.assertEqual(score, 100)
        self.assertEqual(level, ComplianceLevel.COMPLIANT)
        self.assertEqual(result.page_info.landmarks, 4)
        self.assertEqual(result.page_info.heading_count, 2)

    def test_issue_and_pass_are_exclusive(self):
        result = self.evaluator.evaluate(MINIMAL_BROKEN_PAGE)
        issue_ids = {i.id for i in result.issues}
        pass_ids = {p.id for p in result.passes}
        self.assertFalse(issue_ids & pass_ids)

    def test_excerpts_capped_but_count_is_true_total(self):
        body = "".join(f'<img src="{n}.png">' for n in range(8))
        result = self.evaluator.evaluate(f"<html><body>{body}</body></html>")
        (missing_alt,) = [i for i in result.issues if i.id == "missing-alt"]
        self.assertEqual(missing_alt.count, 8)
        self.assertEqual(len(missing_alt.elements), 5)
        self.assertEqual(missing_alt.elements[0], '<img src="0.png">')

    def test_failing_predicate_counts_as_inapplicable(self):
        broken = MagicMock(side_effect=RuntimeError("boom"))
        predicates = dict(PREDICATES, **{"missing-alt": broken})
        result = RuleEvaluator(predicates=predicates).evaluate(MINIMAL_BROKEN_PAGE)
        ids = {i.id for i in result.issues} | {p.id for p in result.passes}
        self.assertNotIn("missing-alt", ids)
        broken.assert_called_once()

    def test_empty_markup(self):
        result = self.evaluator.evaluate("")
        self.assertIn("missing-title", {i.id for i in result.issues})
        self.assertEqual(result.page_info.title, "(no title)")


class TestPredicates(unittest.TestCase):
    def test_lang(self):
        self.assertEqual(outcome("missing-lang", "", lang="").status, OutcomeStatus.ISSUE)
        self.assertEqual(outcome("missing-lang", "", lang=' lang="  "').status, OutcomeStatus.ISSUE)
        self.assertEqual(outcome("missing-lang", "").status, OutcomeStatus.PASS)

    def test_title(self):
        self.assertEqual(outcome("missing-title", "", head="<title>  </title>").status, OutcomeStatus.ISSUE)

    def test_skipped_heading(self):
        result = outcome("skipped-heading", "<h1>A</h1><h3>Deep</h3><h2>B</h2><h4>C</h4>")
        self.assertEqual(result.status, OutcomeStatus.ISSUE)
        self.assertEqual(result.elements, ('h1 → h3 ("Deep")', 'h2 → h4 ("C")'))
        self.assertEqual(outcome("skipped-heading", "<p>none</p>").status, OutcomeStatus.INAPPLICABLE)
        self.assertEqual(outcome("skipped-heading", "<h2>a</h2><h1>b</h1>").status, OutcomeStatus.PASS)

    def test_empty_alt_warns_above_three(self):
        three = '<img src="x" alt="">' * 3
        four = '<img src="x" alt="">' * 4
        self.assertEqual(outcome("empty-alt", three).status, OutcomeStatus.INAPPLICABLE)
        result = outcome("empty-alt", four)
        self.assertEqual(result.status, OutcomeStatus.WARNING)
        self.assertEqual(result.details, "4 images with empty alt")
        decorative = '<img src="x" alt="" role="presentation">' * 4
        self.assertEqual(outcome("empty-alt", decorative).status, OutcomeStatus.INAPPLICABLE)

    def test_form_labels(self):
        labelled = (
            '<label for="a">A</label><input id="a">'
            '<label>B <input name="b"></label>'
            '<input aria-label="C"><input title="D">'
            '<input type="hidden" name="h"><input type="submit">'
        )
        self.assertEqual(outcome("missing-form-label", labelled).status, OutcomeStatus.PASS)
        result = outcome("missing-form-label", '<input name="q"><select id="s"></select><textarea></textarea>')
        self.assertEqual(result.elements, ('<input name="q">', '<select name="s">', '<textarea name="text">'))

    def test_empty_link(self):
        ok = '<a href="/a">Text</a><a href="/b" aria-label="B"></a><a href="/c"><img src="c" alt="C"></a>'
        self.assertEqual(outcome("empty-link", ok).status, OutcomeStatus.PASS)
        result = outcome("empty-link", '<a href="/cart"><img src="cart.svg"></a>')
        self.assertEqual(result.elements, ('<a href="/cart"> (no text)</a>',))

    def test_empty_button(self):
        ok = '<button>Go</button><input type="submit" value="Send"><div role="button" title="Menu"></div>'
        self.assertEqual(outcome("empty-button", ok).status, OutcomeStatus.PASS)
        result = outcome("empty-button", '<button><svg></svg></button><input type="button">')
        self.assertEqual(result.elements, ("<button> (no accessible name)", "<input> (no accessible name)"))

    def test_viewport(self):
        self.assertEqual(outcome("missing-viewport", "").status, OutcomeStatus.ISSUE)
        head = '<title>t</title><meta name="viewport" content="width=device-width">'
        self.assertEqual(outcome("missing-viewport", "", head=head).status, OutcomeStatus.PASS)

    def test_skip_link(self):
        self.assertEqual(outcome("no-skip-link", '<a href="#main">Skip navigation</a>').status, OutcomeStatus.PASS)
        self.assertEqual(outcome("no-skip-link", "<nav><a href='/x'>X</a></nav>").status, OutcomeStatus.WARNING)
        self.assertEqual(outcome("no-skip-link", "<p>plain</p>").status, OutcomeStatus.INAPPLICABLE)
        late = "".join(f'<a href="/{n}">L{n}</a>' for n in range(5)) + '<a href="#main">Skip</a><nav></nav>'
        self.assertEqual(outcome("no-skip-link", late).status, OutcomeStatus.WARNING)

    def test_landmarks_by_role(self):
        self.assertEqual(outcome("missing-landmark", "<div>x</div>").status, OutcomeStatus.ISSUE)
        self.assertEqual(outcome("missing-landmark", '<div role="main">x</div>').status, OutcomeStatus.PASS)

    def test_autoplay_tabindex_refresh(self):
        self.assertEqual(outcome("autoplay-media", "<video autoplay></video>").elements, ("<video autoplay>",))
        self.assertEqual(outcome("tabindex-positive", '<div tabindex="0"></div><div tabindex="-1"></div>').status,
                         OutcomeStatus.PASS)
        self.assertEqual(outcome("tabindex-positive", '<div tabindex="3"></div>').elements,
                         ('<div tabindex="3">',))
        head = '<title>t</title><meta http-equiv="Refresh" content="5;url=/x">'
        self.assertEqual(outcome("meta-refresh", "", head=head).status, OutcomeStatus.ISSUE)

    def test_table_headers(self):
        cells = "<tr>" + "<td>x</td>" * 5 + "</tr>"
        self.assertEqual(outcome("missing-table-header", f"<table>{cells}</table>").status, OutcomeStatus.ISSUE)
        self.assertEqual(outcome("missing-table-header", f"<table><tr><th>h</th></tr>{cells}</table>").status,
                         OutcomeStatus.PASS)
        self.assertEqual(outcome("missing-table-header", "<table><tr><td>1</td></tr></table>").status,
                         OutcomeStatus.INAPPLICABLE)

    def test_inline_color_warning(self):
        six = '<span style="color: red">x</span>' * 6
        self.assertEqual(outcome("inline-styles-text", six).status, OutcomeStatus.WARNING)
        self.assertEqual(outcome("inline-styles-text", six[: len(six) // 2]).status, OutcomeStatus.INAPPLICABLE)

    def test_color_contrast_inline(self):
        low = '<p style="color: #777; background-color: #fff">Faint</p>'
        result = outcome("color-contrast-inline", low)
        self.assertEqual(result.status, OutcomeStatus.ISSUE)
        self.assertIn("ratio 4.5:1 (needs 4.5:1)", result.elements[0])
        good = '<p style="color: black; background: white">Clear</p><p style="color: #777">no bg</p>'
        self.assertEqual(outcome("color-contrast-inline", good).status, OutcomeStatus.PASS)
        unparseable = '<p style="color: var(--x); background: #fff">x</p>'
        self.assertEqual(outcome("color-contrast-inline", unparseable).status, OutcomeStatus.PASS)

    def test_keyboard_trap(self):
        trap = '<div onkeydown="event.preventDefault()">x</div>'
        self.assertEqual(outcome("keyboard-trap", trap).status, OutcomeStatus.ISSUE)
        escapable = '<div onkeydown="if (e.key !== \'Escape\') e.preventDefault()">x</div>'
        self.assertEqual(outcome("keyboard-trap", escapable).status, OutcomeStatus.PASS)

    def test_focus_style(self):
        head = "<title>t</title><style>a:focus { outline: none; }</style>"
        result = outcome("missing-focus-style", "", head=head)
        self.assertEqual(result.elements, ("a:focus - outline removed without alternative",))
        head = "<title>t</title><style>a:focus { outline: 0; box-shadow: 0 0 0 2px blue; }</style>"
        self.assertEqual(outcome("missing-focus-style", "", head=head).status, OutcomeStatus.PASS)
        inline = '<button style="outline: none">b</button>'
        self.assertEqual(outcome("missing-focus-style", inline).elements, ("<button> inline outline:none",))

    def test_generic_link_text(self):
        result = outcome("generic-link-text", '<a href="/docs"> Read More </a><a href="/x">Pricing plans</a>')
        self.assertEqual(result.elements, ('"read more" → /docs',))

    def test_keyboard_access(self):
        bad = '<div onclick="go()">Open</div>'
        self.assertEqual(outcome("missing-keyboard-access", bad).elements,
                         ('<div> "Open" - has onclick but no tabindex',))
        half = '<span onclick="go()" tabindex="0">Open</span>'
        self.assertIn("no key handler", outcome("missing-keyboard-access", half).elements[0])
        fine = ('<div onclick="go()" tabindex="0" onkeydown="go()">Ok</div>'
                '<button onclick="go()">B</button><div role="button" onclick="go()">R</div>')
        self.assertEqual(outcome("missing-keyboard-access", fine).status, OutcomeStatus.PASS)


if __name__ == "__main__":
    unittest.main()
