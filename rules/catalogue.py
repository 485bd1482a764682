"""
FILE DESCRIPTION: The fixed accessibility rule catalogue.
KEY FUNCTIONS/CLASSES: RULES, get_rule

Every id here has exactly one predicate in rules/predicates.py.
"""

from types import MappingProxyType

from rules.models import RuleDefinition, Severity, ConformanceLevel

_UNDERSTANDING = "https://www.w3.org/WAI/WCAG21/Understanding/{}.html"


def _rule(rule_id, name, wcag, level, principle, severity, description, slug, fix=()):
    return RuleDefinition(
        id=rule_id,
        name=name,
        wcag=wcag,
        level=level,
        principle=principle,
        severity=severity,
        description=description,
        url=_UNDERSTANDING.format(slug),
        fix=tuple(fix),
    )


A, AA = ConformanceLevel.A, ConformanceLevel.AA

_DEFINITIONS = (
    # === STRUCTURAL ===
    _rule(
        "missing-lang", "Missing page language", "WCAG 2.1 SC 3.1.1", A, "Understandable", Severity.SERIOUS,
        "The default human language of each web page must be programmatically determined.",
        "language-of-page",
        fix=(
            'Open your HTML file and find the <html> tag',
            'Add the lang attribute: <html lang="en">',
            'Use the correct ISO language code for your content',
        ),
    ),
    _rule(
        "missing-title", "Missing page title", "WCAG 2.1 SC 2.4.2", A, "Operable", Severity.SERIOUS,
        "Web pages must have titles that describe topic or purpose.",
        "page-titled",
        fix=(
            'Add a <title> element inside <head>',
            'Make it descriptive: <title>About Us - Company Name</title>',
            'Each page should have a unique, descriptive title',
        ),
    ),
    _rule(
        "missing-heading", "No heading structure", "WCAG 2.1 SC 1.3.1", A, "Perceivable", Severity.MODERATE,
        "Pages should use heading elements to convey document structure.",
        "info-and-relationships",
        fix=(
            'Add an <h1> for the page title',
            'Use <h2> for sections and <h3> for subsections',
            "Don't skip levels; go h1 -> h2 -> h3 in order",
        ),
    ),
    _rule(
        "skipped-heading", "Skipped heading levels", "WCAG 2.1 SC 1.3.1", A, "Perceivable", Severity.MODERATE,
        "Heading levels should not be skipped (e.g., h1 → h3 without h2).",
        "info-and-relationships",
        fix=(
            "Check your heading hierarchy; don't jump from h1 to h3",
            'Restructure: <h1> -> <h2> -> <h3> in order',
            'Use CSS for visual sizing, not heading levels',
        ),
    ),

    # === SEMANTIC ===
    _rule(
        "missing-landmark", "No ARIA landmarks or semantic HTML5", "WCAG 2.1 SC 1.3.1", A, "Perceivable",
        Severity.MODERATE,
        "Pages should use ARIA landmarks or HTML5 semantic elements (main, nav, header, footer).",
        "info-and-relationships",
        fix=(
            'Wrap your main content in <main>',
            'Use <nav> for navigation, <header> and <footer>',
            'These help screen reader users jump between page sections',
        ),
    ),
    _rule(
        "missing-table-header", "Data tables without headers", "WCAG 2.1 SC 1.3.1", A, "Perceivable",
        Severity.SERIOUS,
        "Data tables must use th elements or scope attributes to identify headers.",
        "info-and-relationships",
    ),

    # === INTERACTIVE ===
    _rule(
        "missing-alt", "Images missing alt text", "WCAG 2.1 SC 1.1.1", A, "Perceivable", Severity.CRITICAL,
        "All non-decorative images must have alternative text that describes their content.",
        "non-text-content",
        fix=(
            'Find all <img> tags without an alt attribute',
            'Add descriptive alt text: <img src="logo.png" alt="Company logo">',
            'For decorative images, use empty alt: <img src="bg.png" alt="">',
        ),
    ),
    _rule(
        "empty-alt", "Images with empty alt on non-decorative elements", "WCAG 2.1 SC 1.1.1", A, "Perceivable",
        Severity.SERIOUS,
        'Empty alt="" should only be used for decorative images. Functional images need descriptive alt text.',
        "non-text-content",
    ),
    _rule(
        "missing-form-label", "Form inputs without labels", "WCAG 2.1 SC 1.3.1 / 4.1.2", A, "Perceivable",
        Severity.CRITICAL,
        "All form inputs must have associated labels for screen reader users.",
        "info-and-relationships",
        fix=(
            'Add a <label> for each input: <label for="email">Email</label>',
            'Connect with matching id: <input id="email" type="email">',
            'Or use aria-label: <input aria-label="Search" type="text">',
        ),
    ),
    _rule(
        "empty-link", "Links with no accessible text", "WCAG 2.1 SC 2.4.4", A, "Operable", Severity.SERIOUS,
        "Links must have discernible text that describes their destination.",
        "link-purpose-in-context",
        fix=(
            'Add descriptive text inside every <a> tag',
            'For icon links, add aria-label: <a href="/cart" aria-label="Shopping cart">',
            'Avoid empty links; they confuse screen readers',
        ),
    ),
    _rule(
        "empty-button", "Buttons with no accessible text", "WCAG 2.1 SC 4.1.2", A, "Robust", Severity.CRITICAL,
        "Buttons must have discernible text that describes their action.",
        "name-role-value",
        fix=(
            'Add text content or aria-label to every button',
            'Example: <button aria-label="Close menu">✕</button>',
            'Icon buttons always need an accessible name',
        ),
    ),
    _rule(
        "missing-keyboard-access", "Non-interactive elements with click handlers", "WCAG 2.1 SC 2.1.1", A,
        "Operable", Severity.SERIOUS,
        "Elements with click handlers (onclick) that are not natively interactive (links, buttons) must also "
        "have keyboard access via tabindex and keydown handlers.",
        "keyboard",
        fix=(
            'Add tabindex="0" to clickable non-interactive elements',
            "Add a keydown handler: onkeydown=\"if(event.key==='Enter') this.click()\"",
            'Better yet: use <button> instead of <div onclick>',
        ),
    ),
    _rule(
        "keyboard-trap", "Potential keyboard trap", "WCAG 2.1 SC 2.1.2", A, "Operable", Severity.CRITICAL,
        "Content must not trap keyboard focus. Users must be able to navigate away using standard keys.",
        "no-keyboard-trap",
        fix=(
            'Ensure users can Tab and Shift+Tab out of all components',
            'Modals should return focus to the trigger on close',
            'Avoid preventDefault() on Tab/Escape keys',
        ),
    ),
    _rule(
        "missing-focus-style", "Focus styles suppressed", "WCAG 2.1 SC 2.4.7", AA, "Operable", Severity.SERIOUS,
        "Interactive elements must have a visible focus indicator for keyboard users. outline:none or "
        "outline:0 without alternative styling removes this.",
        "focus-visible",
        fix=(
            'Remove outline: none from CSS focus styles',
            'Add a visible focus indicator: :focus { outline: 2px solid #6c5ce7; }',
            'Or use box-shadow as an alternative focus style',
        ),
    ),
    _rule(
        "generic-link-text", "Generic or ambiguous link text", "WCAG 2.1 SC 2.4.4", A, "Operable",
        Severity.MODERATE,
        'Link text should describe the destination. Phrases like "click here", "read more", or "learn more" '
        'are ambiguous without context.',
        "link-purpose-in-context",
        fix=(
            'Replace "click here" with descriptive text like "Download the report"',
            'Replace "read more" with "Read more about accessibility compliance"',
            'Link text should make sense out of context',
        ),
    ),
    _rule(
        "no-skip-link", "No skip navigation link", "WCAG 2.1 SC 2.4.1", A, "Operable", Severity.MODERATE,
        "A mechanism should be available to bypass blocks of content that are repeated on multiple pages.",
        "bypass-blocks",
    ),

    # === VISUAL / TIMING ===
    _rule(
        "color-contrast-inline", "Inline color contrast issues", "WCAG 2.1 SC 1.4.3", AA, "Perceivable",
        Severity.SERIOUS,
        "Inline styles set text/background colors that may fail the 4.5:1 contrast ratio requirement.",
        "contrast-minimum",
        fix=(
            'Check color pairs with a contrast checker tool',
            'Ensure 4.5:1 ratio for normal text, 3:1 for large text',
            'Avoid light gray text on white backgrounds',
        ),
    ),
    _rule(
        "inline-styles-text", "Inline text styling (potential contrast issues)", "WCAG 2.1 SC 1.4.3", AA,
        "Perceivable", Severity.MINOR,
        "Inline color styles may cause contrast issues that are hard to audit.",
        "contrast-minimum",
    ),
    _rule(
        "missing-viewport", "Missing viewport meta tag", "WCAG 2.1 SC 1.4.10", AA, "Perceivable",
        Severity.MODERATE,
        "Pages should include a viewport meta tag for mobile accessibility.",
        "reflow",
        fix=(
            'Add to <head>: <meta name="viewport" content="width=device-width, initial-scale=1.0">',
            'This enables responsive design for mobile users',
            "Don't set maximum-scale=1; it prevents zooming",
        ),
    ),
    _rule(
        "autoplay-media", "Auto-playing media", "WCAG 2.1 SC 1.4.2", A, "Perceivable", Severity.SERIOUS,
        "Audio that plays automatically for more than 3 seconds must have a mechanism to pause or stop.",
        "audio-control",
    ),
    _rule(
        "tabindex-positive", "Positive tabindex values", "WCAG 2.1 SC 2.4.3", A, "Operable", Severity.MODERATE,
        "Avoid positive tabindex values; they create confusing tab order for keyboard users.",
        "focus-order",
    ),
    _rule(
        "meta-refresh", "Meta refresh redirect", "WCAG 2.1 SC 2.2.1", A, "Operable", Severity.CRITICAL,
        "Pages should not auto-redirect using meta refresh. Users must control timing.",
        "timing-adjustable",
    ),
)

# Read-only, insertion-ordered view: id -> RuleDefinition
RULES = MappingProxyType({rule.id: rule for rule in _DEFINITIONS})


def get_rule(rule_id: str) -> RuleDefinition:
    """Raises KeyError for an unknown id."""
    return RULES[rule_id]
