"""
Shared builders for scanner tests.
"""

import uuid
from datetime import datetime, timedelta, timezone

from rules.catalogue import get_rule
from rules.models import Issue, Pass
from rules.scoring import summarize, compliance_level, compute_score
from history.models import ScanRecord

T0 = datetime(2026, 1, 6, 5, 32, 41, tzinfo=timezone.utc)


def make_record(url="https://example.com/", issue_ids=(), pass_ids=(), score=None, scanned_at=None, minutes=0):
    issues = tuple(Issue(get_rule(rule_id), ("<el>",), 1) for rule_id in issue_ids)
    passes = tuple(Pass(get_rule(rule_id)) for rule_id in pass_ids)
    return ScanRecord(
        id=uuid.uuid4().hex,
        url=url,
        scanned_at=scanned_at or T0 + timedelta(minutes=minutes),
        score=compute_score(len(issues), len(passes)) if score is None else score,
        compliance_level=compliance_level(issues),
        summary=summarize(issues, (), passes),
        issues=issues,
        passes=passes,
    )


ACCESSIBLE_PAGE = """<!DOCTYPE html>
<html lang="en">
<head>
  <title>Home - Example</title>
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
</head>
<body>
  <a href="#main">Skip to main content</a>
  <header><nav><a href="/about">About the company</a></nav></header>
  <main id="main">
    <h1>Welcome</h1>
    <h2>News</h2>
    <img src="logo.png" alt="Company logo">
    <form>
      <label for="q">Search</label>
      <input id="q" type="text">
      <button type="submit">Search</button>
    </form>
  </main>
  <footer>Contact</footer>
</body>
</html>
"""

MINIMAL_BROKEN_PAGE = '<html><head><title>Test</title></head><body><img src="a.png"></body></html>'
