from scanner.core import logger
from rules.catalogue import RULES
from rules.models import (
    Evaluation, Issue, Pass, Warning, PageInfo, OutcomeStatus, MAX_EXCERPTS,
)
from rules.predicates import ParsedPage, PREDICATES


class RuleEvaluator:
    """
    Runs every catalogue rule against one document.
    Invariants:
    - The markup is parsed once; predicates share the ParsedPage read-only.
    - A rule yields at most one of Issue / Pass, or a Warning, or nothing.
    - A predicate that raises is logged and counted as inapplicable.
    """

    def __init__(self, rules=None, predicates=None):
        self._rules = rules if rules is not None else RULES
        self._predicates = predicates if predicates is not None else PREDICATES

    def evaluate(self, markup: str) -> Evaluation:
        page = ParsedPage(markup)
        issues, warnings, passes = [], [], []

        for rule in self._rules.values():
            check = self._predicates.get(rule.id)
            if check is None:
                logger.warning(f"[EVAL] No predicate registered for {rule.id}")
                continue
            try:
                outcome = check(page)
            except Exception as e:
                logger.error(f"[EVAL] Predicate {rule.id} failed: {e}", exc_info=True)
                continue

            if outcome.status is OutcomeStatus.ISSUE:
                issues.append(Issue(
                    rule=rule,
                    elements=outcome.elements[:MAX_EXCERPTS],
                    count=len(outcome.elements),
                    context=outcome.details,
                ))
            elif outcome.status is OutcomeStatus.PASS:
                passes.append(Pass(rule))
            elif outcome.status is OutcomeStatus.WARNING:
                warnings.append(Warning(rule, outcome.details))

        return Evaluation(
            issues=tuple(issues),
            warnings=tuple(warnings),
            passes=tuple(passes),
            page_info=self._page_info(page),
        )

    @staticmethod
    def _page_info(page: ParsedPage) -> PageInfo:
        return PageInfo(
            title=page.title or "(no title)",
            lang=page.lang or "(not set)",
            heading_count=len(page.headings),
            image_count=len(page.images),
            link_count=len(page.anchors),
            form_count=page.form_count,
            landmarks=page.landmarks,
        )
