"""Solution verification: critique followed by a yes/no confirmation.

``passed`` is never a structured boolean from the model.  The reviewer writes
a free-text critique, then a second call is asked whether that critique
declares the solution correct; the answer passes iff it contains ``"yes"``
(case-insensitive).
"""

from __future__ import annotations

import logging

from deep_think.domain.enums import Stage
from deep_think.domain.values import Verification
from deep_think.services.generation import TextGenerationClient
from deep_think.services.prompts import (
    CHECK_VERIFICATION_PROMPT,
    DETAILED_REVIEW_MARKER,
    DETAILED_SOLUTION_MARKER,
    VERIFICATION_PROMPT,
)

logger = logging.getLogger(__name__)


def extract_detailed_solution(
    text: str,
    marker: str = DETAILED_SOLUTION_MARKER,
    after: bool = True,
) -> str:
    """Split *text* at the first occurrence of *marker*.

    Parameters
    ----------
    text:
        Solution or critique text.
    marker:
        Marker to search for.
    after:
        Keep the stripped text after the marker when ``True``, before it
        when ``False``.

    Returns
    -------
    str
        When the marker is absent: ``""`` if *after*, else the whole *text*.
    """
    idx = text.find(marker)
    if idx == -1:
        return "" if after else text
    if after:
        return text[idx + len(marker):].strip()
    return text[:idx].strip()


def is_affirmative(answer: str) -> bool:
    return "yes" in answer.lower()


class SolutionVerifier:
    """Runs the two verification calls on the ``verification`` stage model."""

    def __init__(self, client: TextGenerationClient) -> None:
        self._client = client

    async def verify(self, problem: str, solution: str) -> Verification:
        detailed = extract_detailed_solution(solution)
        if not detailed:
            logger.debug("No %r marker in solution; reviewing an empty section", DETAILED_SOLUTION_MARKER)

        critique = await self._client.generate(
            Stage.VERIFICATION,
            messages=VERIFICATION_PROMPT.format_messages(problem=problem, analysis=detailed),
        )
        good_verify = await self._client.generate(
            Stage.VERIFICATION,
            messages=CHECK_VERIFICATION_PROMPT.format_messages(verification=critique),
        )

        passed = is_affirmative(good_verify)
        bug_report = "" if passed else extract_detailed_solution(
            critique, DETAILED_REVIEW_MARKER, after=False
        )
        logger.debug("Verification passed=%s", passed)
        return Verification(passed=passed, bug_report=bug_report, good_verify=good_verify)
