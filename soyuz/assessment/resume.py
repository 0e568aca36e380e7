from __future__ import annotations

import enum
import inspect
import logging
import typing as t

from soyuz.autosave import AssessmentClient, AutoSaver, backup_key, PersistenceError
from soyuz.model import Assessment, AssessmentType, PartialResults

logger = logging.getLogger(__name__)


class ResumeChoice(enum.Enum):
    Resume = "resume"
    StartNew = "start_new"


class Screen(enum.Enum):
    Disc = "disc"
    SoftSkills = "soft_skills"
    Sjt = "sjt"
    Completion = "completion"


# (result field, screen collecting it) in the order screens are visited
Sections: dict[AssessmentType, tuple[tuple[str, Screen], ...]] = {
    AssessmentType.Complete: (
        ("disc_results", Screen.Disc),
        ("soft_skills_results", Screen.SoftSkills),
        ("sjt_results", Screen.Sjt),
    ),
    AssessmentType.Disc: (("disc_results", Screen.Disc),),
    AssessmentType.SoftSkills: (("soft_skills_results", Screen.SoftSkills),),
    AssessmentType.Sjt: (("sjt_results", Screen.Sjt),),
}


def next_screen(type: AssessmentType, results: PartialResults) -> Screen:
    """The first screen of `type` whose result is still missing."""
    for field, screen in Sections[type]:
        if getattr(results, field) is None:
            return screen
    return Screen.Completion


class ResumePlan(t.NamedTuple):
    #: None when there was nothing to resume and the user was not asked
    choice: ResumeChoice | None
    assessment: Assessment | None
    screen: Screen
    results: PartialResults


Prompt = t.Callable[[Assessment], ResumeChoice | t.Awaitable[ResumeChoice]]


class ResumeCoordinator(object):
    """
    Offers to resume the user's in-progress assessment after sign in.

    Resuming hands the saved results to the auto-saver and picks the screen to
    continue from. Starting over abandons the old assessment on a best effort
    basis and clears what the auto-saver and the local backup hold.
    """

    saver: AutoSaver
    client: AssessmentClient

    def __init__(self, saver: AutoSaver, client: AssessmentClient | None = None) -> None:
        self.saver = saver
        self.client = client or saver.client

    async def check(self) -> Assessment | None:
        try:
            return await self.client.find_incomplete()
        except PersistenceError as e:
            logger.warning("could not check for an incomplete assessment", extra={"error": str(e)})
            return None

    async def run(self, prompt: Prompt) -> ResumePlan:
        found = await self.check()
        if found is None:
            return self._fresh(None)

        choice = prompt(found)
        if inspect.isawaitable(choice):
            choice = await choice
        choice = ResumeChoice(choice)

        if choice is ResumeChoice.Resume:
            return self.resume(found)
        await self.start_new(found)
        return self._fresh(ResumeChoice.StartNew)

    def resume(self, assessment: Assessment) -> ResumePlan:
        self.saver.adopt(assessment)
        screen = next_screen(assessment.type, assessment.results)
        logger.info(
            "resuming assessment",
            extra={"assessment_id": assessment.assessment_id, "screen": screen.value},
        )
        return ResumePlan(ResumeChoice.Resume, assessment, screen, assessment.results)

    async def start_new(self, previous: Assessment) -> None:
        try:
            await self.client.abandon(previous.assessment_id)
        except PersistenceError as e:
            logger.warning(
                "could not abandon previous assessment",
                extra={"assessment_id": previous.assessment_id, "error": str(e)},
            )
        for key in {self.saver.backup_key, backup_key(previous.type, self.saver.user_id)}:
            self.saver.backup.delete(key)
        self.saver.reset()

    def _fresh(self, choice: ResumeChoice | None) -> ResumePlan:
        return ResumePlan(choice, None, next_screen(self.saver.type, PartialResults()), PartialResults())
