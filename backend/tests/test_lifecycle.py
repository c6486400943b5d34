from datetime import date, datetime, timedelta, timezone
import unittest

import support  # noqa: F401

from interview_pipeline.services import lifecycle  # noqa: E402
from interview_pipeline.services.lifecycle import InterviewOutcome, InvalidTransition  # noqa: E402


class CreationRulesTests(unittest.TestCase):
    def test_initial_outcome(self) -> None:
        self.assertEqual(lifecycle.initial_outcome("Applied"), InterviewOutcome.AWAITING_RESPONSE)
        for stage in ("Phone Screen", "Technical Test", "Offer", "applied", "Applied "):
            with self.subTest(stage=stage):
                self.assertEqual(lifecycle.initial_outcome(stage), InterviewOutcome.SCHEDULED)

    def test_technical_test_uses_deadline_only(self) -> None:
        schedule = lifecycle.place_schedule(
            "Technical Test",
            datetime(2025, 3, 10, 14, 0),
            None,
            interviewer="Jane",
            link="https://zoom.us/j/1",
        )
        self.assertIsNone(schedule.date)
        self.assertEqual(schedule.deadline, date(2025, 3, 10))
        self.assertIsNone(schedule.interviewer)
        self.assertIsNone(schedule.link)

    def test_technical_test_prefers_explicit_deadline(self) -> None:
        schedule = lifecycle.place_schedule(
            "technical test", datetime(2025, 3, 10, 14, 0), date(2025, 3, 14)
        )
        self.assertEqual(schedule.deadline, date(2025, 3, 14))
        self.assertIsNone(schedule.date)

    def test_timed_stage_uses_date_only(self) -> None:
        when = datetime(2025, 3, 10, 14, 0, tzinfo=timezone(timedelta(hours=2)))
        schedule = lifecycle.place_schedule("Phone Screen", when, None, interviewer="Jane")
        self.assertEqual(schedule.date, datetime(2025, 3, 10, 12, 0))
        self.assertIsNone(schedule.deadline)
        self.assertEqual(schedule.interviewer, "Jane")

    def test_timed_stage_with_only_deadline_gets_default_hour(self) -> None:
        schedule = lifecycle.place_schedule("Onsite", None, date(2025, 3, 10))
        self.assertEqual(schedule.date, datetime(2025, 3, 10, 9, 0))
        self.assertIsNone(schedule.deadline)

    def test_missing_dates_fall_back_to_nine_local(self) -> None:
        now = datetime(2025, 3, 10, 18, 30, tzinfo=timezone.utc)
        expected = lifecycle.default_start(now)
        local_expected = expected.replace(tzinfo=timezone.utc).astimezone()
        self.assertEqual((local_expected.hour, local_expected.minute), (9, 0))

        timed = lifecycle.place_schedule("Applied", None, None, now=now)
        self.assertEqual(timed.date, expected)
        self.assertIsNone(timed.deadline)

        take_home = lifecycle.place_schedule("Technical Test", None, None, now=now)
        self.assertIsNone(take_home.date)
        self.assertEqual(take_home.deadline, expected.date())


class TransitionTests(unittest.TestCase):
    def test_reject_from_open_outcomes(self) -> None:
        for outcome in (
            InterviewOutcome.SCHEDULED,
            InterviewOutcome.AWAITING_RESPONSE,
            InterviewOutcome.OFFER_RECEIVED,
        ):
            with self.subTest(outcome=outcome):
                self.assertEqual(lifecycle.reject(outcome), InterviewOutcome.REJECTED)

    def test_reapplying_is_tolerated(self) -> None:
        self.assertEqual(lifecycle.reject(InterviewOutcome.REJECTED), InterviewOutcome.REJECTED)
        self.assertEqual(lifecycle.mark_passed(InterviewOutcome.PASSED), InterviewOutcome.PASSED)

    def test_await_reverts_scheduled(self) -> None:
        self.assertEqual(
            lifecycle.await_response(InterviewOutcome.SCHEDULED), InterviewOutcome.AWAITING_RESPONSE
        )

    def test_terminal_outcomes_are_final(self) -> None:
        for outcome in lifecycle.TERMINAL_OUTCOMES:
            with self.subTest(outcome=outcome):
                with self.assertRaises(InvalidTransition):
                    lifecycle.check_transition(outcome, InterviewOutcome.SCHEDULED)

    def test_terminal_enforcement_can_be_disabled(self) -> None:
        self.assertEqual(
            lifecycle.await_response(InterviewOutcome.REJECTED, enforce_terminal=False),
            InterviewOutcome.AWAITING_RESPONSE,
        )

    def test_invalid_transition_is_a_value_error(self) -> None:
        self.assertTrue(issubclass(InvalidTransition, ValueError))


if __name__ == "__main__":
    unittest.main()
