import asyncio
import unittest
from unittest.mock import AsyncMock

from boardpilot.core.errors import CalendarAuthError
from fake_trello import FakeTrello, agentika, make_pipeline


def writes(trello: FakeTrello):
    return [req for req in trello.requests if req[0] != "GET"]


class TestCardOperations(unittest.TestCase):
    def test_create_card_end_to_end(self):
        async def run():
            trello = agentika()
            pipeline = make_pipeline(trello)

            result = await pipeline.create_card("Agentika", "To-Do", "Finish documentation")

            self.assertTrue(result.success)
            self.assertIn("Finish documentation", result.message)
            self.assertIn("Agentika", result.message)
            created = trello.calls("POST", "/cards")
            self.assertEqual(len(created), 1)
            self.assertEqual(created[0][2]["idList"], "list-todo")
            self.assertNotIn("due", created[0][2])
            self.assertEqual(result.data["card"]["list_id"], "list-todo")

        asyncio.run(run())

    def test_create_card_with_due_date(self):
        async def run():
            trello = agentika()
            result = await make_pipeline(trello).create_card("agentika", "to-do", "Launch", "2024-12-31")

            self.assertTrue(result.success)
            self.assertTrue(result.message.endswith("due 2024-12-31."))
            self.assertEqual(trello.calls("POST", "/cards")[0][2]["due"], "2024-12-31")

        asyncio.run(run())

    def test_create_card_in_unknown_list(self):
        async def run():
            trello = agentika()
            result = await make_pipeline(trello).create_card("Agentika", "Someday", "Launch")

            self.assertFalse(result.success)
            self.assertEqual(result.error, "LIST_NOT_FOUND")
            self.assertEqual(result.stage, "resolve:list")
            self.assertIn('"Someday"', result.message)
            self.assertEqual(writes(trello), [])

        asyncio.run(run())

    def test_move_card_with_unknown_source_writes_nothing(self):
        async def run():
            trello = agentika()
            result = await make_pipeline(trello).move_card("Agentika", "Ideas", "Done", "Finish documentation")

            self.assertFalse(result.success)
            self.assertEqual(result.error, "LIST_NOT_FOUND")
            self.assertEqual(result.stage, "resolve:list")
            self.assertIn('"Ideas"', result.message)
            self.assertEqual(writes(trello), [])
            self.assertEqual(trello.calls(path="/lists/list-todo/cards"), [])

        asyncio.run(run())

    def test_move_card_with_unknown_target(self):
        async def run():
            trello = agentika()
            result = await make_pipeline(trello).move_card("Agentika", "To-Do", "Archive", "Finish documentation")

            self.assertEqual(result.error, "LIST_NOT_FOUND")
            self.assertEqual(result.stage, "resolve:target_list")
            self.assertIn('"Archive"', result.message)
            self.assertEqual(writes(trello), [])

        asyncio.run(run())

    def test_move_card(self):
        async def run():
            trello = agentika()
            result = await make_pipeline(trello).move_card("Agentika", "To-Do", "Done", "finish documentation")

            self.assertTrue(result.success)
            self.assertEqual(result.message, 'Moved the card "finish documentation" from "To-Do" to "Done" in the "Agentika" board.')
            self.assertEqual(len(trello.calls("GET", "/boards/board-agentika/lists")), 1)
            self.assertEqual(trello.calls("PUT", "/cards/card-docs")[0][2]["idList"], "list-done")

        asyncio.run(run())

    def test_set_due_date(self):
        async def run():
            trello = agentika()
            result = await make_pipeline(trello).set_card_due_date(
                "Agentika", "To-Do", "Finish documentation", "2024-06-01T09:00:00Z"
            )

            self.assertTrue(result.success)
            self.assertEqual(result.data["card"]["due"], "2024-06-01T09:00:00Z")
            self.assertEqual(len(writes(trello)), 1)

        asyncio.run(run())

    def test_set_due_date_on_missing_card(self):
        async def run():
            trello = agentika()
            result = await make_pipeline(trello).set_card_due_date("Agentika", "To-Do", "Ghost", "2024-06-01")

            self.assertEqual(result.error, "CARD_NOT_FOUND")
            self.assertEqual(result.stage, "resolve:card")
            self.assertIn('in the "To-Do" list', result.message)
            self.assertEqual(writes(trello), [])

        asyncio.run(run())


class TestMemberAssignment(unittest.TestCase):
    def test_assign_unique_member(self):
        async def run():
            trello = agentika()
            result = await make_pipeline(trello).assign_member_to_card("Agentika", "To-Do", "Finish documentation", "john")

            self.assertTrue(result.success)
            self.assertEqual(result.data["member_id"], "member-john")
            self.assertEqual(trello.calls("POST", "/cards/card-docs/idMembers")[0][2]["value"], "member-john")

        asyncio.run(run())

    def test_ambiguous_member_is_not_assigned(self):
        async def run():
            trello = agentika()
            result = await make_pipeline(trello).assign_member_to_card("Agentika", "To-Do", "Finish documentation", "Doe")

            self.assertFalse(result.success)
            self.assertEqual(result.error, "AMBIGUOUS_MEMBER")
            self.assertEqual(result.stage, "resolve:member")
            self.assertIn("John Doe", result.message)
            self.assertIn("Jane Doe", result.message)
            self.assertEqual(writes(trello), [])

        asyncio.run(run())

    def test_unknown_member(self):
        async def run():
            trello = agentika()
            result = await make_pipeline(trello).assign_member_to_card("Agentika", "To-Do", "Finish documentation", "Zed")

            self.assertEqual(result.error, "MEMBER_NOT_FOUND")
            self.assertEqual(writes(trello), [])

        asyncio.run(run())


class TestBoardsAndLists(unittest.TestCase):
    def test_fetch_boards_lists_every_board(self):
        async def run():
            result = await make_pipeline(agentika()).fetch_boards()

            self.assertTrue(result.success)
            self.assertIn("1. Agentika - [Link](https://trello.com/b/agentika)", result.message)
            self.assertIn("2. Project Management", result.message)
            self.assertEqual([b["name"] for b in result.data["boards"]], ["Agentika", "Project Management"])

        asyncio.run(run())

    def test_fetch_boards_when_there_are_none(self):
        async def run():
            result = await make_pipeline(FakeTrello()).fetch_boards()

            self.assertTrue(result.success)
            self.assertEqual(result.message, "It seems you have no ongoing projects at the moment.")

        asyncio.run(run())

    def test_fetch_boards_failure(self):
        async def run():
            trello = agentika()
            trello.fail("GET", "/members/me/boards", status=500)
            result = await make_pipeline(trello).fetch_boards()

            self.assertFalse(result.success)
            self.assertEqual(result.error, "REMOTE_FAILURE")
            self.assertNotIn("upstream exploded", result.message)

        asyncio.run(run())

    def test_fetch_boards_refreshes_cached_index(self):
        async def run():
            trello = agentika()
            pipeline = make_pipeline(trello)
            await pipeline.create_list("Agentika", "Ideas")

            trello.boards.append({"id": "board-new", "name": "Launch"})
            await pipeline.fetch_boards()
            result = await pipeline.create_list("Launch", "Ideas")

            self.assertTrue(result.success)

        asyncio.run(run())

    def test_create_list(self):
        async def run():
            trello = agentika()
            result = await make_pipeline(trello).create_list("Agentika", "Ideas")

            self.assertTrue(result.success)
            self.assertEqual(result.message, 'Successfully created the list "Ideas" in the "Agentika" board!')
            self.assertEqual(result.data["list"]["board_id"], "board-agentika")

        asyncio.run(run())

    def test_create_list_on_unknown_board(self):
        async def run():
            trello = agentika()
            result = await make_pipeline(trello).create_list("Nope", "Ideas")

            self.assertEqual(result.error, "BOARD_NOT_FOUND")
            self.assertEqual(result.stage, "resolve:board")
            self.assertEqual(writes(trello), [])

        asyncio.run(run())

    def test_fetch_cards_in_list(self):
        async def run():
            result = await make_pipeline(agentika()).fetch_cards_in_list("Agentika", "To-Do")

            self.assertTrue(result.success)
            self.assertIn("1. Finish documentation - [Link](https://trello.com/c/docs)", result.message)

        asyncio.run(run())

    def test_fetch_cards_in_empty_list(self):
        async def run():
            result = await make_pipeline(agentika()).fetch_cards_in_list("Agentika", "Done")

            self.assertEqual(result.message, 'The list "Done" is currently empty.')

        asyncio.run(run())


class TestProjectBacklog(unittest.TestCase):
    def test_backlog_creates_one_card_per_task(self):
        async def run():
            trello = agentika()
            result = await make_pipeline(trello).create_project_backlog(
                "Agentika", "Website", "Update homepage. Add blog. Test."
            )

            self.assertTrue(result.success)
            self.assertIn('"Website Backlog"', result.message)
            self.assertIn("added 3 tasks", result.message)
            list_id = result.data["list"]["id"]
            self.assertEqual([c["name"] for c in trello.cards[list_id]], ["Update homepage", "Add blog", "Test"])

        asyncio.run(run())

    def test_backlog_partial_failure_reports_partition(self):
        async def run():
            trello = agentika()
            trello.fail("POST", "/cards", status=500, after=2)
            result = await make_pipeline(trello).create_project_backlog(
                "Agentika", "Website", "Update homepage. Add blog. Test. Deploy."
            )

            self.assertFalse(result.success)
            self.assertEqual(result.error, "MUTATION_FAILED")
            self.assertEqual(result.data["created"], ["Update homepage", "Add blog"])
            self.assertEqual(result.data["failed"], "Test")
            self.assertEqual(result.data["skipped"], ["Deploy"])
            self.assertIn("2 of 4 tasks", result.message)
            # No rollback and no further attempts after the failure.
            self.assertEqual(len(trello.calls("POST", "/cards")), 3)
            self.assertEqual(len(trello.calls("POST", "/lists")), 1)

        asyncio.run(run())

    def test_backlog_without_tasks(self):
        async def run():
            trello = agentika()
            result = await make_pipeline(trello).create_project_backlog("Agentika", "Website", " . . ")

            self.assertFalse(result.success)
            self.assertEqual(result.error, "NO_TASKS")
            self.assertEqual(result.stage, "extract")
            self.assertEqual(trello.calls("POST", "/cards"), [])

        asyncio.run(run())

    def test_backlog_list_failure_creates_no_cards(self):
        async def run():
            trello = agentika()
            trello.fail("POST", "/lists")
            result = await make_pipeline(trello).create_project_backlog("Agentika", "Website", "One. Two.")

            self.assertEqual(result.error, "MUTATION_FAILED")
            self.assertEqual(result.stage, "mutate:create_list")
            self.assertEqual(trello.calls("POST", "/cards"), [])

        asyncio.run(run())


class TestScheduleMeeting(unittest.TestCase):
    def test_schedule_meeting_returns_link(self):
        async def run():
            calendar = AsyncMock()
            calendar.create_event = AsyncMock(return_value={"id": "e1", "htmlLink": "https://calendar.google.com/e1"})
            pipeline = make_pipeline(agentika(), calendar=calendar)

            result = await pipeline.schedule_meeting("Sync", "2024-06-01T09:00:00Z", "2024-06-01T10:00:00Z", "Weekly")

            self.assertTrue(result.success)
            self.assertIn("https://calendar.google.com/e1", result.message)
            event = calendar.create_event.await_args.args[0]
            self.assertEqual(event.to_api()["start"], {"dateTime": "2024-06-01T09:00:00Z"})
            self.assertEqual(event.description, "Weekly")

        asyncio.run(run())

    def test_schedule_meeting_auth_failure(self):
        async def run():
            calendar = AsyncMock()
            calendar.create_event = AsyncMock(side_effect=CalendarAuthError("create_event", detail="no access token"))
            result = await make_pipeline(agentika(), calendar=calendar).schedule_meeting(
                "Sync", "2024-06-01T09:00:00Z", "2024-06-01T10:00:00Z"
            )

            self.assertFalse(result.success)
            self.assertEqual(result.error, "AUTH_ERROR")
            self.assertIn("authenticate", result.message)

        asyncio.run(run())

    def test_schedule_meeting_without_calendar(self):
        async def run():
            result = await make_pipeline(agentika()).schedule_meeting("Sync", "a", "b")

            self.assertEqual(result.error, "CALENDAR_NOT_CONFIGURED")

        asyncio.run(run())


if __name__ == "__main__":
    unittest.main()
