import asyncio
import unittest
from unittest.mock import AsyncMock

from boardpilot.core.errors import ValidationFailure
from boardpilot.core.pipeline import ActionResult
from boardpilot.core.tools import get_action_names, get_tool_schemas, run_action, validate_args
from fake_trello import agentika, make_pipeline


class TestToolSchemas(unittest.TestCase):
    def test_every_action_is_registered(self):
        self.assertEqual(
            get_action_names(),
            [
                "fetchBoards",
                "createList",
                "fetchCardsInList",
                "createCard",
                "moveCard",
                "assignMemberToCard",
                "setCardDueDate",
                "createProjectBacklog",
                "scheduleMeeting",
            ],
        )

    def test_schemas_use_camel_case_arguments(self):
        schemas = {tool["function"]["name"]: tool["function"] for tool in get_tool_schemas()}

        move = schemas["moveCard"]["parameters"]
        self.assertEqual(
            sorted(move["required"]),
            ["boardName", "cardName", "sourceListName", "targetListName"],
        )
        self.assertIn("startDateTime", schemas["scheduleMeeting"]["parameters"]["properties"])
        self.assertNotIn("dueDate", schemas["createCard"]["parameters"]["required"])
        self.assertEqual(schemas["fetchBoards"]["parameters"]["required"], [])
        self.assertTrue(all(tool["type"] == "function" for tool in get_tool_schemas()))


class TestValidateArgs(unittest.TestCase):
    def test_accepts_camel_and_snake_case(self):
        camel = validate_args("createList", {"boardName": "Agentika", "listName": "Ideas"})
        snake = validate_args("createList", {"board_name": "Agentika", "list_name": "Ideas"})

        self.assertEqual(camel.model_dump(), snake.model_dump())

    def test_rejects_missing_blank_and_unknown_fields(self):
        with self.assertRaises(ValidationFailure) as ctx:
            validate_args("createCard", {"boardName": "Agentika", "listName": "  ", "colour": "red"})

        self.assertEqual(ctx.exception.code, "VALIDATION_ERROR")
        self.assertEqual(len(ctx.exception.problems), 3)


class TestRunAction(unittest.TestCase):
    def test_dispatches_parsed_arguments(self):
        async def run():
            pipeline = AsyncMock()
            pipeline.assign_member_to_card.return_value = ActionResult(success=True, message="Assigned")

            result = await run_action(
                pipeline,
                "assignMemberToCard",
                {"boardName": "Agentika", "listName": "To-Do", "cardName": "Docs", "memberName": "John"},
                request_id="req-1",
            )

            self.assertEqual(result, {"success": True, "message": "Assigned", "commit": True})
            self.assertEqual(
                pipeline.assign_member_to_card.await_args.kwargs,
                {
                    "board_name": "Agentika",
                    "list_name": "To-Do",
                    "card_name": "Docs",
                    "member_name": "John",
                    "request_id": "req-1",
                },
            )

        asyncio.run(run())

    def test_schedule_meeting_aliases_reach_pipeline(self):
        async def run():
            pipeline = AsyncMock()
            pipeline.schedule_meeting.return_value = ActionResult(success=True, message="ok")

            await run_action(
                pipeline,
                "scheduleMeeting",
                {"summary": "Sync", "startDateTime": "2024-06-01T09:00:00Z", "endDateTime": "2024-06-01T10:00:00Z"},
            )

            kwargs = pipeline.schedule_meeting.await_args.kwargs
            self.assertEqual(kwargs["start_datetime"], "2024-06-01T09:00:00Z")
            self.assertEqual(kwargs["end_datetime"], "2024-06-01T10:00:00Z")
            self.assertIsNone(kwargs["description"])

        asyncio.run(run())

    def test_invalid_arguments_never_reach_trello(self):
        async def run():
            trello = agentika()

            result = await run_action(make_pipeline(trello), "moveCard", {"boardName": "Agentika", "cardName": "Docs"})

            self.assertFalse(result["success"])
            self.assertEqual(result["error"], "VALIDATION_ERROR")
            self.assertIn("moveCard", result["message"])
            self.assertEqual(trello.requests, [])

        asyncio.run(run())

    def test_unknown_action(self):
        async def run():
            result = await run_action(AsyncMock(), "deleteBoard", {})

            self.assertFalse(result["success"])
            self.assertEqual(result["error"], "UNKNOWN_ACTION")
            self.assertIn("fetchBoards", result["message"])

        asyncio.run(run())

    def test_end_to_end_failure_is_narrated(self):
        async def run():
            trello = agentika()

            result = await run_action(
                make_pipeline(trello),
                "fetchCardsInList",
                {"boardName": "Agentika", "listName": "Backlog"},
            )

            self.assertEqual(result["error"], "LIST_NOT_FOUND")
            self.assertEqual(result["stage"], "resolve:list")
            self.assertTrue(result["commit"])

        asyncio.run(run())


if __name__ == "__main__":
    unittest.main()
