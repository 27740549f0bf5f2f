"""Plain-text narration for action results."""

from typing import List

from boardpilot.models.entities import Board, Card


def format_board_list(boards: List[Board]) -> str:
    if not boards:
        return "It seems you have no ongoing projects at the moment."

    lines = []
    for i, board in enumerate(boards, 1):
        lines.append(f"{i}. {board.name} - [Link]({board.url})" if board.url else f"{i}. {board.name}")
    return "Here are your ongoing projects:\n\n" + "\n".join(lines)


def format_card_list(list_name: str, cards: List[Card]) -> str:
    if not cards:
        return f'The list "{list_name}" is currently empty.'

    lines = []
    for i, card in enumerate(cards, 1):
        line = f"{i}. {card.name} - [Link]({card.url})" if card.url else f"{i}. {card.name}"
        if card.due:
            line += f" (due {card.due})"
        lines.append(line)
    return f'Here are the tasks in the "{list_name}" list:\n\n' + "\n".join(lines)


def format_backlog_partial(list_name: str, board_name: str, created: List[str], failed: str, skipped: List[str]) -> str:
    """Describe a backlog build that stopped part way through."""

    total = len(created) + 1 + len(skipped)
    message = (
        f'I created the backlog list "{list_name}" in the "{board_name}" board, '
        f"but stopped after adding {len(created)} of {total} tasks."
    )
    if created:
        message += "\n\nAdded:\n" + "\n".join(f"- {task}" for task in created)
    message += "\n\nNot added:\n" + "\n".join(f"- {task}" for task in [failed] + skipped)
    return message + "\n\nPlease try adding the remaining tasks again."
