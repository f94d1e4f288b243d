from __future__ import annotations

from typing import List

from rich.text import Text

from ..remote.client import ChangeInfo


def change_row(index: int, change: ChangeInfo) -> Text:
    return Text.assemble(
        (f"{index:1}", "blue"),
        " ",
        (str(change.number), "yellow"),
        "  ",
        (f"{change.status:3}", "green"),
        "  ",
        change.subject,
    )


def change_detail(change: ChangeInfo) -> List[Text]:
    lines = [
        Text.assemble(
            (str(change.number), "yellow"),
            "  ",
            (f"{change.status:3}", "green"),
            "  ",
            change.subject,
        ),
        Text(change.change_id),
        Text(""),
    ]
    for line in (change.commit_message or "").splitlines():
        lines.append(Text(f"    {line}"))
    return lines
